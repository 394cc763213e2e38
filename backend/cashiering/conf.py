# cashiering/conf.py
"""
Cashiering settings.

Read from the CASHIERING dict in Django settings, falling back to DEFAULTS.
Threshold values are returned as Decimal.
"""

from decimal import Decimal

from django.conf import settings

from cashiering import types


DEFAULTS = {
    "MATERIALITY_THRESHOLD": types.MATERIALITY_THRESHOLD,
    "RECONCILIATION_TOLERANCE": types.RECONCILIATION_TOLERANCE,
    "VAT_RECEIVABLE_CODE": types.VAT_RECEIVABLE_CODE,
    "VAT_PAYABLE_CODE": types.VAT_PAYABLE_CODE,
    "VAT_CONTROL_CODE": types.VAT_CONTROL_CODE,
    "INTEREST_BEARING_CODE": types.INTEREST_BEARING_CODE,
    "CURRENCY_SYMBOL": types.CURRENCY_SYMBOL,
}

DECIMAL_SETTINGS = {"MATERIALITY_THRESHOLD", "RECONCILIATION_TOLERANCE"}


def get_setting(name: str):
    if name not in DEFAULTS:
        raise KeyError(f"Unknown cashiering setting: {name}")
    value = getattr(settings, "CASHIERING", {}).get(name, DEFAULTS[name])
    if name in DECIMAL_SETTINGS:
        return Decimal(str(value))
    return value
