# tests/test_conf.py
"""
Tests for cashiering settings lookup.
"""

from decimal import Decimal

import pytest

from cashiering import statements, types, vat
from cashiering.conf import DEFAULTS, get_setting


class TestGetSetting:

    def test_defaults_come_from_domain_constants(self, settings):
        settings.CASHIERING = {}

        assert get_setting("VAT_CONTROL_CODE") == types.VAT_CONTROL_CODE
        assert get_setting("MATERIALITY_THRESHOLD") == types.MATERIALITY_THRESHOLD
        assert DEFAULTS["INTEREST_BEARING_CODE"] == types.INTEREST_BEARING_CODE

    def test_domain_modules_share_the_codes(self):
        assert statements.VAT_CONTROL_CODE is types.VAT_CONTROL_CODE
        assert statements.RECONCILIATION_TOLERANCE is types.RECONCILIATION_TOLERANCE
        assert vat.VAT_RECEIVABLE_CODE is types.VAT_RECEIVABLE_CODE

    def test_override_from_settings(self, settings):
        settings.CASHIERING = {"VAT_CONTROL_CODE": "VATCTL", "MATERIALITY_THRESHOLD": "0.005"}

        assert get_setting("VAT_CONTROL_CODE") == "VATCTL"
        assert get_setting("MATERIALITY_THRESHOLD") == Decimal("0.005")

    def test_unknown_setting(self):
        with pytest.raises(KeyError):
            get_setting("NOT_A_SETTING")
