# cashiering/types.py
"""
Core value types for case cashiering.

Everything in here is an immutable snapshot of data owned by the calling
application (ledger postings, bank transactions, creditor claims). The
computation modules never mutate these objects; they filter, aggregate and
return new values.

Amounts are always Decimal. Inputs may arrive as str, int, float or Decimal
(JSON payloads, CSV imports, ORM rows) and are normalised on construction.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional


ZERO = Decimal("0.00")
TWOPLACES = Decimal("0.01")


# =============================================================================
# Defaults
# =============================================================================
# Overridable per deployment through the CASHIERING setting (see conf.py).

MATERIALITY_THRESHOLD = Decimal("0.01")
RECONCILIATION_TOLERANCE = Decimal("0.01")

VAT_RECEIVABLE_CODE = "VAT001"
VAT_PAYABLE_CODE = "VAT002"
VAT_CONTROL_CODE = "VAT003"
INTEREST_BEARING_CODE = "FLTC"

CURRENCY_SYMBOL = "£"


def decimal_str(value: Decimal) -> str:
    """Positional notation, never exponent form ("40" rather than "4E+1")."""
    return format(value, "f")


# =============================================================================
# Vocabulary
# =============================================================================

class JournalType:
    RECEIPTS = "receipts"
    PAYMENTS = "payments"
    ADJUSTING = "adjusting"


class TransactionStatus:
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"

    CHOICES = [DRAFT, SUBMITTED, APPROVED]


class TransactionType:
    RECEIPT = "receipt"
    PAYMENT = "payment"


class AccountType:
    """Account type tags that drive statement placement."""
    ASSET_REALISATION = "AA"
    COST_OF_REALISATION = "CO"
    TRADING = "TR"

    STATEMENT_TYPES = [ASSET_REALISATION, COST_OF_REALISATION, TRADING]


class AccountGroup:
    BANK_ACCOUNTS = "Bank Accounts"
    VAT = "VAT"


class CreditorType:
    SECURED = "secured"
    PREFERENTIAL = "preferential"
    SECONDARY_PREFERENTIAL = "secondary_preferential"
    UNSECURED = "unsecured"
    MEMBERS = "members"

    CHOICES = [SECURED, PREFERENTIAL, SECONDARY_PREFERENTIAL, UNSECURED, MEMBERS]
    LABELS = {
        SECURED: "Secured",
        PREFERENTIAL: "Preferential",
        SECONDARY_PREFERENTIAL: "Secondary Preferential",
        UNSECURED: "Unsecured",
        MEMBERS: "Members",
    }


class BankSelection:
    ALL = "all"
    PRIMARY = "primary"


class AnomalyCode:
    ORPHAN_DATA_ASSUMED = "OrphanDataAssumed"
    RECONCILIATION_MISMATCH = "ReconciliationMismatch"


# =============================================================================
# Coercion helpers
# =============================================================================

def to_decimal(value: Any) -> Decimal:
    """Convert input to Decimal, treating None and "" as zero."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Invalid decimal amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        if isinstance(value, str):
            value = value.replace(",", "").strip()
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise ValueError(f"Invalid decimal amount: {value!r}")
    # NaN and Infinity never compare sensibly against a balance.
    if not result.is_finite():
        raise ValueError(f"Invalid decimal amount: {value!r}")
    return result


def to_date(value: Any) -> Optional[date]:
    """Convert ISO strings and datetimes to a date. None stays None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        # Accept full ISO timestamps ("2024-03-01T00:00:00Z") as well as dates.
        return date.fromisoformat(value[:10])
    raise ValueError(f"Invalid date: {value!r}")


def _pick(data: Mapping, names) -> dict:
    return {name: data[name] for name in names if name in data}


# =============================================================================
# Ledger inputs
# =============================================================================

@dataclass(frozen=True)
class LedgerEntry:
    """
    A single debit-or-credit posting.

    transaction_id is a reference to a Transaction the ledger does not own.
    An entry whose reference is missing or unresolved is orphaned, unless it
    is an adjusting entry (VAT allocations and similar), which is account-wide.
    """
    account_code: str
    account_name: str = ""
    account_group: str = ""
    account_type: str = ""
    debit_amount: Decimal = ZERO
    credit_amount: Decimal = ZERO
    entry_date: Optional[date] = None
    transaction_id: Optional[str] = None
    journal_type: str = ""
    description: str = ""
    reference: str = ""
    id: Optional[str] = None

    FIELDS = (
        "account_code", "account_name", "account_group", "account_type",
        "debit_amount", "credit_amount", "entry_date", "transaction_id",
        "journal_type", "description", "reference", "id",
    )

    def __post_init__(self):
        debit = to_decimal(self.debit_amount)
        credit = to_decimal(self.credit_amount)
        if debit < 0 or credit < 0:
            raise ValueError(
                f"Entry on {self.account_code} has a negative amount "
                f"(debit={debit}, credit={credit})."
            )
        object.__setattr__(self, "debit_amount", debit)
        object.__setattr__(self, "credit_amount", credit)
        object.__setattr__(self, "entry_date", to_date(self.entry_date))
        if self.transaction_id is not None:
            tx_id = str(self.transaction_id)
            object.__setattr__(self, "transaction_id", tx_id or None)
        for name in ("account_name", "account_group", "account_type",
                     "journal_type", "description", "reference"):
            if getattr(self, name) is None:
                object.__setattr__(self, name, "")

    @classmethod
    def from_dict(cls, data: Mapping) -> "LedgerEntry":
        return cls(**_pick(data, cls.FIELDS))

    @property
    def is_adjusting(self) -> bool:
        return self.journal_type == JournalType.ADJUSTING

    @property
    def debit_minus_credit(self) -> Decimal:
        return self.debit_amount - self.credit_amount


@dataclass(frozen=True)
class Transaction:
    """A bank receipt or payment that ledger entries hang off."""
    id: str
    status: str = TransactionStatus.DRAFT
    transaction_type: str = ""
    target_account: Optional[str] = None
    amount: Decimal = ZERO

    FIELDS = ("id", "status", "transaction_type", "target_account", "amount")

    def __post_init__(self):
        object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "amount", to_decimal(self.amount))

    @classmethod
    def from_dict(cls, data: Mapping) -> "Transaction":
        return cls(**_pick(data, cls.FIELDS))

    @property
    def is_approved(self) -> bool:
        return self.status == TransactionStatus.APPROVED

    @property
    def bank_account(self) -> str:
        """Selected bank account; an unset target means the primary account."""
        return self.target_account or BankSelection.PRIMARY


# =============================================================================
# Claims
# =============================================================================

@dataclass(frozen=True)
class Claim:
    """A creditor or member entitlement. Eligible iff the agreed balance is positive."""
    creditor_name: str
    balance_submitted: Decimal = ZERO
    creditor_type: str = CreditorType.UNSECURED

    FIELDS = ("creditor_name", "balance_submitted", "creditor_type")

    def __post_init__(self):
        object.__setattr__(self, "balance_submitted", to_decimal(self.balance_submitted))

    @classmethod
    def from_dict(cls, data: Mapping) -> "Claim":
        return cls(**_pick(data, cls.FIELDS))

    @property
    def is_eligible(self) -> bool:
        return self.balance_submitted > 0


@dataclass(frozen=True)
class Shareholder:
    """A member holding shares; nominal_value is in pence per share."""
    name: str
    shares_held: Decimal = ZERO
    nominal_value: Decimal = ZERO

    FIELDS = ("name", "shares_held", "nominal_value")

    def __post_init__(self):
        object.__setattr__(self, "shares_held", to_decimal(self.shares_held))
        object.__setattr__(self, "nominal_value", to_decimal(self.nominal_value))

    @classmethod
    def from_dict(cls, data: Mapping) -> "Shareholder":
        return cls(**_pick(data, cls.FIELDS))

    @property
    def share_capital(self) -> Decimal:
        """Paid-up share capital in pounds."""
        return (self.shares_held * self.nominal_value / Decimal("100")).quantize(TWOPLACES)

    def to_claim(self) -> Claim:
        return Claim(
            creditor_name=self.name,
            balance_submitted=self.share_capital,
            creditor_type=CreditorType.MEMBERS,
        )


# =============================================================================
# Case context
# =============================================================================

@dataclass(frozen=True)
class ReportingWindow:
    """
    The two aggregation windows of a statutory report.

    - period: [period_from, period_to]
    - since inception: [appointment_date, period_to]
    """
    period_from: date
    period_to: date
    appointment_date: date

    def __post_init__(self):
        for name in ("period_from", "period_to", "appointment_date"):
            value = to_date(getattr(self, name))
            if value is None:
                raise ValueError(f"{name} is required.")
            object.__setattr__(self, name, value)
        if self.period_from > self.period_to:
            raise ValueError(
                f"period_from ({self.period_from}) is after period_to ({self.period_to})."
            )

    def in_period(self, entry_date: Optional[date]) -> bool:
        return entry_date is not None and self.period_from <= entry_date <= self.period_to

    def since_inception(self, entry_date: Optional[date]) -> bool:
        return entry_date is not None and self.appointment_date <= entry_date <= self.period_to


@dataclass(frozen=True)
class CaseContext:
    """Case metadata and the caller's current selections, passed explicitly."""
    case_id: str
    appointment_date: date
    period_from: date
    period_to: date
    case_type: str = ""
    selected_account: str = BankSelection.ALL

    def __post_init__(self):
        object.__setattr__(self, "case_id", str(self.case_id))
        object.__setattr__(self, "appointment_date", to_date(self.appointment_date))
        object.__setattr__(self, "period_from", to_date(self.period_from))
        object.__setattr__(self, "period_to", to_date(self.period_to))
        if not self.selected_account:
            object.__setattr__(self, "selected_account", BankSelection.ALL)

    @property
    def window(self) -> ReportingWindow:
        return ReportingWindow(
            period_from=self.period_from,
            period_to=self.period_to,
            appointment_date=self.appointment_date,
        )


# =============================================================================
# Anomalies
# =============================================================================

@dataclass(frozen=True)
class Anomaly:
    """A non-terminal problem attached to a computed report."""
    code: str
    message: str
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "details": {
                key: decimal_str(value) if isinstance(value, Decimal) else value
                for key, value in self.details.items()
            },
        }
