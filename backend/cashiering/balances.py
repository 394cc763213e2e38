# cashiering/balances.py
"""
Account aggregation.

Nets debit/credit postings into signed balances.

Two shapes of output:
- Windowed balances: for each group (usually account name within an account
  type), the signed sum over the reporting period and the signed sum since
  the appointment date. Feeds the receipts-and-payments statement.
- Trial balance: per account code totals of debits and credits, with the
  net debit (positive) or credit (negative) balance.

Sign convention is a property of the account's role, chosen per call:
- CREDIT_NORMAL (credit - debit): realisations, costs, expenses, liabilities
- DEBIT_NORMAL (debit - credit): bank and other asset representation

Results never depend on input order: groups are summed, then emitted
sorted by key.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Optional

from cashiering.types import MATERIALITY_THRESHOLD, ZERO, LedgerEntry, ReportingWindow, decimal_str


logger = logging.getLogger(__name__)


class Sign:
    CREDIT_NORMAL = "credit_normal"
    DEBIT_NORMAL = "debit_normal"

    CHOICES = [CREDIT_NORMAL, DEBIT_NORMAL]


def signed_amount(entry: LedgerEntry, sign: str) -> Decimal:
    """The entry's contribution to a balance kept in the given direction."""
    if sign == Sign.DEBIT_NORMAL:
        return entry.debit_amount - entry.credit_amount
    if sign == Sign.CREDIT_NORMAL:
        return entry.credit_amount - entry.debit_amount
    raise ValueError(f"Unknown sign convention: {sign!r}")


def by_account_name(entry: LedgerEntry) -> str:
    return entry.account_name


def by_account_code(entry: LedgerEntry) -> str:
    return entry.account_code


@dataclass(frozen=True)
class WindowedBalance:
    period: Decimal = ZERO
    since_inception: Decimal = ZERO

    def is_material(self, threshold: Decimal = MATERIALITY_THRESHOLD) -> bool:
        return abs(self.period) > threshold or abs(self.since_inception) > threshold

    def __add__(self, other: "WindowedBalance") -> "WindowedBalance":
        return WindowedBalance(
            period=self.period + other.period,
            since_inception=self.since_inception + other.since_inception,
        )

    def __neg__(self) -> "WindowedBalance":
        return WindowedBalance(period=-self.period, since_inception=-self.since_inception)

    def to_dict(self) -> dict:
        return {"period": decimal_str(self.period), "since_inception": decimal_str(self.since_inception)}


def aggregate(
    entries: Iterable[LedgerEntry],
    window: ReportingWindow,
    key: Callable[[LedgerEntry], str] = by_account_name,
    sign: str = Sign.CREDIT_NORMAL,
    threshold: Decimal = MATERIALITY_THRESHOLD,
) -> dict[str, WindowedBalance]:
    """
    Sum entries per group over the period and since-inception windows.

    A group is emitted only if either sum exceeds the materiality threshold
    in absolute value, so exactly offsetting postings leave no trace.

    Args:
        entries: Already-filtered ledger entries
        window: Period and appointment boundaries
        key: Grouping function (account name by default)
        sign: Sign.CREDIT_NORMAL or Sign.DEBIT_NORMAL
        threshold: Materiality threshold

    Returns:
        {group: WindowedBalance}, ordered by group
    """
    period: dict[str, Decimal] = {}
    inception: dict[str, Decimal] = {}

    for entry in entries:
        in_period = window.in_period(entry.entry_date)
        since = window.since_inception(entry.entry_date)
        if not in_period and not since:
            continue
        group = key(entry)
        amount = signed_amount(entry, sign)
        if in_period:
            period[group] = period.get(group, ZERO) + amount
        if since:
            inception[group] = inception.get(group, ZERO) + amount

    result = {}
    for group in sorted(set(period) | set(inception)):
        balance = WindowedBalance(
            period=period.get(group, ZERO),
            since_inception=inception.get(group, ZERO),
        )
        if balance.is_material(threshold):
            result[group] = balance
    return result


def aggregate_by_type(
    entries: Iterable[LedgerEntry],
    window: ReportingWindow,
    account_type: str,
    sign: str = Sign.CREDIT_NORMAL,
    threshold: Decimal = MATERIALITY_THRESHOLD,
) -> dict[str, WindowedBalance]:
    """Windowed balances per account name, scoped to one account type."""
    scoped = [e for e in entries if e.account_type == account_type]
    return aggregate(scoped, window, key=by_account_name, sign=sign, threshold=threshold)


def total(balances: Mapping[str, WindowedBalance]) -> WindowedBalance:
    result = WindowedBalance()
    for balance in balances.values():
        result = result + balance
    return result


def balance_to_date(
    entries: Iterable[LedgerEntry],
    as_of: date,
    sign: str = Sign.DEBIT_NORMAL,
) -> Decimal:
    """Cumulative signed balance of entries dated on or before as_of."""
    balance = ZERO
    for entry in entries:
        if entry.entry_date is not None and entry.entry_date <= as_of:
            balance += signed_amount(entry, sign)
    return balance


def balances_to_date(
    entries: Iterable[LedgerEntry],
    as_of: date,
    key: Callable[[LedgerEntry], str] = by_account_name,
    sign: str = Sign.DEBIT_NORMAL,
    threshold: Decimal = MATERIALITY_THRESHOLD,
) -> dict[str, Decimal]:
    """Cumulative balance per group, keeping only material balances."""
    grouped: dict[str, list] = {}
    for entry in entries:
        grouped.setdefault(key(entry), []).append(entry)

    result = {}
    for group in sorted(grouped):
        balance = balance_to_date(grouped[group], as_of, sign)
        if abs(balance) > threshold:
            result[group] = balance
    return result


# =============================================================================
# Trial balance
# =============================================================================

@dataclass(frozen=True)
class TrialBalanceRow:
    account_code: str
    account_name: str
    account_type: str
    account_group: str
    total_debits: Decimal
    total_credits: Decimal

    @property
    def net_balance(self) -> Decimal:
        """Positive = debit balance, negative = credit balance."""
        return self.total_debits - self.total_credits

    @property
    def debit_balance(self) -> Decimal:
        return self.net_balance if self.net_balance > 0 else ZERO

    @property
    def credit_balance(self) -> Decimal:
        return -self.net_balance if self.net_balance < 0 else ZERO

    def to_dict(self) -> dict:
        return {
            "account_code": self.account_code,
            "account_name": self.account_name,
            "account_type": self.account_type,
            "account_group": self.account_group,
            "total_debits": decimal_str(self.total_debits),
            "total_credits": decimal_str(self.total_credits),
            "net_balance": decimal_str(self.net_balance),
            "debit_balance": decimal_str(self.debit_balance),
            "credit_balance": decimal_str(self.credit_balance),
        }


@dataclass(frozen=True)
class TrialBalance:
    rows: tuple
    as_of: Optional[date] = None
    skipped_codes: tuple = field(default_factory=tuple)
    threshold: Decimal = MATERIALITY_THRESHOLD

    @property
    def total_debit_balances(self) -> Decimal:
        return sum((row.debit_balance for row in self.rows), ZERO)

    @property
    def total_credit_balances(self) -> Decimal:
        return sum((row.credit_balance for row in self.rows), ZERO)

    @property
    def difference(self) -> Decimal:
        return self.total_debit_balances - self.total_credit_balances

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) < self.threshold

    def balances(self) -> dict[str, Decimal]:
        """{account_code: net_balance}"""
        return {row.account_code: row.net_balance for row in self.rows}

    def to_dict(self) -> dict:
        return {
            "as_of": self.as_of.isoformat() if self.as_of else None,
            "accounts": [row.to_dict() for row in self.rows],
            "totals": {
                "debit": decimal_str(self.total_debit_balances),
                "credit": decimal_str(self.total_credit_balances),
                "difference": decimal_str(self.difference),
            },
            "is_balanced": self.is_balanced,
            "skipped_codes": list(self.skipped_codes),
        }


def trial_balance(
    entries: Iterable[LedgerEntry],
    chart_of_accounts: Optional[Mapping[str, Mapping]] = None,
    as_of: Optional[date] = None,
    threshold: Decimal = MATERIALITY_THRESHOLD,
) -> TrialBalance:
    """
    Net every account code into a trial balance row.

    Args:
        entries: Already-filtered ledger entries
        chart_of_accounts: Optional {code: {"account_name", "account_type",
            "account_group"}}. When given, codes missing from it are skipped
            with a warning and its names override the entry names.
        as_of: Ignore entries dated after this day
        threshold: Rows whose absolute net is below this are dropped, and the
            debit and credit columns balance when they differ by less

    Returns:
        TrialBalance ordered by account code
    """
    totals: dict[str, list] = {}
    details: dict[str, dict] = {}

    for entry in entries:
        if as_of is not None and (entry.entry_date is None or entry.entry_date > as_of):
            continue
        code = entry.account_code
        if code not in totals:
            totals[code] = [ZERO, ZERO]
            details[code] = {
                "account_name": entry.account_name,
                "account_type": entry.account_type,
                "account_group": entry.account_group,
            }
        totals[code][0] += entry.debit_amount
        totals[code][1] += entry.credit_amount

    rows = []
    skipped = []
    for code in sorted(totals):
        if chart_of_accounts is not None:
            account_info = chart_of_accounts.get(code)
            if account_info is None:
                logger.warning(
                    f"Account code {code} found in entries but not in chart of accounts; skipping.",
                    extra={"account_code": code},
                )
                skipped.append(code)
                continue
            info = {**details[code], **{k: v for k, v in account_info.items() if v}}
        else:
            info = details[code]

        debits, credits = totals[code]
        if abs(debits - credits) < threshold:
            continue
        rows.append(TrialBalanceRow(
            account_code=code,
            account_name=info.get("account_name", ""),
            account_type=info.get("account_type", ""),
            account_group=info.get("account_group", ""),
            total_debits=debits,
            total_credits=credits,
        ))

    return TrialBalance(
        rows=tuple(rows),
        as_of=as_of,
        skipped_codes=tuple(skipped),
        threshold=threshold,
    )
