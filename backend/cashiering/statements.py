# cashiering/statements.py
"""
Receipts and payments statement.

Arranges aggregated balances into the statutory layout:

    ASSET REALISATIONS                      (+)
    COST OF REALISATIONS                    (-)
    TRADING EXPENSES                        (-)
    PREFERENTIAL CREDITORS                  (-)
    SECONDARY PREFERENTIAL CREDITORS        (-)
    UNSECURED CREDITORS                     (-)
    TOTAL MOVEMENTS
    REPRESENTED BY
        each bank account, VAT control, interest bearing current account
    TOTAL REPRESENTED

Every movement row is credit-normal (credit - debit), so costs and creditor
payments come out negative and Total Movements is a plain signed sum. Because
each posting is one half of a balanced pair, the movements since appointment
must equal the debit-normal balances that represent them. The composer
checks that identity and reports a ReconciliationMismatch when it fails; it
never adjusts either figure.

Creditor payments are attributed by looking for the creditor's name inside
the entry description or account name. This is a text match, not a
reference, so a creditor whose name is a substring of another's can pick up
the other's payments.
"""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from cashiering.balances import (
    Sign,
    WindowedBalance,
    aggregate_by_type,
    balance_to_date,
    balances_to_date,
)
from cashiering.filters import filter_entries
from cashiering.types import (
    INTEREST_BEARING_CODE,
    MATERIALITY_THRESHOLD,
    RECONCILIATION_TOLERANCE,
    VAT_CONTROL_CODE,
    ZERO,
    AccountGroup,
    AccountType,
    Anomaly,
    AnomalyCode,
    CaseContext,
    Claim,
    CreditorType,
    LedgerEntry,
    Transaction,
    decimal_str,
)


logger = logging.getLogger(__name__)


VAT_CONTROL_NAME = "vat control"
INTEREST_BEARING_NAME = "interest bearing current account"

# Case types whose estimate column is a Statement of Affairs; the rest
# (members' voluntary liquidations) report against a Declaration of Solvency.
STATEMENT_OF_AFFAIRS_CASE_TYPES = {"CVL", "Administration"}


class Section:
    ASSET_REALISATIONS = "Asset Realisations"
    COST_OF_REALISATIONS = "Cost of Realisations"
    TRADING_EXPENSES = "Trading Expenses"
    PREFERENTIAL_CREDITORS = "Preferential Creditors"
    SECONDARY_PREFERENTIAL_CREDITORS = "Secondary Preferential Creditors"
    UNSECURED_CREDITORS = "Unsecured Creditors"

    ORDER = [
        ASSET_REALISATIONS,
        COST_OF_REALISATIONS,
        TRADING_EXPENSES,
        PREFERENTIAL_CREDITORS,
        SECONDARY_PREFERENTIAL_CREDITORS,
        UNSECURED_CREDITORS,
    ]

    ACCOUNT_TYPES = {
        ASSET_REALISATIONS: AccountType.ASSET_REALISATION,
        COST_OF_REALISATIONS: AccountType.COST_OF_REALISATION,
        TRADING_EXPENSES: AccountType.TRADING,
    }

    CREDITOR_TYPES = {
        PREFERENTIAL_CREDITORS: CreditorType.PREFERENTIAL,
        SECONDARY_PREFERENTIAL_CREDITORS: CreditorType.SECONDARY_PREFERENTIAL,
        UNSECURED_CREDITORS: CreditorType.UNSECURED,
    }


# =============================================================================
# Output structures
# =============================================================================

@dataclass(frozen=True)
class StatementLine:
    label: str
    period: Decimal
    since_inception: Decimal
    estimate: Optional[Decimal] = None

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "estimate": decimal_str(self.estimate) if self.estimate is not None else None,
            "period": decimal_str(self.period),
            "since_inception": decimal_str(self.since_inception),
        }


@dataclass(frozen=True)
class StatementSection:
    title: str
    lines: tuple

    @property
    def total_period(self) -> Decimal:
        return sum((line.period for line in self.lines), ZERO)

    @property
    def total_since_inception(self) -> Decimal:
        return sum((line.since_inception for line in self.lines), ZERO)

    @property
    def is_nil(self) -> bool:
        return not self.lines or (self.total_period == 0 and self.total_since_inception == 0)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "lines": [line.to_dict() for line in self.lines],
            "total_period": decimal_str(self.total_period),
            "total_since_inception": decimal_str(self.total_since_inception),
            "is_nil": self.is_nil,
        }


@dataclass(frozen=True)
class RepresentedLine:
    label: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {"label": self.label, "amount": decimal_str(self.amount)}


@dataclass(frozen=True)
class Statement:
    case: CaseContext
    sections: tuple
    represented_by: tuple
    estimate_heading: str = ""
    anomalies: tuple = ()
    tolerance: Decimal = RECONCILIATION_TOLERANCE

    @property
    def total_movements(self) -> StatementLine:
        return StatementLine(
            label="Total Movements",
            period=sum((s.total_period for s in self.sections), ZERO),
            since_inception=sum((s.total_since_inception for s in self.sections), ZERO),
        )

    @property
    def total_represented(self) -> Decimal:
        return sum((line.amount for line in self.represented_by), ZERO)

    @property
    def difference(self) -> Decimal:
        return self.total_movements.since_inception - self.total_represented

    @property
    def is_reconciled(self) -> bool:
        return abs(self.difference) <= self.tolerance

    def section(self, title: str) -> StatementSection:
        for section in self.sections:
            if section.title == title:
                return section
        raise KeyError(title)

    def to_dict(self) -> dict:
        movements = self.total_movements
        return {
            "case_id": self.case.case_id,
            "case_type": self.case.case_type,
            "selected_account": self.case.selected_account,
            "appointment_date": self.case.appointment_date.isoformat(),
            "period_from": self.case.period_from.isoformat(),
            "period_to": self.case.period_to.isoformat(),
            "estimate_heading": self.estimate_heading,
            "sections": [section.to_dict() for section in self.sections],
            "total_movements": movements.to_dict(),
            "represented_by": [line.to_dict() for line in self.represented_by],
            "total_represented": decimal_str(self.total_represented),
            "difference": decimal_str(self.difference),
            "is_reconciled": self.is_reconciled,
            "anomalies": [anomaly.to_dict() for anomaly in self.anomalies],
        }


@dataclass(frozen=True)
class StatementAggregates:
    """Everything the composer needs, already aggregated."""
    realisations: dict = field(default_factory=dict)
    costs: dict = field(default_factory=dict)
    trading: dict = field(default_factory=dict)
    creditor_payments: dict = field(default_factory=dict)
    bank_balances: dict = field(default_factory=dict)
    vat_control: Decimal = ZERO
    interest_bearing: Decimal = ZERO
    anomalies: tuple = ()


# =============================================================================
# Account classification
# =============================================================================

def is_vat_control(entry: LedgerEntry, code: str = VAT_CONTROL_CODE) -> bool:
    return entry.account_code == code or VAT_CONTROL_NAME in entry.account_name.lower()


def is_interest_bearing(entry: LedgerEntry, code: str = INTEREST_BEARING_CODE) -> bool:
    return entry.account_code == code or INTEREST_BEARING_NAME in entry.account_name.lower()


def is_bank(entry: LedgerEntry) -> bool:
    return entry.account_group == AccountGroup.BANK_ACCOUNTS


def estimate_heading(case_type: str) -> str:
    return "SoA" if case_type in STATEMENT_OF_AFFAIRS_CASE_TYPES else "Dec of Sol"


# =============================================================================
# Aggregation
# =============================================================================

def attribute_creditor_payments(
    entries: Iterable[LedgerEntry],
    claims: Iterable[Claim],
    window,
) -> dict[str, WindowedBalance]:
    """
    Payments to each creditor class, found by name matching.

    An entry belongs to the first creditor (in claim order) whose name occurs
    in its description or account name. Only the debit side counts, and
    bank, realisation, cost and trading postings are never attributed so the
    same money is not reported twice. Amounts are returned negative
    (credit-normal), ready to be summed into Total Movements.
    """
    creditors = [
        claim for claim in claims
        if claim.creditor_type in Section.CREDITOR_TYPES.values() and claim.creditor_name
    ]
    result = {creditor_type: WindowedBalance() for creditor_type in Section.CREDITOR_TYPES.values()}

    for entry in entries:
        if is_bank(entry) or entry.account_type in AccountType.STATEMENT_TYPES:
            continue
        if entry.debit_amount == 0:
            continue
        in_period = window.in_period(entry.entry_date)
        since = window.since_inception(entry.entry_date)
        if not in_period and not since:
            continue
        for creditor in creditors:
            if creditor.creditor_name in entry.description or creditor.creditor_name in entry.account_name:
                paid = WindowedBalance(
                    period=-entry.debit_amount if in_period else ZERO,
                    since_inception=-entry.debit_amount if since else ZERO,
                )
                result[creditor.creditor_type] = result[creditor.creditor_type] + paid
                break

    return result


def collect_aggregates(
    case: CaseContext,
    entries: Iterable[LedgerEntry],
    claims: Iterable[Claim] = (),
    threshold: Decimal = MATERIALITY_THRESHOLD,
    vat_control_code: str = VAT_CONTROL_CODE,
    interest_bearing_code: str = INTEREST_BEARING_CODE,
) -> StatementAggregates:
    """Aggregate already-filtered entries into statement inputs."""
    entries = list(entries)
    window = case.window

    vat_entries = [e for e in entries if is_vat_control(e, vat_control_code)]
    interest_entries = [
        e for e in entries
        if is_interest_bearing(e, interest_bearing_code) and not is_vat_control(e, vat_control_code)
    ]
    interest_ids = {id(e) for e in interest_entries}
    bank_entries = [e for e in entries if is_bank(e) and id(e) not in interest_ids]

    return StatementAggregates(
        realisations=aggregate_by_type(
            entries, window, AccountType.ASSET_REALISATION, Sign.CREDIT_NORMAL, threshold
        ),
        costs=aggregate_by_type(
            entries, window, AccountType.COST_OF_REALISATION, Sign.CREDIT_NORMAL, threshold
        ),
        trading=aggregate_by_type(
            entries, window, AccountType.TRADING, Sign.CREDIT_NORMAL, threshold
        ),
        creditor_payments=attribute_creditor_payments(entries, claims, window),
        bank_balances=balances_to_date(
            bank_entries, case.period_to, sign=Sign.DEBIT_NORMAL, threshold=threshold
        ),
        vat_control=balance_to_date(vat_entries, case.period_to, Sign.DEBIT_NORMAL),
        interest_bearing=balance_to_date(interest_entries, case.period_to, Sign.DEBIT_NORMAL),
    )


# =============================================================================
# Composition
# =============================================================================

def _lines(balances: Mapping[str, WindowedBalance], estimates: Mapping[str, Decimal]) -> tuple:
    return tuple(
        StatementLine(
            label=label,
            period=balance.period,
            since_inception=balance.since_inception,
            estimate=estimates.get(label),
        )
        for label, balance in balances.items()
    )


def compose(
    case: CaseContext,
    aggregates: StatementAggregates,
    estimates: Optional[Mapping[str, Decimal]] = None,
    tolerance: Decimal = RECONCILIATION_TOLERANCE,
    threshold: Decimal = MATERIALITY_THRESHOLD,
) -> Statement:
    """
    Build the ordered statement from aggregates and check it reconciles.

    Args:
        case: Case metadata and selections
        aggregates: Output of collect_aggregates()
        estimates: Optional Statement of Affairs / Declaration of Solvency
            figures keyed by row label (account name or creditor section title)
        tolerance: Allowed |Total Movements - Total Represented|
        threshold: Represented-by rows at or below this are shown as nil

    Returns:
        Statement, with a ReconciliationMismatch anomaly if the totals differ
    """
    estimates = estimates or {}

    sections = [
        StatementSection(Section.ASSET_REALISATIONS, _lines(aggregates.realisations, estimates)),
        StatementSection(Section.COST_OF_REALISATIONS, _lines(aggregates.costs, estimates)),
        StatementSection(Section.TRADING_EXPENSES, _lines(aggregates.trading, estimates)),
    ]
    for title in Section.ORDER[3:]:
        paid = aggregates.creditor_payments.get(Section.CREDITOR_TYPES[title], WindowedBalance())
        sections.append(StatementSection(title, (
            StatementLine(
                label=title,
                period=paid.period,
                since_inception=paid.since_inception,
                estimate=estimates.get(title),
            ),
        )))

    represented = [
        RepresentedLine(label=name, amount=amount)
        for name, amount in aggregates.bank_balances.items()
    ]
    represented.append(RepresentedLine("VAT Control Account", aggregates.vat_control))
    interest = aggregates.interest_bearing if abs(aggregates.interest_bearing) > threshold else ZERO
    represented.append(RepresentedLine("Interest Bearing Current Account", interest))

    statement = Statement(
        case=case,
        sections=tuple(sections),
        represented_by=tuple(represented),
        estimate_heading=estimate_heading(case.case_type),
        anomalies=tuple(aggregates.anomalies),
        tolerance=tolerance,
    )

    if not statement.is_reconciled:
        mismatch = Anomaly(
            code=AnomalyCode.RECONCILIATION_MISMATCH,
            message=(
                f"Total movements ({statement.total_movements.since_inception}) do not "
                f"match total represented ({statement.total_represented})."
            ),
            details={
                "total_movements": statement.total_movements.since_inception,
                "total_represented": statement.total_represented,
                "difference": statement.difference,
            },
        )
        logger.warning(
            mismatch.message,
            extra={"case_id": case.case_id, "difference": str(statement.difference)},
        )
        statement = replace(statement, anomalies=statement.anomalies + (mismatch,))

    return statement


def build_receipts_and_payments(
    case: CaseContext,
    entries: Iterable[LedgerEntry],
    transactions: Iterable[Transaction],
    claims: Iterable[Claim] = (),
    estimates: Optional[Mapping[str, Decimal]] = None,
    threshold: Decimal = MATERIALITY_THRESHOLD,
    tolerance: Decimal = RECONCILIATION_TOLERANCE,
    vat_control_code: str = VAT_CONTROL_CODE,
    interest_bearing_code: str = INTEREST_BEARING_CODE,
) -> Statement:
    """
    Filter, aggregate and compose in one call.

    Only entries of approved transactions in the selected bank account count,
    plus adjusting entries.
    """
    filtered = filter_entries(
        entries,
        transactions,
        require_approved=True,
        account=case.selected_account,
        case_id=case.case_id,
    )
    aggregates = collect_aggregates(
        case,
        filtered.entries,
        claims,
        threshold=threshold,
        vat_control_code=vat_control_code,
        interest_bearing_code=interest_bearing_code,
    )
    aggregates = replace(aggregates, anomalies=filtered.anomalies)

    logger.info(
        "Receipts and payments composed",
        extra={
            "case_id": case.case_id,
            "entries": len(filtered.entries),
            "dropped": filtered.dropped_count,
            "account": case.selected_account,
        },
    )
    return compose(case, aggregates, estimates=estimates, tolerance=tolerance, threshold=threshold)
