# cashiering/filters.py
"""
Entry validation and filtering.

Decides which ledger postings are allowed to reach the aggregators.

Rules:
1. Orphan exclusion: a non-adjusting entry is kept only if its
   transaction_id resolves to a transaction in the supplied set.
2. Approval: with require_approved, the parent transaction must be approved.
3. Account scoping: transactions are restricted to the selected bank account
   ("all" keeps every account; an unset target is the primary account).

Adjusting entries (VAT allocations and the like) are account-wide and are
always retained.

If the transaction set is empty while entries are not, every non-adjusting
entry is dropped. That is a fail-safe for partially loaded data: totals fall
to zero rather than including postings we cannot vouch for. The drop is
reported as an OrphanDataAssumed anomaly and logged, never raised.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from cashiering.types import (
    Anomaly,
    AnomalyCode,
    BankSelection,
    LedgerEntry,
    Transaction,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterResult:
    """
    Outcome of filtering one case's entries.

    entries: postings that passed every rule, in input order
    orphaned: postings with a missing or unresolvable transaction reference
    excluded: postings whose transaction exists but failed approval/scoping
    """
    entries: tuple
    orphaned: tuple = ()
    excluded: tuple = ()
    anomalies: tuple = ()

    @property
    def dropped_count(self) -> int:
        return len(self.orphaned) + len(self.excluded)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def scope_transactions(
    transactions: Iterable[Transaction],
    account: str = BankSelection.ALL,
    require_approved: bool = False,
) -> list[Transaction]:
    """Transactions that qualify under the approval and account rules."""
    scoped = []
    for tx in transactions:
        if require_approved and not tx.is_approved:
            continue
        if account != BankSelection.ALL and tx.bank_account != account:
            continue
        scoped.append(tx)
    return scoped


def valid_transaction_ids(
    transactions: Iterable[Transaction],
    account: str = BankSelection.ALL,
    require_approved: bool = False,
) -> frozenset:
    return frozenset(
        tx.id for tx in scope_transactions(transactions, account, require_approved)
    )


def filter_entries(
    entries: Iterable[LedgerEntry],
    transactions: Iterable[Transaction],
    require_approved: bool = False,
    account: str = BankSelection.ALL,
    case_id: Optional[str] = None,
) -> FilterResult:
    """
    Apply orphan exclusion, approval and account scoping to a case's entries.

    Args:
        entries: Every ledger entry of the case
        transactions: Every transaction of the case
        require_approved: Only keep entries of approved transactions
        account: Bank account selection ("all", "primary" or a named account)
        case_id: Used for log context only

    Returns:
        FilterResult with the surviving entries and the anomalies found
    """
    entries = list(entries)
    transactions = list(transactions)

    known_ids = frozenset(tx.id for tx in transactions)
    allowed_ids = valid_transaction_ids(transactions, account, require_approved)

    kept = []
    orphaned = []
    excluded = []
    for entry in entries:
        if entry.is_adjusting:
            kept.append(entry)
        elif not entry.transaction_id or entry.transaction_id not in known_ids:
            orphaned.append(entry)
        elif entry.transaction_id not in allowed_ids:
            excluded.append(entry)
        else:
            kept.append(entry)

    anomalies = []
    if orphaned:
        if not transactions:
            message = (
                f"No transactions supplied; {len(orphaned)} non-adjusting "
                f"entries were treated as orphaned and excluded."
            )
        else:
            message = (
                f"{len(orphaned)} entries reference missing transactions "
                f"and were excluded."
            )
        anomalies.append(Anomaly(
            code=AnomalyCode.ORPHAN_DATA_ASSUMED,
            message=message,
            details={
                "orphaned_count": len(orphaned),
                "transaction_ids": sorted({e.transaction_id for e in orphaned if e.transaction_id}),
            },
        ))
        logger.warning(
            message,
            extra={
                "case_id": case_id,
                "orphaned_count": len(orphaned),
                "entry_count": len(entries),
                "transaction_count": len(transactions),
            },
        )

    logger.debug(
        "Filtered ledger entries",
        extra={
            "case_id": case_id,
            "kept": len(kept),
            "orphaned": len(orphaned),
            "excluded": len(excluded),
            "require_approved": require_approved,
            "account": account,
        },
    )

    return FilterResult(
        entries=tuple(kept),
        orphaned=tuple(orphaned),
        excluded=tuple(excluded),
        anomalies=tuple(anomalies),
    )
