# cashiering/vat.py
"""
VAT control account allocation.

Input VAT (VAT001, receivable) and output VAT (VAT002, payable) accumulate
on their own accounts as receipts and payments are posted. Periodically the
balances are cleared into the VAT control account (VAT003) with a pair of
adjusting entries so the statement can show a single VAT position.

Only postings dated after the most recent allocation are swept, so repeated
allocations never move the same VAT twice.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from cashiering.types import (
    MATERIALITY_THRESHOLD,
    VAT_CONTROL_CODE,
    VAT_PAYABLE_CODE,
    VAT_RECEIVABLE_CODE,
    ZERO,
    AccountGroup,
    JournalType,
    LedgerEntry,
    decimal_str,
    to_date,
)


logger = logging.getLogger(__name__)


VAT_ALLOCATION_REFERENCE = "VAT Allocation"

ACCOUNT_NAMES = {
    VAT_RECEIVABLE_CODE: "VAT Receivable",
    VAT_PAYABLE_CODE: "VAT Payable",
    VAT_CONTROL_CODE: "VAT Control Account",
}


class NothingToAllocate(Exception):
    """Raised when neither VAT account carries a material unallocated balance."""
    pass


@dataclass(frozen=True)
class VatAllocation:
    """A proposed allocation; entries are ready to be posted by the caller."""
    allocation_date: date
    since: Optional[date]
    receivable: Decimal
    payable: Decimal
    entries: tuple
    transaction_id: str
    reference: str
    control_code: str = VAT_CONTROL_CODE

    @property
    def net_to_control(self) -> Decimal:
        """Debit movement on the control account (receivable less payable)."""
        return sum(
            (e.debit_minus_credit for e in self.entries if e.account_code == self.control_code),
            ZERO,
        )

    def to_dict(self) -> dict:
        return {
            "allocation_date": self.allocation_date.isoformat(),
            "since": self.since.isoformat() if self.since else None,
            "transaction_id": self.transaction_id,
            "reference": self.reference,
            "vat_receivable": decimal_str(self.receivable),
            "vat_payable": decimal_str(self.payable),
            "net_to_control": decimal_str(self.net_to_control),
            "entries": [
                {
                    "account_code": e.account_code,
                    "account_name": e.account_name,
                    "account_group": e.account_group,
                    "debit_amount": decimal_str(e.debit_amount),
                    "credit_amount": decimal_str(e.credit_amount),
                    "entry_date": e.entry_date.isoformat(),
                    "transaction_id": e.transaction_id,
                    "journal_type": e.journal_type,
                    "description": e.description,
                    "reference": e.reference,
                }
                for e in self.entries
            ],
        }


def is_allocation_entry(entry: LedgerEntry) -> bool:
    return entry.is_adjusting and VAT_ALLOCATION_REFERENCE in entry.reference


def last_allocation_date(entries: Iterable[LedgerEntry]) -> Optional[date]:
    dates = [e.entry_date for e in entries if is_allocation_entry(e) and e.entry_date]
    return max(dates) if dates else None


def unallocated_balances(
    entries: Iterable[LedgerEntry],
    since: Optional[date] = None,
    receivable_code: str = VAT_RECEIVABLE_CODE,
    payable_code: str = VAT_PAYABLE_CODE,
) -> tuple[Decimal, Decimal]:
    """
    Debit-normal balances of the receivable and payable accounts.

    Postings dated on or before `since` have already been allocated and are
    ignored. Returns (receivable, payable); payable is normally negative.
    """
    receivable = ZERO
    payable = ZERO
    for entry in entries:
        if since is not None and (entry.entry_date is None or entry.entry_date <= since):
            continue
        if entry.account_code == receivable_code:
            receivable += entry.debit_minus_credit
        elif entry.account_code == payable_code:
            payable += entry.debit_minus_credit
    return receivable, payable


def _entry(code, debit, credit, allocation_date, transaction_id, reference, description):
    return LedgerEntry(
        account_code=code,
        account_name=ACCOUNT_NAMES.get(code, code),
        account_group=AccountGroup.VAT,
        debit_amount=debit,
        credit_amount=credit,
        entry_date=allocation_date,
        transaction_id=transaction_id,
        journal_type=JournalType.ADJUSTING,
        description=description,
        reference=reference,
    )


def propose_vat_allocation(
    entries: Iterable[LedgerEntry],
    allocation_date,
    transaction_id: Optional[str] = None,
    threshold: Decimal = MATERIALITY_THRESHOLD,
    receivable_code: str = VAT_RECEIVABLE_CODE,
    payable_code: str = VAT_PAYABLE_CODE,
    control_code: str = VAT_CONTROL_CODE,
) -> VatAllocation:
    """
    Build the adjusting entries that clear VAT into the control account.

    - A debit balance on the receivable account is credited out of it and
      debited to control.
    - A credit balance on the payable account is debited out of it and
      credited to control.

    Args:
        entries: Every ledger entry of the case
        allocation_date: Date the allocation is posted on
        transaction_id: Id for the new entries (generated if omitted)
        threshold: Balances at or below this are left alone

    Returns:
        VatAllocation with the proposed entries (nothing is persisted)

    Raises:
        NothingToAllocate: Neither account has a material balance to move
    """
    entries = list(entries)
    allocation_date = to_date(allocation_date)
    if allocation_date is None:
        raise ValueError("allocation_date is required.")

    since = last_allocation_date(entries)
    receivable, payable = unallocated_balances(entries, since, receivable_code, payable_code)

    move_receivable = receivable > threshold
    move_payable = payable < -threshold
    if not move_receivable and not move_payable:
        raise NothingToAllocate(
            f"No unallocated VAT since {since.isoformat() if since else 'appointment'}."
        )

    transaction_id = transaction_id or f"VAT_ALLOCATION_{uuid.uuid4().hex}"
    reference = f"{VAT_ALLOCATION_REFERENCE} {allocation_date:%d/%m/%Y}"

    proposed = []
    if move_receivable:
        description = "Allocate VAT receivable to VAT control"
        proposed.append(_entry(receivable_code, ZERO, receivable, allocation_date,
                               transaction_id, reference, description))
        proposed.append(_entry(control_code, receivable, ZERO, allocation_date,
                               transaction_id, reference, description))
    if move_payable:
        description = "Allocate VAT payable to VAT control"
        proposed.append(_entry(payable_code, -payable, ZERO, allocation_date,
                               transaction_id, reference, description))
        proposed.append(_entry(control_code, ZERO, -payable, allocation_date,
                               transaction_id, reference, description))

    logger.info(
        "VAT allocation proposed",
        extra={
            "transaction_id": transaction_id,
            "since": since.isoformat() if since else None,
            "vat_receivable": str(receivable),
            "vat_payable": str(payable),
        },
    )

    return VatAllocation(
        allocation_date=allocation_date,
        since=since,
        receivable=receivable if move_receivable else ZERO,
        payable=payable if move_payable else ZERO,
        entries=tuple(proposed),
        transaction_id=transaction_id,
        reference=reference,
        control_code=control_code,
    )


# =============================================================================
# History
# =============================================================================

@dataclass(frozen=True)
class VatAllocationRecord:
    transaction_id: str
    allocation_date: Optional[date]
    reference: str
    receivable_allocated: Decimal
    payable_allocated: Decimal
    net_to_control: Decimal

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.transaction_id,
            "allocation_date": self.allocation_date.isoformat() if self.allocation_date else None,
            "reference": self.reference,
            "receivable_allocated": decimal_str(self.receivable_allocated),
            "payable_allocated": decimal_str(self.payable_allocated),
            "net_to_control": decimal_str(self.net_to_control),
        }


def vat_allocation_history(
    entries: Iterable[LedgerEntry],
    receivable_code: str = VAT_RECEIVABLE_CODE,
    payable_code: str = VAT_PAYABLE_CODE,
    control_code: str = VAT_CONTROL_CODE,
) -> list[VatAllocationRecord]:
    """
    Past allocations grouped by transaction id, newest first.

    net_to_control is credit - debit on the control account, so a period
    where output VAT exceeded input VAT shows as positive.
    """
    grouped: dict[str, list] = {}
    for entry in entries:
        if is_allocation_entry(entry):
            grouped.setdefault(entry.transaction_id or "", []).append(entry)

    records = []
    for tx_id, group in grouped.items():
        dates = [e.entry_date for e in group if e.entry_date]
        records.append(VatAllocationRecord(
            transaction_id=tx_id,
            allocation_date=max(dates) if dates else None,
            reference=group[0].reference,
            receivable_allocated=sum(
                (e.credit_amount for e in group if e.account_code == receivable_code), ZERO
            ),
            payable_allocated=sum(
                (e.debit_amount for e in group if e.account_code == payable_code), ZERO
            ),
            net_to_control=sum(
                (-e.debit_minus_credit for e in group if e.account_code == control_code), ZERO
            ),
        ))

    records.sort(key=lambda r: (r.allocation_date or date.min, r.transaction_id), reverse=True)
    return records
