# tests/conftest.py
"""
Pytest fixtures for cashiering tests.

The standard ledger (balanced_ledger) is a small CVL case:
- 01/03/2024 book debts of 1,000.00 collected (approved)
- 01/08/2024 agents' fees of 200.00 + 40.00 VAT paid (approved)
- 01/09/2024 dividend of 300.00 paid to Acme Supplies Ltd (approved)
- 30/09/2024 input VAT of 40.00 allocated to the VAT control account
- 01/10/2024 stock sale of 500.00 still in draft (must not count)

Reporting period is 01/07/2024 - 31/12/2024, appointment 01/01/2024.
"""

from datetime import date
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from cashiering.types import (
    AccountGroup,
    CaseContext,
    Claim,
    CreditorType,
    JournalType,
    LedgerEntry,
    Transaction,
    TransactionStatus,
)


User = get_user_model()


BANK = {"account_code": "BNK01", "account_name": "Bank Current Account", "account_group": AccountGroup.BANK_ACCOUNTS}


def make_entry(account_code, debit="0", credit="0", entry_date=date(2024, 8, 1), transaction_id="T1", **kwargs):
    """Build a LedgerEntry with sensible defaults."""
    return LedgerEntry(
        account_code=account_code,
        debit_amount=Decimal(debit),
        credit_amount=Decimal(credit),
        entry_date=entry_date,
        transaction_id=transaction_id,
        **kwargs,
    )


def make_transaction(tx_id, status=TransactionStatus.APPROVED, target_account=None, **kwargs):
    return Transaction(id=tx_id, status=status, target_account=target_account, **kwargs)


# =============================================================================
# Case Fixtures
# =============================================================================

@pytest.fixture
def case():
    """A CVL case reporting on the second half of 2024."""
    return CaseContext(
        case_id="CASE-001",
        case_type="CVL",
        appointment_date=date(2024, 1, 1),
        period_from=date(2024, 7, 1),
        period_to=date(2024, 12, 31),
    )


@pytest.fixture
def mvl_case():
    return CaseContext(
        case_id="CASE-002",
        case_type="MVL",
        appointment_date=date(2024, 1, 1),
        period_from=date(2024, 1, 1),
        period_to=date(2024, 12, 31),
    )


# =============================================================================
# Ledger Fixtures
# =============================================================================

@pytest.fixture
def transactions():
    return [
        make_transaction("T1", transaction_type="receipt", amount="1000.00"),
        make_transaction("T2", transaction_type="payment", amount="240.00"),
        make_transaction("T3", transaction_type="payment", amount="300.00"),
        make_transaction("T4", status=TransactionStatus.DRAFT, transaction_type="receipt", amount="500.00"),
    ]


@pytest.fixture
def entries():
    receipt = date(2024, 3, 1)
    fees = date(2024, 8, 1)
    dividend = date(2024, 9, 1)
    vat_date = date(2024, 9, 30)
    draft = date(2024, 10, 1)
    return [
        # T1: book debts
        make_entry(debit="1000.00", entry_date=receipt, transaction_id="T1", **BANK),
        make_entry("AA01", credit="1000.00", entry_date=receipt, transaction_id="T1",
                   account_name="Book Debts", account_type="AA", account_group="Asset Realisations"),
        # T2: agents' fees plus VAT
        make_entry(credit="240.00", entry_date=fees, transaction_id="T2", **BANK),
        make_entry("CO01", debit="200.00", entry_date=fees, transaction_id="T2",
                   account_name="Agents Fees", account_type="CO", account_group="Cost of Realisations"),
        make_entry("VAT001", debit="40.00", entry_date=fees, transaction_id="T2",
                   account_name="VAT Receivable", account_group=AccountGroup.VAT),
        # T3: unsecured dividend
        make_entry(credit="300.00", entry_date=dividend, transaction_id="T3",
                   description="Dividend to Acme Supplies Ltd", **BANK),
        make_entry("UC01", debit="300.00", entry_date=dividend, transaction_id="T3",
                   account_name="Unsecured Creditors", description="Dividend to Acme Supplies Ltd"),
        # VAT allocation (adjusting, no parent transaction)
        make_entry("VAT001", credit="40.00", entry_date=vat_date, transaction_id="VAT_ALLOCATION_1",
                   account_name="VAT Receivable", account_group=AccountGroup.VAT,
                   journal_type=JournalType.ADJUSTING, reference="VAT Allocation 30/09/2024"),
        make_entry("VAT003", debit="40.00", entry_date=vat_date, transaction_id="VAT_ALLOCATION_1",
                   account_name="VAT Control Account", account_group=AccountGroup.VAT,
                   journal_type=JournalType.ADJUSTING, reference="VAT Allocation 30/09/2024"),
        # T4: draft stock sale
        make_entry(debit="500.00", entry_date=draft, transaction_id="T4", **BANK),
        make_entry("AA02", credit="500.00", entry_date=draft, transaction_id="T4",
                   account_name="Stock", account_type="AA", account_group="Asset Realisations"),
    ]


@pytest.fixture
def claims():
    return [
        Claim("Acme Supplies Ltd", "5000.00", CreditorType.UNSECURED),
        Claim("HMRC", "1200.00", CreditorType.SECONDARY_PREFERENTIAL),
        Claim("Withdrawn Creditor", "0.00", CreditorType.UNSECURED),
    ]


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def user(db):
    return User.objects.create_user(username="cashier", password="testpass123")


@pytest.fixture
def api_client():
    """Create a DRF API client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, user):
    """Create an authenticated API client."""
    api_client.force_authenticate(user=user)
    return api_client


def entry_payload(entry: LedgerEntry) -> dict:
    return {
        "account_code": entry.account_code,
        "account_name": entry.account_name,
        "account_group": entry.account_group,
        "account_type": entry.account_type,
        "debit_amount": str(entry.debit_amount),
        "credit_amount": str(entry.credit_amount),
        "entry_date": entry.entry_date.isoformat() if entry.entry_date else None,
        "transaction_id": entry.transaction_id,
        "journal_type": entry.journal_type,
        "description": entry.description,
        "reference": entry.reference,
    }


def transaction_payload(tx: Transaction) -> dict:
    return {
        "id": tx.id,
        "status": tx.status,
        "transaction_type": tx.transaction_type,
        "target_account": tx.target_account,
        "amount": str(tx.amount),
    }
