# tests/test_api.py
"""
API tests for the cashiering endpoints.
"""

from decimal import Decimal

import pytest
from django.urls import reverse

from cashiering.models import DistributionDeclaration
from cashiering.types import JournalType

from conftest import entry_payload, transaction_payload


CASE = {
    "case_id": "CASE-001",
    "case_type": "CVL",
    "appointment_date": "2024-01-01",
    "period_from": "2024-07-01",
    "period_to": "2024-12-31",
}

CLAIMS = [
    {"creditor_name": "Acme Supplies Ltd", "balance_submitted": "5000", "creditor_type": "unsecured"},
]

DECLARATION = {
    "distribution_type": "unsecured",
    "sum_to_distribute": "1000.00",
    "sum_to_retain": "0.00",
    "declared_date": "2024-10-01",
    "claims": [
        {"creditor_name": "A", "balance_submitted": "600.00", "creditor_type": "unsecured"},
        {"creditor_name": "B", "balance_submitted": "400.00", "creditor_type": "unsecured"},
    ],
}


@pytest.fixture
def ledger_payload(entries, transactions):
    return {
        "entries": [entry_payload(e) for e in entries],
        "transactions": [transaction_payload(tx) for tx in transactions],
    }


@pytest.mark.django_db
class TestAuthentication:

    def test_reports_require_login(self, api_client):
        response = api_client.post(reverse("cashiering:trial-balance"), {"entries": []}, format="json")

        assert response.status_code in (401, 403)


@pytest.mark.django_db
class TestReportEndpoints:

    def test_trial_balance(self, authenticated_client, ledger_payload):
        payload = {**ledger_payload, "require_approved": True}

        response = authenticated_client.post(reverse("cashiering:trial-balance"), payload, format="json")

        assert response.status_code == 200
        codes = {row["account_code"]: row["net_balance"] for row in response.data["accounts"]}
        assert codes["BNK01"] == "460.00"
        assert response.data["is_balanced"] is True
        assert response.data["anomalies"] == []

    def test_trial_balance_reports_orphans(self, authenticated_client, ledger_payload):
        payload = {**ledger_payload, "transactions": []}

        response = authenticated_client.post(reverse("cashiering:trial-balance"), payload, format="json")

        assert response.status_code == 200
        assert response.data["anomalies"][0]["code"] == "OrphanDataAssumed"
        # Only the VAT allocation survives.
        assert [row["account_code"] for row in response.data["accounts"]] == ["VAT001", "VAT003"]

    def test_trial_balance_rejects_negative_amounts(self, authenticated_client):
        payload = {"entries": [{"account_code": "AA01", "debit_amount": "-1"}]}

        response = authenticated_client.post(reverse("cashiering:trial-balance"), payload, format="json")

        assert response.status_code == 400

    def test_receipts_and_payments(self, authenticated_client, ledger_payload):
        payload = {
            **ledger_payload,
            "case": CASE,
            "claims": CLAIMS,
            "estimates": {"Book Debts": "1500.00"},
        }

        response = authenticated_client.post(reverse("cashiering:receipts-payments"), payload, format="json")

        assert response.status_code == 200
        assert response.data["is_reconciled"] is True
        assert response.data["total_represented"] == "500.00"
        assert response.data["estimate_heading"] == "SoA"
        realisations = response.data["sections"][0]
        assert realisations["lines"][0]["estimate"] == "1500.00"

    def test_receipts_and_payments_mismatch_is_not_an_error(self, authenticated_client, entries, transactions):
        payload = {
            "case": CASE,
            "entries": [entry_payload(e) for e in entries if e.journal_type != JournalType.ADJUSTING],
            "transactions": [transaction_payload(tx) for tx in transactions],
            "claims": CLAIMS,
        }

        response = authenticated_client.post(reverse("cashiering:receipts-payments"), payload, format="json")

        assert response.status_code == 200
        assert response.data["is_reconciled"] is False
        assert response.data["anomalies"][-1]["code"] == "ReconciliationMismatch"
        assert response.data["anomalies"][-1]["details"]["difference"] == "40.00"

    def test_receipts_and_payments_validates_period(self, authenticated_client):
        payload = {"case": {**CASE, "period_from": "2025-01-01"}, "entries": []}

        response = authenticated_client.post(reverse("cashiering:receipts-payments"), payload, format="json")

        assert response.status_code == 400

    def test_vat_allocation(self, authenticated_client, ledger_payload):
        extra = {
            "account_code": "VAT002", "credit_amount": "25.00", "entry_date": "2024-11-01",
            "transaction_id": "T1",
        }
        payload = {
            "entries": ledger_payload["entries"] + [extra],
            "allocation_date": "2024-12-31",
            "transaction_id": "VAT_ALLOCATION_2",
        }

        response = authenticated_client.post(reverse("cashiering:vat-allocation"), payload, format="json")

        assert response.status_code == 200
        assert response.data["since"] == "2024-09-30"
        assert response.data["vat_payable"] == "-25.00"
        assert [e["account_code"] for e in response.data["entries"]] == ["VAT002", "VAT003"]
        assert response.data["history"][0]["transaction_id"] == "VAT_ALLOCATION_1"

    def test_vat_nothing_to_allocate(self, authenticated_client, ledger_payload):
        payload = {"entries": ledger_payload["entries"], "allocation_date": "2024-12-31"}

        response = authenticated_client.post(reverse("cashiering:vat-allocation"), payload, format="json")

        assert response.status_code == 400
        assert "No unallocated VAT" in response.data["detail"]


@pytest.mark.django_db
class TestDistributionEndpoints:

    def test_calculate_does_not_persist(self, authenticated_client):
        url = reverse("cashiering:distribution-calculate", kwargs={"case_id": "CASE-001"})

        response = authenticated_client.post(url, DECLARATION, format="json")

        assert response.status_code == 200
        assert response.data["dividend_rate_label"] == "100.00p"
        rows = response.data["per_claim_distributions"]
        assert [row["distribution_amount"] for row in rows] == ["600.00", "400.00"]
        assert DistributionDeclaration.objects.count() == 0

    def test_calculate_invalid_distribution(self, authenticated_client):
        url = reverse("cashiering:distribution-calculate", kwargs={"case_id": "CASE-001"})
        payload = {**DECLARATION, "sum_to_distribute": "100", "sum_to_retain": "150"}

        response = authenticated_client.post(url, payload, format="json")

        assert response.status_code == 400
        assert "Net distribution must be positive" in response.data["detail"]

    def test_calculate_members(self, authenticated_client):
        url = reverse("cashiering:distribution-calculate", kwargs={"case_id": "CASE-001"})
        payload = {
            "distribution_type": "members",
            "sum_to_distribute": "50",
            "sum_to_retain": "10",
            "shareholders": [{"name": "X", "shares_held": "10", "nominal_value": "100"}],
        }

        response = authenticated_client.post(url, payload, format="json")

        assert response.status_code == 200
        assert response.data["dividend_rate_label"] == "£4.00 per share"

    def test_declare_list_and_retrieve(self, authenticated_client):
        url = reverse("cashiering:distribution-list-create", kwargs={"case_id": "CASE-001"})

        created = authenticated_client.post(url, DECLARATION, format="json")
        listed = authenticated_client.get(url)

        assert created.status_code == 201
        assert created.data["net_distribution"] == "1000.00"
        assert listed.status_code == 200
        assert [d["public_id"] for d in listed.data] == [created.data["public_id"]]

        detail = authenticated_client.get(reverse(
            "cashiering:distribution-detail",
            kwargs={"case_id": "CASE-001", "public_id": created.data["public_id"]},
        ))
        assert detail.status_code == 200
        assert detail.data["distribution_type_display"] == "Unsecured"

    def test_declare_no_eligible_claims(self, authenticated_client):
        url = reverse("cashiering:distribution-list-create", kwargs={"case_id": "CASE-001"})
        payload = {**DECLARATION, "claims": [{"creditor_name": "A", "balance_submitted": "0"}]}

        response = authenticated_client.post(url, payload, format="json")

        assert response.status_code == 400
        assert DistributionDeclaration.objects.count() == 0

    def test_detail_other_case_is_404(self, authenticated_client):
        created = authenticated_client.post(
            reverse("cashiering:distribution-list-create", kwargs={"case_id": "CASE-001"}),
            DECLARATION, format="json",
        )

        response = authenticated_client.get(reverse(
            "cashiering:distribution-detail",
            kwargs={"case_id": "CASE-002", "public_id": created.data["public_id"]},
        ))

        assert response.status_code == 404

    def test_delete_requires_confirm(self, authenticated_client):
        created = authenticated_client.post(
            reverse("cashiering:distribution-list-create", kwargs={"case_id": "CASE-001"}),
            DECLARATION, format="json",
        )
        url = reverse(
            "cashiering:distribution-detail",
            kwargs={"case_id": "CASE-001", "public_id": created.data["public_id"]},
        )

        refused = authenticated_client.delete(url)
        deleted = authenticated_client.delete(f"{url}?confirm=true")

        assert refused.status_code == 400
        assert deleted.status_code == 204
        assert DistributionDeclaration.objects.count() == 0

    def test_export_csv(self, authenticated_client):
        created = authenticated_client.post(
            reverse("cashiering:distribution-list-create", kwargs={"case_id": "CASE-001"}),
            DECLARATION, format="json",
        )
        url = reverse(
            "cashiering:distribution-export",
            kwargs={"case_id": "CASE-001", "public_id": created.data["public_id"]},
        )

        response = authenticated_client.get(url, {"format": "csv"})

        assert response.status_code == 200
        assert response["Content-Type"].startswith("text/csv")
        assert 'filename="distribution_CASE-001_20241001.csv"' in response["Content-Disposition"]
        body = response.content.decode("utf-8-sig")
        assert body.splitlines()[0] == "Creditor,Class,Agreed Claim,Distribution,Payable"

    def test_export_invalid_format(self, authenticated_client):
        created = authenticated_client.post(
            reverse("cashiering:distribution-list-create", kwargs={"case_id": "CASE-001"}),
            DECLARATION, format="json",
        )
        url = reverse(
            "cashiering:distribution-export",
            kwargs={"case_id": "CASE-001", "public_id": created.data["public_id"]},
        )

        response = authenticated_client.get(url, {"format": "pdf"})

        assert response.status_code == 400

    def test_declared_figures_are_decimal_strings(self, authenticated_client):
        created = authenticated_client.post(
            reverse("cashiering:distribution-list-create", kwargs={"case_id": "CASE-001"}),
            DECLARATION, format="json",
        )

        assert Decimal(created.data["dividend_rate"]) == Decimal("100")
