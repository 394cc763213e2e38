# cashiering/views.py
"""
Thin views over the cashiering domain modules.

Views handle: HTTP parsing, authentication, response formatting.
The domain modules compute; commands persist declarations.

Report endpoints are stateless: the caller posts the case's ledger
snapshot and receives the computed report, with any anomalies attached.
"""

import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .balances import trial_balance
from .commands import declare_distribution, delete_distribution, list_distributions
from .conf import get_setting
from .distributions import DistributionError, calculate, prepare_claims
from .filters import filter_entries
from .models import DistributionDeclaration
from .serializers import (
    DistributionCalculateSerializer,
    DistributionDeclarationSerializer,
    DistributionDeclareSerializer,
    ReceiptsAndPaymentsRequestSerializer,
    TrialBalanceRequestSerializer,
    VatAllocationRequestSerializer,
)
from .statements import build_receipts_and_payments
from .types import CaseContext, Claim, LedgerEntry, Shareholder, Transaction
from .vat import NothingToAllocate, propose_vat_allocation, vat_allocation_history


logger = logging.getLogger(__name__)


def _entries(data):
    return [LedgerEntry.from_dict(row) for row in data]


def _transactions(data):
    return [Transaction.from_dict(row) for row in data]


def _claims(data):
    return [Claim.from_dict(row) for row in data]


def _shareholders(data):
    return [Shareholder.from_dict(row) for row in data]


# =============================================================================
# Reports
# =============================================================================

class TrialBalanceView(APIView):
    """
    POST /api/cashiering/reports/trial-balance/

    Body: entries, transactions, optional chart_of_accounts, as_of,
    require_approved, selected_account.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = TrialBalanceRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        filtered = filter_entries(
            _entries(data["entries"]),
            _transactions(data["transactions"]),
            require_approved=data["require_approved"],
            account=data["selected_account"] or "all",
        )
        report = trial_balance(
            filtered.entries,
            chart_of_accounts=data["chart_of_accounts"],
            as_of=data["as_of"],
            threshold=get_setting("MATERIALITY_THRESHOLD"),
        )

        payload = report.to_dict()
        payload["anomalies"] = [anomaly.to_dict() for anomaly in filtered.anomalies]
        return Response(payload)


class ReceiptsAndPaymentsView(APIView):
    """
    POST /api/cashiering/reports/receipts-payments/

    Body: case, entries, transactions, claims, optional estimates.
    A statement that does not reconcile is still returned (200) with a
    ReconciliationMismatch anomaly.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ReceiptsAndPaymentsRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        statement = build_receipts_and_payments(
            CaseContext(**data["case"]),
            _entries(data["entries"]),
            _transactions(data["transactions"]),
            claims=_claims(data["claims"]),
            estimates=data["estimates"],
            threshold=get_setting("MATERIALITY_THRESHOLD"),
            tolerance=get_setting("RECONCILIATION_TOLERANCE"),
            vat_control_code=get_setting("VAT_CONTROL_CODE"),
            interest_bearing_code=get_setting("INTEREST_BEARING_CODE"),
        )
        return Response(statement.to_dict())


class VatAllocationView(APIView):
    """
    POST /api/cashiering/vat/allocation/

    Proposes the adjusting entries for a VAT allocation. Nothing is stored;
    the caller posts the returned entries to its ledger.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = VatAllocationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        entries = _entries(data["entries"])
        codes = {
            "receivable_code": get_setting("VAT_RECEIVABLE_CODE"),
            "payable_code": get_setting("VAT_PAYABLE_CODE"),
            "control_code": get_setting("VAT_CONTROL_CODE"),
        }
        history = [record.to_dict() for record in vat_allocation_history(entries, **codes)]

        try:
            allocation = propose_vat_allocation(
                entries,
                data["allocation_date"],
                transaction_id=data["transaction_id"] or None,
                threshold=get_setting("MATERIALITY_THRESHOLD"),
                **codes,
            )
        except NothingToAllocate as exc:
            return Response(
                {"detail": str(exc), "history": history},
                status=status.HTTP_400_BAD_REQUEST,
            )

        payload = allocation.to_dict()
        payload["history"] = history
        return Response(payload)


# =============================================================================
# Distributions
# =============================================================================

class DistributionCalculateView(APIView):
    """
    POST /api/cashiering/cases/<case_id>/distributions/calculate/

    Previews a distribution without declaring it.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, case_id):
        serializer = DistributionCalculateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        claims = prepare_claims(
            data["distribution_type"],
            _claims(data["claims"]),
            _shareholders(data["shareholders"]),
        )
        try:
            result = calculate(
                claims,
                data["sum_to_distribute"],
                data["sum_to_retain"],
                mode=data["distribution_type"],
                currency_symbol=get_setting("CURRENCY_SYMBOL"),
            )
        except DistributionError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        payload = result.to_dict()
        payload["case_id"] = case_id
        return Response(payload)


class DistributionListCreateView(APIView):
    """
    GET /api/cashiering/cases/<case_id>/distributions/ -> declarations, newest first
    POST /api/cashiering/cases/<case_id>/distributions/ -> declare a distribution
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, case_id):
        declarations = list_distributions(case_id)
        return Response(DistributionDeclarationSerializer(declarations, many=True).data)

    def post(self, request, case_id):
        serializer = DistributionDeclareSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = declare_distribution(
            case_id=case_id,
            distribution_type=data["distribution_type"],
            sum_to_distribute=data["sum_to_distribute"],
            sum_to_retain=data["sum_to_retain"],
            claims=_claims(data["claims"]),
            shareholders=_shareholders(data["shareholders"]),
            declared_date=data["declared_date"],
        )

        if not result.success:
            return Response(
                {"detail": result.error},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(
            DistributionDeclarationSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )


class DistributionDetailView(APIView):
    """
    GET /api/cashiering/cases/<case_id>/distributions/<public_id>/
    DELETE /api/cashiering/cases/<case_id>/distributions/<public_id>/?confirm=true
    """
    permission_classes = [IsAuthenticated]

    def get_object(self, case_id, public_id):
        return get_object_or_404(DistributionDeclaration, case_id=case_id, public_id=public_id)

    def get(self, request, case_id, public_id):
        declaration = self.get_object(case_id, public_id)
        return Response(DistributionDeclarationSerializer(declaration).data)

    def delete(self, request, case_id, public_id):
        declaration = self.get_object(case_id, public_id)
        confirm = request.query_params.get("confirm", "false").lower() == "true"

        result = delete_distribution(case_id, declaration.public_id, confirm=confirm)

        if not result.success:
            return Response(
                {"detail": result.error},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(status=status.HTTP_204_NO_CONTENT)


class DistributionExportView(APIView):
    """
    GET /api/cashiering/cases/<case_id>/distributions/<public_id>/export/

    Query params:
        format: xlsx, csv, txt (default: xlsx)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, case_id, public_id):
        from .exports import (
            create_export_response,
            distribution_export_subtitle,
            distribution_export_title,
            prepare_distribution_export_data,
            DISTRIBUTION_EXPORT_COLUMNS,
            ExportFormat,
        )

        export_format = request.query_params.get("format", ExportFormat.EXCEL)
        if export_format not in ExportFormat.CHOICES:
            return Response(
                {"detail": f"Invalid format. Must be one of: {', '.join(ExportFormat.CHOICES)}"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        declaration = get_object_or_404(DistributionDeclaration, case_id=case_id, public_id=public_id)

        logger.info(
            "Distribution exported",
            extra={"case_id": case_id, "public_id": str(public_id), "format": export_format},
        )

        return create_export_response(
            data=prepare_distribution_export_data(declaration),
            columns=DISTRIBUTION_EXPORT_COLUMNS,
            format=export_format,
            filename=f"distribution_{case_id}_{declaration.declared_date:%Y%m%d}",
            title=distribution_export_title(declaration),
            subtitle=distribution_export_subtitle(declaration),
        )
