# cashiering/serializers.py
"""
Serializers for the cashiering API.

Request serializers validate the ledger data the caller sends with each
report request; the computation itself happens in the domain modules and
commands. DistributionDeclarationSerializer formats stored declarations.
"""

from rest_framework import serializers

from .models import DistributionDeclaration
from .types import BankSelection, CreditorType, JournalType, TransactionStatus


MONEY = {"max_digits": 18, "decimal_places": 2}


# =============================================================================
# Ledger input
# =============================================================================

class LedgerEntryInputSerializer(serializers.Serializer):
    id = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    account_code = serializers.CharField(max_length=20)
    account_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    account_group = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    account_type = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    debit_amount = serializers.DecimalField(min_value=0, required=False, default=0, **MONEY)
    credit_amount = serializers.DecimalField(min_value=0, required=False, default=0, **MONEY)
    entry_date = serializers.DateField(required=False, allow_null=True, default=None)
    transaction_id = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    journal_type = serializers.CharField(max_length=20, required=False, allow_blank=True, default=JournalType.RECEIPTS)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    reference = serializers.CharField(required=False, allow_blank=True, default="")


class TransactionInputSerializer(serializers.Serializer):
    id = serializers.CharField()
    status = serializers.ChoiceField(choices=TransactionStatus.CHOICES, default=TransactionStatus.DRAFT)
    transaction_type = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    target_account = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    amount = serializers.DecimalField(required=False, default=0, **MONEY)


class ClaimInputSerializer(serializers.Serializer):
    creditor_name = serializers.CharField(max_length=255)
    balance_submitted = serializers.DecimalField(required=False, default=0, **MONEY)
    creditor_type = serializers.ChoiceField(choices=CreditorType.CHOICES, default=CreditorType.UNSECURED)


class ShareholderInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    shares_held = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=0)
    nominal_value = serializers.DecimalField(
        max_digits=18, decimal_places=4, min_value=0,
        help_text="Nominal value per share in pence",
    )


class CaseContextSerializer(serializers.Serializer):
    case_id = serializers.CharField(max_length=64)
    case_type = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    appointment_date = serializers.DateField()
    period_from = serializers.DateField()
    period_to = serializers.DateField()
    selected_account = serializers.CharField(required=False, allow_blank=True, default=BankSelection.ALL)

    def validate(self, attrs):
        if attrs["period_from"] > attrs["period_to"]:
            raise serializers.ValidationError({"period_from": "Must be on or before period_to."})
        return attrs


# =============================================================================
# Report requests
# =============================================================================

class TrialBalanceRequestSerializer(serializers.Serializer):
    entries = LedgerEntryInputSerializer(many=True)
    transactions = TransactionInputSerializer(many=True, required=False, default=list)
    chart_of_accounts = serializers.DictField(
        child=serializers.DictField(child=serializers.CharField(allow_blank=True)),
        required=False,
        allow_null=True,
        default=None,
    )
    as_of = serializers.DateField(required=False, allow_null=True, default=None)
    require_approved = serializers.BooleanField(required=False, default=False)
    selected_account = serializers.CharField(required=False, allow_blank=True, default=BankSelection.ALL)


class ReceiptsAndPaymentsRequestSerializer(serializers.Serializer):
    case = CaseContextSerializer()
    entries = LedgerEntryInputSerializer(many=True)
    transactions = TransactionInputSerializer(many=True, required=False, default=list)
    claims = ClaimInputSerializer(many=True, required=False, default=list)
    estimates = serializers.DictField(child=serializers.DecimalField(**MONEY), required=False, default=dict)


class VatAllocationRequestSerializer(serializers.Serializer):
    entries = LedgerEntryInputSerializer(many=True)
    allocation_date = serializers.DateField()
    transaction_id = serializers.CharField(required=False, allow_blank=True, default="")


# =============================================================================
# Distributions
# =============================================================================

class DistributionCalculateSerializer(serializers.Serializer):
    distribution_type = serializers.ChoiceField(choices=CreditorType.CHOICES)
    sum_to_distribute = serializers.DecimalField(**MONEY)
    sum_to_retain = serializers.DecimalField(required=False, default=0, **MONEY)
    claims = ClaimInputSerializer(many=True, required=False, default=list)
    shareholders = ShareholderInputSerializer(many=True, required=False, default=list)


class DistributionDeclareSerializer(DistributionCalculateSerializer):
    declared_date = serializers.DateField()


class DistributionDeclarationSerializer(serializers.ModelSerializer):
    distribution_type_display = serializers.CharField(source="get_distribution_type_display", read_only=True)

    class Meta:
        model = DistributionDeclaration
        fields = [
            "public_id",
            "case_id",
            "distribution_type",
            "distribution_type_display",
            "sum_to_distribute",
            "sum_to_retain",
            "net_distribution",
            "total_claims",
            "dividend_rate",
            "dividend_rate_label",
            "per_claim_distributions",
            "ineligible_claims",
            "declared_date",
            "created_at",
        ]
        read_only_fields = fields
