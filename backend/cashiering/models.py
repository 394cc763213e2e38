# cashiering/models.py
"""
Cashiering models.

DistributionDeclaration is the only record the cashiering layer writes.
Ledger entries, transactions and claims belong to the case-management
application and reach us as plain data.
"""

import uuid
from decimal import Decimal

from django.db import models

from cashiering.types import CreditorType


class DistributionDeclarationQuerySet(models.QuerySet):
    def for_case(self, case_id):
        return self.filter(case_id=str(case_id))


class DistributionDeclaration(models.Model):
    """
    A declared dividend, snapshotted at declaration time.

    Every figure needed to reproduce the schedule is stored on the row, so
    later changes to claim balances never alter a historical declaration.
    Rows are immutable once written; a correction is a delete followed by a
    new declaration.
    """

    DISTRIBUTION_TYPE_CHOICES = [
        (creditor_type, CreditorType.LABELS[creditor_type])
        for creditor_type in CreditorType.CHOICES
    ]

    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    case_id = models.CharField(max_length=64, db_index=True)
    distribution_type = models.CharField(max_length=32, choices=DISTRIBUTION_TYPE_CHOICES)

    sum_to_distribute = models.DecimalField(max_digits=18, decimal_places=2)
    sum_to_retain = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    net_distribution = models.DecimalField(max_digits=18, decimal_places=2)
    total_claims = models.DecimalField(max_digits=18, decimal_places=2)
    dividend_rate = models.DecimalField(max_digits=24, decimal_places=8)
    dividend_rate_label = models.CharField(max_length=64)

    # [{claim_name, creditor_type, claim_amount, distribution_amount, payable_amount}]
    per_claim_distributions = models.JSONField(default=list, blank=True)
    ineligible_claims = models.JSONField(default=list, blank=True)

    declared_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = DistributionDeclarationQuerySet.as_manager()

    class Meta:
        ordering = ["-declared_date", "-created_at", "-id"]
        indexes = [
            models.Index(fields=["case_id", "declared_date"], name="cashiering_case_declared_idx"),
        ]

    def __str__(self):
        return f"{self.case_id}: {self.get_distribution_type_display()} {self.dividend_rate_label} on {self.declared_date}"

    def save(self, *args, **kwargs):
        """Only new declarations can be saved."""
        if not self._state.adding:
            raise ValueError(
                "Distribution declarations are immutable. "
                "Delete the declaration and declare it again to correct it."
            )
        super().save(*args, **kwargs)

    @property
    def total_payable(self) -> Decimal:
        return sum(
            (Decimal(row["payable_amount"]) for row in self.per_claim_distributions),
            Decimal("0.00"),
        )

    def to_dict(self) -> dict:
        return {
            "public_id": str(self.public_id),
            "case_id": self.case_id,
            "distribution_type": self.distribution_type,
            "sum_to_distribute": str(self.sum_to_distribute),
            "sum_to_retain": str(self.sum_to_retain),
            "net_distribution": str(self.net_distribution),
            "total_claims": str(self.total_claims),
            "dividend_rate": str(self.dividend_rate),
            "dividend_rate_label": self.dividend_rate_label,
            "per_claim_distributions": self.per_claim_distributions,
            "ineligible_claims": self.ineligible_claims,
            "declared_date": self.declared_date.isoformat(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
