# cashiering/urls.py
"""
URL configuration for cashiering API.

Endpoints:
- /reports/trial-balance/ - Trial balance from a ledger snapshot
- /reports/receipts-payments/ - Receipts and payments statement
- /vat/allocation/ - VAT allocation proposal and history
- /cases/<case_id>/distributions/ - Distribution declarations
"""

from django.urls import path

from .views import (
    TrialBalanceView,
    ReceiptsAndPaymentsView,
    VatAllocationView,
    DistributionCalculateView,
    DistributionListCreateView,
    DistributionDetailView,
    DistributionExportView,
)

app_name = "cashiering"

urlpatterns = [
    # ==========================================================================
    # Reports
    # ==========================================================================
    path(
        "reports/trial-balance/",
        TrialBalanceView.as_view(),
        name="trial-balance",
    ),
    path(
        "reports/receipts-payments/",
        ReceiptsAndPaymentsView.as_view(),
        name="receipts-payments",
    ),
    path(
        "vat/allocation/",
        VatAllocationView.as_view(),
        name="vat-allocation",
    ),

    # ==========================================================================
    # Distributions
    # ==========================================================================
    path(
        "cases/<str:case_id>/distributions/calculate/",
        DistributionCalculateView.as_view(),
        name="distribution-calculate",
    ),
    path(
        "cases/<str:case_id>/distributions/",
        DistributionListCreateView.as_view(),
        name="distribution-list-create",
    ),
    path(
        "cases/<str:case_id>/distributions/<uuid:public_id>/",
        DistributionDetailView.as_view(),
        name="distribution-detail",
    ),
    path(
        "cases/<str:case_id>/distributions/<uuid:public_id>/export/",
        DistributionExportView.as_view(),
        name="distribution-export",
    ),
]
