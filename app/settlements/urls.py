"""
URL configuration for the settlements app.

Routes:
    - POST milestones/<id>/release/ - Release a completion milestone
    - GET  milestones/summary/      - Held/released milestone summary
    - POST refunds/<id>/release/    - Complete a refund
    - POST refunds/<id>/reject/     - Reject a refund
    - GET  wallets/<vendor_id>/     - Vendor wallet and recent transactions

All routes are prefixed with /api/v1/settlements/ when included in the main URLconf.
"""

from django.urls import path

from settlements.views import (
    MilestoneReleaseView,
    MilestoneSummaryView,
    RefundRejectView,
    RefundReleaseView,
    VendorWalletView,
)

app_name = "settlements"

urlpatterns = [
    # Milestones
    path("milestones/summary/", MilestoneSummaryView.as_view(), name="milestone_summary"),
    path(
        "milestones/<uuid:milestone_id>/release/",
        MilestoneReleaseView.as_view(),
        name="milestone_release",
    ),
    # Refunds
    path(
        "refunds/<uuid:refund_id>/release/",
        RefundReleaseView.as_view(),
        name="refund_release",
    ),
    path(
        "refunds/<uuid:refund_id>/reject/",
        RefundRejectView.as_view(),
        name="refund_reject",
    ),
    # Wallets
    path("wallets/<uuid:vendor_id>/", VendorWalletView.as_view(), name="vendor_wallet"),
]
