"""
URL configuration for the settlement engine.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/settlements/           - Admin settlement endpoints
        milestones/summary/        - Held/released milestone summary (GET)
        milestones/{id}/release/   - Release completion milestone (POST)
        refunds/{id}/release/      - Complete refund (POST)
        refunds/{id}/reject/       - Reject refund (POST)
        wallets/{vendor_id}/       - Vendor wallet (GET)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("settlements/", include("settlements.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Settlement Admin"
admin.site.site_title = "Settlement Portal"
admin.site.index_title = "Escrow, refunds and vendor wallets"
