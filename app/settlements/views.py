"""
Admin API views for settlements.

Provides:
- MilestoneReleaseView: Release a completion milestone from escrow
- MilestoneSummaryView: Held/released milestone counts for the dashboard
- RefundReleaseView: Complete a pending refund
- RefundRejectView: Reject a pending refund
- VendorWalletView: Vendor wallet balance and recent transactions

Endpoints:
    POST /api/v1/settlements/milestones/{milestone_id}/release/
    GET  /api/v1/settlements/milestones/summary/
    POST /api/v1/settlements/refunds/{refund_id}/release/
    POST /api/v1/settlements/refunds/{refund_id}/reject/
    GET  /api/v1/settlements/wallets/{vendor_id}/

Security:
    - All endpoints require a staff user (IsAdminUser)
    - The acting admin's id is recorded as processed_by / created_by

Error responses use BaseApplicationError.to_dict():
    400 - request not allowed (SettlementValidationError)
    404 - record missing
    409 - record is not in the required state
    500 - a step failed (rolled back) or a partial failure needs an operator
"""

from __future__ import annotations

import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError, NotFoundError

from settlements.exceptions import (
    InvalidStateTransitionError,
    SettlementValidationError,
)
from settlements.serializers import (
    MilestoneReleaseResultSerializer,
    MilestoneSummaryQuerySerializer,
    MilestoneSummarySerializer,
    RefundRejectSerializer,
    RefundReleaseResultSerializer,
    RefundSerializer,
    VendorWalletSerializer,
    WalletQuerySerializer,
    WalletTransactionSerializer,
)
from settlements.services import SettlementOrchestrator
from settlements.wallet import WalletNotFound, wallet_ledger

logger = logging.getLogger(__name__)


def error_response(exc: BaseApplicationError) -> Response:
    """Map a settlement error to its HTTP response."""
    if isinstance(exc, InvalidStateTransitionError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, SettlementValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, (NotFoundError, WalletNotFound)):
        status_code = status.HTTP_404_NOT_FOUND
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return Response(exc.to_dict(), status=status_code)


def _admin_id(request) -> str:
    return str(request.user.pk)


class MilestoneReleaseView(APIView):
    """
    Release a completion milestone.

    POST /api/v1/settlements/milestones/{milestone_id}/release/

    Response:
        200 OK: Milestone released, vendor wallet credited
        400 Bad Request: Milestone type cannot be released by hand
        404 Not Found: Milestone doesn't exist
        409 Conflict: Milestone is not held in escrow
        500 Internal Server Error: A step failed, nothing was written
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="release_milestone",
        summary="Release completion milestone",
        description=(
            "Release a completion milestone held in escrow. Deducts the company "
            "commission, records the escrow transaction and credits the vendor "
            "wallet in a single transaction."
        ),
        request=None,
        responses={
            200: OpenApiResponse(response=MilestoneReleaseResultSerializer),
            400: OpenApiResponse(description="Milestone cannot be released manually"),
            404: OpenApiResponse(description="Milestone not found"),
            409: OpenApiResponse(description="Milestone is not held in escrow"),
            500: OpenApiResponse(description="Release failed and was rolled back"),
        },
        tags=["Settlements - Milestones"],
    )
    def post(self, request, milestone_id):
        try:
            result = SettlementOrchestrator.release_milestone(
                milestone_id, admin_id=_admin_id(request)
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(MilestoneReleaseResultSerializer(result).data)


class MilestoneSummaryView(APIView):
    """
    Dashboard summary of escrow milestones.

    GET /api/v1/settlements/milestones/summary/?milestone_type=completion
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="milestone_summary",
        summary="Milestone escrow summary",
        parameters=[
            OpenApiParameter(
                name="milestone_type",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="advance, arrival or completion",
            ),
        ],
        responses={
            200: OpenApiResponse(response=MilestoneSummarySerializer),
            400: OpenApiResponse(description="Unknown milestone type"),
        },
        tags=["Settlements - Milestones"],
    )
    def get(self, request):
        query = MilestoneSummaryQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        summary = SettlementOrchestrator.milestone_summary(
            milestone_type=query.validated_data.get("milestone_type")
        )
        return Response(MilestoneSummarySerializer(summary).data)


class RefundReleaseView(APIView):
    """
    Complete a pending refund.

    POST /api/v1/settlements/refunds/{refund_id}/release/

    A completed refund whose vendor credit failed still returns 200 with
    needs_reconciliation set.
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="release_refund",
        summary="Complete refund",
        description=(
            "Split the refund between customer, company and vendor, mark it "
            "completed and credit the vendor share. A failed vendor credit is "
            "queued for reconciliation and does not undo the refund."
        ),
        request=None,
        responses={
            200: OpenApiResponse(response=RefundReleaseResultSerializer),
            404: OpenApiResponse(description="Refund not found"),
            409: OpenApiResponse(description="Refund is not pending"),
            500: OpenApiResponse(description="Refund failed or needs manual reconciliation"),
        },
        tags=["Settlements - Refunds"],
    )
    def post(self, request, refund_id):
        try:
            result = SettlementOrchestrator.release_refund(
                refund_id, admin_id=_admin_id(request)
            )
        except BaseApplicationError as e:
            return error_response(e)

        if result.needs_reconciliation:
            logger.warning(
                "Refund completed with queued vendor credit",
                extra={
                    "refund_id": str(refund_id),
                    "credit_failure_id": str(result.credit_failure.id),
                },
            )
        return Response(RefundReleaseResultSerializer(result).data)


class RefundRejectView(APIView):
    """
    Reject a pending refund.

    POST /api/v1/settlements/refunds/{refund_id}/reject/

    Request body:
        {"reason": "Cancellation outside policy"}
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="reject_refund",
        summary="Reject refund",
        request=RefundRejectSerializer,
        responses={
            200: OpenApiResponse(response=RefundSerializer),
            404: OpenApiResponse(description="Refund not found"),
            409: OpenApiResponse(description="Refund is not pending"),
        },
        tags=["Settlements - Refunds"],
    )
    def post(self, request, refund_id):
        serializer = RefundRejectSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            refund = SettlementOrchestrator.reject_refund(
                refund_id,
                admin_id=_admin_id(request),
                reason=serializer.validated_data.get("reason") or None,
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(RefundSerializer(refund).data)


class VendorWalletView(APIView):
    """
    Vendor wallet balance with its most recent transactions.

    GET /api/v1/settlements/wallets/{vendor_id}/?limit=20
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="get_vendor_wallet",
        summary="Get vendor wallet",
        parameters=[
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Number of recent transactions (1-100, default 20)",
            ),
        ],
        responses={
            200: OpenApiResponse(description="Wallet and recent transactions"),
            404: OpenApiResponse(description="Vendor has no wallet"),
        },
        tags=["Settlements - Wallets"],
    )
    def get(self, request, vendor_id):
        query = WalletQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            wallet = wallet_ledger.get_wallet(vendor_id)
        except WalletNotFound as e:
            return error_response(e)

        transactions = wallet_ledger.get_transactions(
            vendor_id, limit=query.validated_data["limit"]
        )
        return Response(
            {
                "wallet": VendorWalletSerializer(wallet).data,
                "transactions": WalletTransactionSerializer(transactions, many=True).data,
            }
        )
