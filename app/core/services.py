"""
Base service layer patterns for business logic encapsulation.

Services encapsulate business logic separate from views and models.
Views handle HTTP concerns, models handle data, services handle logic.

Usage:
    from core.services import BaseService

    class SettlementOrchestrator(BaseService):
        @classmethod
        def release_milestone(cls, milestone_id):
            with cls.atomic():
                ...
            cls.get_logger().info("Milestone released")

Related:
    - core.exceptions: Errors raised by services
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator


class BaseService:
    """
    Base class for service layer classes.

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Services are stateless
        - Raise core.exceptions subclasses for business failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        All database operations within this context manager are
        wrapped in a transaction. If any operation fails, all
        changes are rolled back.

        Example:
            with cls.atomic():
                escrow = EscrowTransaction.objects.create(...)
                wallet_ledger.credit_wallet(...)
                # If the credit fails, the escrow row is rolled back too
        """
        with transaction.atomic():
            yield
