"""
Core base model shared by the settlement records.

Base Classes:
    BaseModel: Abstract model with created_at / updated_at timestamps

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Booking(UUIDPrimaryKeyMixin, BaseModel):
        total_amount = models.DecimalField(max_digits=12, decimal_places=2)

Note:
    List mixins before BaseModel in the inheritance chain.
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model providing creation and modification timestamps.

    Fields:
        created_at: Set once on insert
        updated_at: Refreshed on every save()
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"
