"""
Core base model providing common functionality for all domain models.

Base Classes:
    BaseModel: Abstract model with timestamps (created_at, updated_at)

For the UUID primary key mixin, see core.model_mixins.

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Escrow(UUIDPrimaryKeyMixin, BaseModel):
        amount_cents = models.PositiveBigIntegerField()

Note:
    - Always list mixins before BaseModel in inheritance
    - Escrow, Order and Dispute rows are never deleted; terminal records
      are retained for audit
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model providing creation and modification timestamps.

    Fields:
        created_at: Automatically set when the object is first created
        updated_at: Automatically updated whenever the object is saved

    Note:
        QuerySet.update() bypasses auto_now, so conditional updates must
        set updated_at explicitly.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,  # Index for efficient time-based queries
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        # Newest first
        ordering = ["-created_at"]

    def __str__(self) -> str:
        """Default string representation using primary key."""
        return f"{self.__class__.__name__}(id={self.pk})"
