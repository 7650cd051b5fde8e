"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Dispute(UUIDPrimaryKeyMixin, BaseModel):
        description = models.TextField()

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Order, escrow and dispute identifiers appear in URLs and in provider
    metadata, so they must not reveal record counts.

    Fields:
        id: UUIDField as primary key (auto-generated)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True
