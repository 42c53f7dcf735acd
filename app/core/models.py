"""
Abstract base model for the marketplace apps.

Key mixins (UUID primary key, version counter) are in core.model_mixins
and go before BaseModel in the bases:

    class Lesson(UUIDPrimaryKeyMixin, VersionedModelMixin, BaseModel):
        ...
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """Creation and modification timestamps, newest first by default."""

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
        return f"{self.__class__.__name__}({self.pk})"
