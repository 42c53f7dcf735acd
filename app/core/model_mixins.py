"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
    VersionedModelMixin: Monotonic version counter bumped on every update

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin, VersionedModelMixin

    class Lesson(UUIDPrimaryKeyMixin, VersionedModelMixin, BaseModel):
        title = models.CharField(max_length=200)
"""

from __future__ import annotations

import uuid

from django.db import models
from django.db.models import F


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use a UUID as primary key instead of an auto-increment integer.

    Lesson ids travel through payment gateways (merchant order id) and
    meeting room names, so they must not be guessable.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class VersionedModelMixin(models.Model):
    """
    Version counter for optimistic locking.

    On update the version is incremented atomically in SQL and then
    read back, so two writers that loaded the same row can be told apart.
    """

    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        is_update = not self._state.adding and not kwargs.get("force_insert", False)
        update_fields = kwargs.get("update_fields")
        if not is_update:
            super().save(*args, **kwargs)
            return

        loaded_version = self.version
        self.version = F("version") + 1
        if update_fields is not None:
            kwargs["update_fields"] = {*update_fields, "version"}
        try:
            super().save(*args, **kwargs)
        except Exception:
            self.version = loaded_version
            raise
        # Read back the column only; a deferred-field refresh would re-run
        # the model's __init__ on a partial row
        self.version = type(self)._base_manager.filter(pk=self.pk).values_list("version", flat=True).get()
