"""
Serializer mixins shared by the domain apps.

Available Mixins:
    TimestampMixin: Auto-include created_at/updated_at in ModelSerializer output
    FieldSelectionMixin: Restrict output to the fields named in `?fields=`

Usage:
    from core.serializer_mixins import FieldSelectionMixin, TimestampMixin

    class LessonSerializer(FieldSelectionMixin, TimestampMixin, serializers.ModelSerializer):
        class Meta:
            model = Lesson
            fields = ["id", "subject", "price"]  # timestamps auto-included

    # GET /api/v1/lessons/?fields=id,subject -> only id and subject
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class TimestampMixin:
    """
    Add created_at and updated_at to a ModelSerializer's fields.

    Only added when the model has them (core.models.BaseModel does).
    """

    def get_field_names(self, declared_fields: Any, info: Any) -> list[str]:
        fields = super().get_field_names(declared_fields, info)  # type: ignore[misc]
        model = self.Meta.model  # type: ignore[attr-defined]
        if hasattr(model, "created_at") and "created_at" not in fields:
            fields = list(fields) + ["created_at"]
        if hasattr(model, "updated_at") and "updated_at" not in fields:
            fields = list(fields) + ["updated_at"]
        return fields


class FieldSelectionMixin:
    """
    Drop every field not listed in the request's `fields` query parameter.

    The request is read from the serializer context, so views must pass it
    (generic views do). Unknown names are ignored; an empty selection
    leaves the output unchanged. `id` is always kept.
    """

    selection_param = "fields"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)  # type: ignore[call-arg]

        request = self.context.get("request")  # type: ignore[attr-defined]
        if request is None or not hasattr(request, "query_params"):
            return

        raw = request.query_params.get(self.selection_param, "")
        wanted = {name.strip() for name in raw.split(",") if name.strip()}
        if not wanted:
            return

        wanted.add("id")
        for name in set(self.fields) - wanted:  # type: ignore[attr-defined]
            self.fields.pop(name)  # type: ignore[attr-defined]
