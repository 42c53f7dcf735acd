import django_filters as filters

from lessons.models import Lesson


class LessonFilter(filters.FilterSet):
    subject = filters.CharFilter(field_name="subject", lookup_expr="iexact")
    requested_after = filters.IsoDateTimeFilter(field_name="requested_date", lookup_expr="gte")
    requested_before = filters.IsoDateTimeFilter(field_name="requested_date", lookup_expr="lte")

    class Meta:
        model = Lesson
        fields = ["status", "payment_status", "request_type", "subject", "requested_after", "requested_before"]
