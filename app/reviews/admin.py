from django.contrib import admin

from reviews.models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ["id", "lesson", "student", "teacher", "rating", "created_at"]
    list_filter = ["rating"]
    search_fields = ["student__email", "teacher__email", "comment"]
    raw_id_fields = ["lesson", "student", "teacher"]
    readonly_fields = ["created_at", "updated_at"]
