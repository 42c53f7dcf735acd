"""Payment admin configuration."""

from django.contrib import admin

from payments.models import PaymentCallback


@admin.register(PaymentCallback)
class PaymentCallbackAdmin(admin.ModelAdmin):
    list_display = [
        "transaction_id",
        "gateway_order_id",
        "lesson",
        "success",
        "status",
        "created_at",
        "processed_at",
    ]
    list_filter = ["status", "success"]
    search_fields = ["transaction_id", "gateway_order_id", "lesson__id"]
    readonly_fields = [
        "id",
        "transaction_id",
        "gateway_order_id",
        "lesson",
        "success",
        "payload",
        "status",
        "error_message",
        "processed_at",
        "created_at",
        "updated_at",
    ]

    def has_add_permission(self, request):
        return False
