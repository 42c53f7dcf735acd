"""
URL configuration for the payments app.

Routes:
    - POST <lesson_id>/initiate/ - Start payment for a lesson
    - POST <lesson_id>/release/  - Retry the teacher payout
    - POST callback/             - Paymob transaction callback

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments.views import InitiatePaymentView, ReleasePaymentView, paymob_callback

app_name = "payments"

urlpatterns = [
    path("<uuid:lesson_id>/initiate/", InitiatePaymentView.as_view(), name="initiate"),
    path("<uuid:lesson_id>/release/", ReleasePaymentView.as_view(), name="release"),
    path("callback/", paymob_callback, name="paymob-callback"),
]
