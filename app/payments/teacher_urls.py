"""
Teacher payout routes, mounted at /api/v1/teachers/.

Routes:
    - GET|PUT payment-info/   - Payout account details
    - GET     payout-history/ - Paid and released lessons
"""

from django.urls import path

from payments.views import PaymentInfoView, PayoutHistoryView

app_name = "teachers"

urlpatterns = [
    path("payment-info/", PaymentInfoView.as_view(), name="payment-info"),
    path("payout-history/", PayoutHistoryView.as_view(), name="payout-history"),
]
