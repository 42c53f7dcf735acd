from django.urls import path

from meetings.views import zego_callback

app_name = "meetings"

urlpatterns = [
    path("callback/", zego_callback, name="zego-callback"),
]
