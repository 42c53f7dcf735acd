from django.urls import path

from points.views import LevelsStatsView, MyPointsView, UsersPointsView

app_name = "points"

urlpatterns = [
    path("me/", MyPointsView.as_view(), name="me"),
    path("admin/levels-stats/", LevelsStatsView.as_view(), name="levels-stats"),
    path("admin/users/", UsersPointsView.as_view(), name="users"),
]
