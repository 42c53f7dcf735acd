"""
URL configuration for the lessons app.

All routes are prefixed with /api/v1/lessons/ (see lessons.views for the
endpoint list).
"""

from rest_framework.routers import DefaultRouter

from lessons.views import LessonViewSet

router = DefaultRouter()
router.register(r"", LessonViewSet, basename="lesson")

app_name = "lessons"
urlpatterns = router.urls
