"""
Points views.

Endpoints:
    GET /api/v1/points/me/                  - Own balance, tier and distance to next tier
    GET /api/v1/points/admin/levels-stats/  - Users per tier (admin)
    GET /api/v1/points/admin/users/         - Users by points, highest first (admin)
"""

from drf_spectacular.utils import extend_schema
from rest_framework import generics
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsAdminRole

from authentication.models import User
from points.levels import points_to_next_level
from points.serializers import MyPointsSerializer, UserPointsSerializer
from points.services import PointsService


class MyPointsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="points_me",
        summary="My points",
        tags=["Points"],
        responses={200: MyPointsSerializer},
    )
    def get(self, request):
        user = request.user
        data = {
            "points": user.points,
            "level": user.level,
            "points_to_next_level": points_to_next_level(user.points),
        }
        return Response(MyPointsSerializer(data).data)


class LevelsStatsView(APIView):
    permission_classes = [IsAdminRole]

    @extend_schema(operation_id="points_levels_stats", summary="Users per tier", tags=["Points"])
    def get(self, request):
        return Response(PointsService.level_stats())


@extend_schema(operation_id="points_users", summary="Users by points", tags=["Points"])
class UsersPointsView(generics.ListAPIView):
    permission_classes = [IsAdminRole]
    serializer_class = UserPointsSerializer

    def get_queryset(self):
        return User.objects.order_by("-points", "email")
