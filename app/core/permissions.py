"""
Role-based permission classes shared by the domain apps.

Roles live on the User model (student, teacher, admin). These classes only
check the role; ownership checks ("is this the lesson's student?") are done
by the services so they can return a descriptive error code.

Usage:
    class LessonCreateView(APIView):
        permission_classes = [IsAuthenticated, IsStudent]
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class HasRole(permissions.BasePermission):
    """Allows access only to authenticated users with the given role."""

    role: str = ""
    message = "You do not have the required role for this action."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return getattr(user, "role", None) == self.role


class IsStudent(HasRole):
    role = "student"
    message = "Only students can perform this action."


class IsTeacher(HasRole):
    role = "teacher"
    message = "Only teachers can perform this action."


class IsAdminRole(permissions.BasePermission):
    """Platform admins: role=admin or Django staff."""

    message = "Admin access required."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return getattr(user, "role", None) == "admin" or user.is_staff
