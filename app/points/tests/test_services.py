"""Tests for PointsService."""

from points.levels import UserLevel
from points.services import PointsService


class TestAddPoints:
    def test_adds_and_persists(self, student):
        result = PointsService.add_points(student, 20, "lesson completed")

        assert result.success
        assert student.points == 20
        student.refresh_from_db()
        assert student.points == 20

    def test_crossing_threshold_updates_level(self, student):
        PointsService.add_points(student, 195)
        PointsService.add_points(student, 10)

        student.refresh_from_db()
        assert student.points == 205
        assert student.level == UserLevel.SILVER

    def test_stale_instance_does_not_lose_updates(self, student):
        from authentication.models import User

        stale = User.objects.get(pk=student.pk)
        PointsService.add_points(student, 20)
        PointsService.add_points(stale, 20)

        student.refresh_from_db()
        assert student.points == 40


class TestDeductPoints:
    def test_floors_at_zero(self, student):
        PointsService.add_points(student, 10)

        result = PointsService.deduct_points(student, 15, "lesson canceled")

        assert result.success
        student.refresh_from_db()
        assert student.points == 0

    def test_dropping_below_threshold_lowers_level(self, student):
        PointsService.add_points(student, 205)
        PointsService.deduct_points(student, 15)

        student.refresh_from_db()
        assert student.points == 190
        assert student.level == UserLevel.BRONZE


class TestLevelStats:
    def test_counts_every_level(self, student, teacher):
        PointsService.add_points(teacher, 600)

        stats = PointsService.level_stats()

        assert stats[UserLevel.GOLD] == 1
        assert stats[UserLevel.BRONZE] == 1
        assert stats[UserLevel.PLATINUM] == 0
        assert set(stats) == set(UserLevel.values)
