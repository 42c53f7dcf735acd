from rest_framework import serializers

from authentication.models import User


class MyPointsSerializer(serializers.Serializer):
    points = serializers.IntegerField()
    level = serializers.CharField()
    points_to_next_level = serializers.IntegerField(allow_null=True)


class UserPointsSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "email", "first_name", "last_name", "role", "points", "level"]
        read_only_fields = fields
