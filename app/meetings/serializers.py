from rest_framework import serializers


class RoomEventSerializer(serializers.Serializer):
    """Provider room event: {event, room_id, user_id, event_time (epoch seconds or ms)}."""

    event = serializers.CharField(max_length=100)
    room_id = serializers.CharField(max_length=100)
    user_id = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    event_time = serializers.FloatField(required=False, allow_null=True, min_value=0)


class JoinTokenSerializer(serializers.Serializer):
    room_id = serializers.CharField()
    token = serializers.CharField()
    app_id = serializers.IntegerField()
