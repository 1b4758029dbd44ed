# events/serializers.py

from rest_framework import serializers
from .models import Event


class EventSerializer(serializers.ModelSerializer):
    class Meta:
        model = Event
        fields = [
            'id', 'name', 'deadline', 'estimated_hours', 'difficulty',
            'is_completed', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_estimated_hours(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("estimated_hours must be zero or positive.")
        return value


class RecommendationRequestSerializer(serializers.Serializer):
    """
    Body of POST /recommendation/. Physiology readings are optional; a
    missing reading means no physiology adjustment.
    """
    emotion = serializers.CharField(max_length=64, allow_blank=True)
    heart_rate_bpm = serializers.FloatField(required=False, allow_null=True, min_value=0)
    hrv_sdnn_ms = serializers.FloatField(required=False, allow_null=True, min_value=0)
    # None means "use the RECOMMENDER_USE_REMOTE setting"
    use_remote = serializers.BooleanField(required=False, allow_null=True, default=None)
    explain = serializers.BooleanField(required=False, default=False)
