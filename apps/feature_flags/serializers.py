"""
apps.feature_flags.serializers
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
I/O serializers for feature flags – no business logic.
"""
from rest_framework import serializers

from .models import FeatureFlag


class FeatureFlagSerializer(serializers.ModelSerializer):
    tenant_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = FeatureFlag
        fields = [
            "id",
            "tenant_id",
            "feature_key",
            "name",
            "description",
            "enabled",
            "environment",
            "rollout_percentage",
            "start_at",
            "end_at",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class FeatureFlagCreateSerializer(serializers.Serializer):
    feature_key = serializers.CharField(max_length=100)
    tenant_id = serializers.UUIDField(required=False, allow_null=True)
    environment = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    enabled = serializers.BooleanField(default=False)
    rollout_percentage = serializers.IntegerField(required=False, min_value=0, max_value=100)
    start_at = serializers.DateTimeField(required=False, allow_null=True)
    end_at = serializers.DateTimeField(required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)


class FlagEvaluateQuerySerializer(serializers.Serializer):
    feature_key = serializers.CharField(max_length=100)
    tenant_id = serializers.UUIDField(required=False, allow_null=True)
    environment = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    subject_key = serializers.CharField(max_length=255, required=False, allow_blank=True)


class FlagEvaluationSerializer(serializers.Serializer):
    feature_key = serializers.CharField()
    enabled = serializers.BooleanField()
    source = serializers.CharField()
    flag_id = serializers.UUIDField(source="flag.id", allow_null=True, default=None)
