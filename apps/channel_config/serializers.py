"""
apps.channel_config.serializers
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
I/O serializers for channel configurations and their parameters – no
business logic.
"""
from rest_framework import serializers

from .models import ChannelConfig, ChannelConfigParameter
from .services.channel_service import MASK


class ChannelConfigSerializer(serializers.ModelSerializer):
    tenant_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = ChannelConfig
        fields = [
            "id",
            "tenant_id",
            "channel_code",
            "channel_name",
            "description",
            "channel_type",
            "requires_authentication",
            "session_timeout_minutes",
            "idle_timeout_minutes",
            "rate_limit_per_minute",
            "max_transaction_amount",
            "enabled",
            "priority",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ChannelConfigCreateSerializer(serializers.Serializer):
    tenant_id = serializers.CharField()
    channel_code = serializers.CharField(max_length=50)
    channel_name = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    channel_type = serializers.ChoiceField(choices=ChannelConfig.ChannelType.choices, required=False)
    requires_authentication = serializers.BooleanField(required=False)
    session_timeout_minutes = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    idle_timeout_minutes = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    rate_limit_per_minute = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    max_transaction_amount = serializers.DecimalField(
        max_digits=19, decimal_places=4, min_value=0, required=False, allow_null=True
    )
    enabled = serializers.BooleanField(required=False)
    priority = serializers.IntegerField(min_value=1, required=False)


class ChannelParameterSerializer(serializers.ModelSerializer):
    """Read serializer.  Sensitive values and defaults are masked."""

    parameter_value = serializers.SerializerMethodField()
    default_value = serializers.SerializerMethodField()

    class Meta:
        model = ChannelConfigParameter
        fields = [
            "id",
            "parameter_key",
            "parameter_value",
            "parameter_type",
            "default_value",
            "description",
            "category",
            "is_sensitive",
            "is_required",
            "validation_regex",
            "is_active",
            "updated_at",
        ]
        read_only_fields = fields

    @staticmethod
    def _mask(obj: ChannelConfigParameter, value: str) -> str:
        return MASK if obj.is_sensitive and value else value

    def get_parameter_value(self, obj: ChannelConfigParameter) -> str:
        return self._mask(obj, obj.parameter_value)

    def get_default_value(self, obj: ChannelConfigParameter) -> str:
        return self._mask(obj, obj.default_value)


class ChannelParameterWriteSerializer(serializers.Serializer):
    """
    Validates POST /channel-configs/{id}/parameters/.

    Type and pattern checks on the value happen in the service layer, which
    reports every problem at once.
    """

    parameter_key = serializers.CharField(max_length=100)
    parameter_value = serializers.CharField(required=False, allow_blank=True, default="")
    parameter_type = serializers.ChoiceField(
        choices=ChannelConfigParameter.ParameterType.choices,
        default=ChannelConfigParameter.ParameterType.STRING,
    )
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    category = serializers.CharField(max_length=50, required=False, allow_blank=True)
    is_sensitive = serializers.BooleanField(required=False)
    is_required = serializers.BooleanField(required=False)
    validation_regex = serializers.CharField(max_length=500, required=False, allow_blank=True)
    default_value = serializers.CharField(required=False, allow_blank=True)


class ChannelParametersQuerySerializer(serializers.Serializer):
    tenant_id = serializers.CharField()
    channel_code = serializers.CharField(max_length=50)
    category = serializers.CharField(max_length=50, required=False, allow_blank=True)
