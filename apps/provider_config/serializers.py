"""
apps.provider_config.serializers
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
I/O serializers for providers and their parameters – no business logic.
"""
from rest_framework import serializers

from .models import Provider, ProviderParameter
from .services.config_values import describe


class ProviderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Provider
        fields = ["id", "code", "name", "provider_type", "base_url", "is_active", "created_at", "updated_at"]
        read_only_fields = fields


class ProviderCreateSerializer(serializers.Serializer):
    code = serializers.SlugField(max_length=50)
    name = serializers.CharField(max_length=255)
    provider_type = serializers.ChoiceField(
        choices=Provider.ProviderType.choices, required=False
    )
    base_url = serializers.URLField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)


class ProviderParameterSerializer(serializers.ModelSerializer):
    """
    Read serializer.  The stored value of a secret never leaves the service;
    only its vault reference is rendered.
    """

    tenant_id = serializers.UUIDField(read_only=True, allow_null=True)
    value = serializers.SerializerMethodField()

    class Meta:
        model = ProviderParameter
        fields = ["id", "name", "tenant_id", "environment", "category", "value", "updated_at"]
        read_only_fields = fields

    def get_value(self, obj: ProviderParameter) -> dict:
        return describe(obj.config_value)


class ProviderParameterWriteSerializer(serializers.Serializer):
    """
    Validates POST /providers/{ref}/parameters/.

    The value/vault-ref pairing is checked by the service layer, which
    reports every problem at once.
    """

    name = serializers.CharField(max_length=100)
    tenant_id = serializers.UUIDField(required=False, allow_null=True)
    environment = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    category = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    is_secret = serializers.BooleanField(default=False)
    parameter_value = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    credential_vault_id = serializers.CharField(
        max_length=255, required=False, allow_null=True, allow_blank=True
    )


class EffectiveParametersQuerySerializer(serializers.Serializer):
    tenant_id = serializers.UUIDField(required=False, allow_null=True)
    environment = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
