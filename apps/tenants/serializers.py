"""
apps.tenants.serializers
~~~~~~~~~~~~~~~~~~~~~~~~
I/O-only serializers for the Tenants API.
No business logic; shape validation only.
"""
from rest_framework import serializers

from .models import Tenant


class TenantSerializer(serializers.ModelSerializer):
    """Read serializer for a full Tenant object."""

    class Meta:
        model = Tenant
        fields = [
            "id",
            "code",
            "name",
            "description",
            "status",
            "timezone",
            "default_currency_code",
            "default_language_code",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class TenantCreateSerializer(serializers.Serializer):
    """Validates POST /tenants/ request body."""

    name = serializers.CharField(max_length=255)
    code = serializers.SlugField(max_length=100, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    timezone = serializers.CharField(max_length=64, required=False)
    default_currency_code = serializers.RegexField(
        r"^[A-Z]{3}$", required=False
    )
    default_language_code = serializers.CharField(max_length=8, required=False)


class TenantStatusSerializer(serializers.Serializer):
    """Validates PATCH /tenants/{id}/status/ request body."""

    status = serializers.ChoiceField(choices=Tenant.Status.choices)
