"""
apps.process_mappings.serializers
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
I/O serializers for API→process mappings – no business logic.
"""
from rest_framework import serializers

from .models import ApiProcessMapping


class ApiProcessMappingSerializer(serializers.ModelSerializer):
    """Read serializer for a full mapping."""

    tenant_id = serializers.UUIDField(read_only=True, allow_null=True)
    is_vanilla = serializers.BooleanField(read_only=True)
    specificity_score = serializers.IntegerField(read_only=True)

    class Meta:
        model = ApiProcessMapping
        fields = [
            "id",
            "tenant_id",
            "product_id",
            "channel_type",
            "api_path",
            "http_method",
            "operation_id",
            "process_id",
            "process_version",
            "priority",
            "is_active",
            "effective_from",
            "effective_to",
            "parameters",
            "description",
            "is_vanilla",
            "specificity_score",
            "created_by",
            "updated_by",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ApiProcessMappingWriteSerializer(serializers.Serializer):
    """
    Validates POST and PUT bodies.

    PUT is partial: only the supplied fields change.  ``version`` is the
    optimistic-lock value the client last read; ``acting_user`` is recorded
    in the audit columns.
    """

    tenant_id = serializers.UUIDField(required=False, allow_null=True)
    product_id = serializers.UUIDField(required=False, allow_null=True)
    channel_type = serializers.CharField(
        max_length=50, required=False, allow_null=True, allow_blank=True
    )
    api_path = serializers.CharField(max_length=255, required=False, allow_blank=True)
    http_method = serializers.ChoiceField(
        choices=ApiProcessMapping.HttpMethod.choices, required=False, allow_blank=True
    )
    operation_id = serializers.CharField(max_length=100)
    process_id = serializers.CharField(max_length=100)
    process_version = serializers.CharField(
        max_length=20, required=False, allow_null=True, allow_blank=True
    )
    priority = serializers.IntegerField(required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False, allow_null=True)
    effective_from = serializers.DateTimeField(required=False, allow_null=True)
    effective_to = serializers.DateTimeField(required=False, allow_null=True)
    parameters = serializers.DictField(required=False)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    version = serializers.IntegerField(required=False, min_value=1)
    acting_user = serializers.CharField(max_length=100, required=False, allow_blank=True)

    def to_internal_value(self, data):
        # lower-case methods are accepted and stored upper-case
        if isinstance(data, dict) and isinstance(data.get("http_method"), str):
            data = {**data, "http_method": data["http_method"].upper()}
        return super().to_internal_value(data)


class MappingFilterSerializer(serializers.Serializer):
    """Validates POST /api-process-mappings/filter/ request body."""

    tenant_id = serializers.UUIDField(required=False)
    vanilla = serializers.BooleanField(required=False, allow_null=True, default=None)
    product_id = serializers.UUIDField(required=False)
    channel_type = serializers.CharField(required=False)
    operation_id = serializers.CharField(required=False)
    process_id = serializers.CharField(required=False)
    http_method = serializers.CharField(required=False)
    is_active = serializers.BooleanField(required=False, allow_null=True, default=None)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    page_size = serializers.IntegerField(required=False, min_value=1)


class MappingPageSerializer(serializers.Serializer):
    """Response shape of the filter endpoint."""

    items = ApiProcessMappingSerializer(many=True)
    total_count = serializers.IntegerField()
    page = serializers.IntegerField()
    page_size = serializers.IntegerField()


class ResolveQuerySerializer(serializers.Serializer):
    """Validates the query string of GET /api-process-mappings/resolve/."""

    operation_id = serializers.CharField(max_length=100)
    tenant_id = serializers.UUIDField(required=False, allow_null=True)
    product_id = serializers.UUIDField(required=False, allow_null=True)
    channel_type = serializers.CharField(max_length=50, required=False, allow_blank=True)


class CacheInvalidateSerializer(serializers.Serializer):
    """Optional ``tenant_id``; omitted means flush everything."""

    tenant_id = serializers.UUIDField(required=False, allow_null=True)
