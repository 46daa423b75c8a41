"""
apps.process_mappings.admin
~~~~~~~~~~~~~~~~~~~~~~~~~~~
Django admin registration for API→process mappings.

Admin saves bypass the service layer, so they invalidate the resolution cache
themselves.  Deletes, single or bulk, are covered by the ``post_delete``
receiver in :mod:`apps.process_mappings.signals`.
"""
from django.contrib import admin

from .models import ApiProcessMapping
from .services.mapping_cache import get_resolution_cache


@admin.register(ApiProcessMapping)
class ApiProcessMappingAdmin(admin.ModelAdmin):
    list_display = [
        "operation_id",
        "process_id",
        "process_version",
        "tenant",
        "product_id",
        "channel_type",
        "priority",
        "is_active",
        "effective_from",
        "effective_to",
    ]
    list_filter = ["is_active", "channel_type", "http_method", "tenant"]
    search_fields = ["operation_id", "process_id", "api_path"]
    readonly_fields = ["id", "version", "created_by", "created_at", "updated_at"]
    ordering = ["operation_id", "priority"]

    def save_model(self, request, obj, form, change):
        previous_tenant_id = None
        if change:
            previous_tenant_id = (
                ApiProcessMapping.objects.filter(pk=obj.pk)
                .values_list("tenant_id", flat=True)
                .first()
            )
            obj.version += 1
        obj.updated_by = request.user.get_username()
        if not change:
            obj.created_by = obj.updated_by
        super().save_model(request, obj, form, change)

        cache = get_resolution_cache()
        cache.invalidate(previous_tenant_id if change else obj.tenant_id)
        if change and obj.tenant_id != previous_tenant_id:
            cache.invalidate(obj.tenant_id)
