"""
apps.tenants.admin
"""
from django.contrib import admin

from .models import Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "status", "is_active", "created_at"]
    list_filter = ["status", "is_active"]
    search_fields = ["name", "code"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["code"]

    def get_fields(self, request, obj=None):
        """Show the UUID prominently at the top of the detail form."""
        fields = super().get_fields(request, obj)
        if obj:
            fields = list(fields)
            if "id" in fields:
                fields.remove("id")
                fields.insert(0, "id")
        return fields
