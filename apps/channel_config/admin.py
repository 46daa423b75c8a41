"""
apps.channel_config.admin
"""
from django.contrib import admin

from .models import ChannelConfig, ChannelConfigParameter


class ChannelConfigParameterInline(admin.TabularInline):
    model = ChannelConfigParameter
    extra = 0
    fields = ["parameter_key", "parameter_type", "category", "is_sensitive", "is_required", "is_active"]
    show_change_link = True


@admin.register(ChannelConfig)
class ChannelConfigAdmin(admin.ModelAdmin):
    list_display = ["channel_code", "channel_name", "tenant", "channel_type", "enabled", "priority", "is_active"]
    list_filter = ["channel_type", "enabled", "is_active", "tenant"]
    search_fields = ["channel_code", "channel_name", "tenant__code"]
    readonly_fields = ["id", "created_at", "updated_at"]
    inlines = [ChannelConfigParameterInline]


@admin.register(ChannelConfigParameter)
class ChannelConfigParameterAdmin(admin.ModelAdmin):
    list_display = ["channel_config", "parameter_key", "parameter_type", "category", "is_sensitive", "is_active"]
    list_filter = ["parameter_type", "is_sensitive", "is_required", "is_active"]
    search_fields = ["parameter_key", "channel_config__channel_code"]
    # Values are written through the API so type and pattern checks apply.
    exclude = ["parameter_value", "default_value"]
    readonly_fields = ["id", "created_at", "updated_at"]
