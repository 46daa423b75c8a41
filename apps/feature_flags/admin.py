"""
apps.feature_flags.admin
"""
from django.contrib import admin

from .models import FeatureFlag


@admin.register(FeatureFlag)
class FeatureFlagAdmin(admin.ModelAdmin):
    list_display = [
        "feature_key",
        "tenant",
        "environment",
        "enabled",
        "rollout_percentage",
        "is_active",
        "start_at",
        "end_at",
    ]
    list_filter = ["enabled", "is_active", "environment"]
    search_fields = ["feature_key", "name"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["feature_key"]
