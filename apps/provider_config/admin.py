"""
apps.provider_config.admin
"""
from django.contrib import admin

from .models import Provider, ProviderParameter


class ProviderParameterInline(admin.TabularInline):
    model = ProviderParameter
    extra = 0
    fields = ["name", "tenant", "environment", "category", "is_secret", "credential_vault_id"]
    readonly_fields = ["is_secret", "credential_vault_id"]
    show_change_link = True


@admin.register(Provider)
class ProviderAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "provider_type", "is_active", "created_at"]
    list_filter = ["provider_type", "is_active"]
    search_fields = ["code", "name"]
    readonly_fields = ["id", "created_at", "updated_at"]
    inlines = [ProviderParameterInline]


@admin.register(ProviderParameter)
class ProviderParameterAdmin(admin.ModelAdmin):
    list_display = ["provider", "name", "tenant", "environment", "category", "is_secret"]
    list_filter = ["is_secret", "environment", "provider"]
    search_fields = ["name", "provider__code"]
    # Secrets are edited through the API so the value/vault-ref pairing is validated.
    exclude = ["parameter_value"]
    readonly_fields = ["id", "is_secret", "credential_vault_id", "created_at", "updated_at"]
