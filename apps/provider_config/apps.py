"""
apps.provider_config.apps
"""
from django.apps import AppConfig


class ProviderConfigConfig(AppConfig):
    name = "apps.provider_config"
    label = "provider_config"
    verbose_name = "Provider Configuration"
