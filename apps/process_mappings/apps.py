"""
apps.process_mappings.apps
"""
from django.apps import AppConfig


class ProcessMappingsConfig(AppConfig):
    name = "apps.process_mappings"
    label = "process_mappings"
    verbose_name = "API Process Mappings"

    def ready(self):
        from . import signals  # noqa: F401
