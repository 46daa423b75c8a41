"""
apps.process_mappings.signals
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Keeps the resolution cache in step with deletes that bypass the service
layer: the admin's bulk "delete selected" action, ``QuerySet.delete()`` and
tenant deletes cascading to their mappings.
"""
from django.db.models.signals import post_delete
from django.dispatch import receiver

from .models import ApiProcessMapping
from .services.mapping_cache import get_resolution_cache


@receiver(post_delete, sender=ApiProcessMapping, dispatch_uid="process_mappings_invalidate_on_delete")
def invalidate_on_delete(sender, instance: ApiProcessMapping, **kwargs) -> None:
    get_resolution_cache().invalidate(instance.tenant_id)
