"""
apps.tenants.models
~~~~~~~~~~~~~~~~~~~
Tenant – a banking organisation sharing the platform with its own
configuration, providers and process mappings.
"""
import uuid

from django.db import models
from django.utils.text import slugify


class Tenant(models.Model):
    """
    A logical tenant of the platform (e.g. ``acme-bank``, ``beta-fintech``).

    Fields
    ------
    id
        UUID primary key.  Every tenant-scoped row elsewhere (process
        mappings, provider parameters, feature flags) references this id; a
        NULL reference means "applies to every tenant".
    code
        Unique programmatic identifier, auto-derived from ``name`` on first
        save when omitted.
    status
        Operational state.  Only informative for configuration lookups –
        suspended tenants still resolve their mappings.
    timezone / default_currency_code / default_language_code
        Regional defaults used by downstream services.
    """

    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        SUSPENDED = "SUSPENDED", "Suspended"
        INACTIVE = "INACTIVE", "Inactive"
        TRIAL = "TRIAL", "Trial"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.SlugField(
        max_length=100,
        unique=True,
        blank=True,
        help_text="Programmatic identifier, e.g. 'acme-bank'.",
    )
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    timezone = models.CharField(max_length=64, default="UTC")
    default_currency_code = models.CharField(max_length=3, default="USD")
    default_language_code = models.CharField(max_length=8, default="en")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        verbose_name = "Tenant"
        verbose_name_plural = "Tenants"

    def save(self, *args, **kwargs) -> None:
        """Auto-populate ``code`` on first save."""
        if not self.code:
            self.code = slugify(self.name)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.code} ({self.name})"
