"""
apps.provider_config.models
~~~~~~~~~~~~~~~~~~~~~~~~~~~
Provider – an external integration (payment gateway, KYC, …).
ProviderParameter – a secret-aware setting of a provider, optionally
scoped to a tenant and an environment.
"""
import uuid

from django.db import models

from apps.tenants.models import Tenant
from .services.config_values import (
    ConfigValue,
    config_value_from_fields,
    config_value_to_fields,
)


class Provider(models.Model):
    """
    An external system the platform integrates with.

    ``code`` is the stable programmatic handle (e.g. ``"stripe"``) and is
    accepted wherever an id is.
    """

    class ProviderType(models.TextChoices):
        PAYMENT_GATEWAY = "PAYMENT_GATEWAY", "Payment gateway"
        KYC = "KYC", "KYC"
        CARD_ISSUER = "CARD_ISSUER", "Card issuer"
        CORE_BANKING = "CORE_BANKING", "Core banking"
        NOTIFICATION = "NOTIFICATION", "Notification"
        OTHER = "OTHER", "Other"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.SlugField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    provider_type = models.CharField(
        max_length=30,
        choices=ProviderType.choices,
        default=ProviderType.OTHER,
    )
    base_url = models.URLField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        verbose_name = "Provider"
        verbose_name_plural = "Providers"

    def __str__(self) -> str:
        return f"{self.code} ({self.provider_type})"


class ProviderParameter(models.Model):
    """
    One named setting of a :class:`Provider`.

    Fields
    ------
    tenant
        NULL means the default that applies to every tenant.
    environment
        Blank means "every environment"; otherwise e.g. ``"prod"``.
    is_secret / parameter_value / credential_vault_id
        Storage columns of the :data:`ConfigValue` union.  Always read and
        write them through :attr:`config_value`.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    provider = models.ForeignKey(
        Provider,
        on_delete=models.CASCADE,
        related_name="parameters",
    )
    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="provider_parameters",
    )
    name = models.CharField(max_length=100)
    environment = models.CharField(max_length=20, blank=True, default="")
    category = models.CharField(max_length=50, blank=True, default="")
    is_secret = models.BooleanField(default=False)
    parameter_value = models.TextField(null=True, blank=True)
    credential_vault_id = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["provider", "name", "environment"]
        verbose_name = "Provider Parameter"
        verbose_name_plural = "Provider Parameters"
        constraints = [
            models.UniqueConstraint(
                fields=["provider", "tenant", "name", "environment"],
                name="provider_parameter_scope_unique",
            ),
        ]

    @property
    def config_value(self) -> ConfigValue:
        return config_value_from_fields(
            is_secret=self.is_secret,
            value=self.parameter_value,
            vault_ref=self.credential_vault_id,
        )

    @config_value.setter
    def config_value(self, value: ConfigValue) -> None:
        self.is_secret, self.parameter_value, self.credential_vault_id = config_value_to_fields(
            value
        )

    def __str__(self) -> str:
        scope = "default" if self.tenant_id is None else f"tenant={self.tenant_id}"
        return f"{self.provider_id}:{self.name} [{scope}, env={self.environment or '*'}]"
