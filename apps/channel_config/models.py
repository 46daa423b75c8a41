"""
apps.channel_config.models
~~~~~~~~~~~~~~~~~~~~~~~~~~
ChannelConfig – how one tenant runs one banking channel (web, mobile, ATM…).
ChannelConfigParameter – a typed key/value setting attached to a channel.
"""
import uuid

from django.db import models

from apps.tenants.models import Tenant


def normalise_channel_code(code: str | None) -> str:
    return (code or "").strip().upper()


class ChannelConfig(models.Model):
    """
    A tenant's configuration of one channel.

    ``channel_code`` is the programmatic handle, e.g. ``WEB_BANKING`` or
    ``MOBILE_BANKING``.  It is stored upper-cased and is unique per tenant.
    """

    class ChannelType(models.TextChoices):
        DIGITAL = "DIGITAL", "Digital"
        PHYSICAL = "PHYSICAL", "Physical"
        API = "API", "API"
        PARTNER = "PARTNER", "Partner"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="channel_configs",
    )
    channel_code = models.CharField(max_length=50)
    channel_name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, blank=True, default="")
    channel_type = models.CharField(
        max_length=20,
        choices=ChannelType.choices,
        default=ChannelType.DIGITAL,
    )
    requires_authentication = models.BooleanField(default=True)
    session_timeout_minutes = models.PositiveIntegerField(null=True, blank=True)
    idle_timeout_minutes = models.PositiveIntegerField(null=True, blank=True)
    rate_limit_per_minute = models.PositiveIntegerField(null=True, blank=True)
    max_transaction_amount = models.DecimalField(
        max_digits=19, decimal_places=4, null=True, blank=True
    )
    enabled = models.BooleanField(default=True)
    # Failover order, 1 is tried first.
    priority = models.PositiveIntegerField(default=1)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "channel_configs"
        ordering = ["tenant", "priority", "channel_code"]
        verbose_name = "Channel Configuration"
        verbose_name_plural = "Channel Configurations"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "channel_code"],
                name="channel_config_tenant_code_unique",
            ),
        ]

    def save(self, *args, **kwargs):
        self.channel_code = normalise_channel_code(self.channel_code)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.channel_code} [tenant={self.tenant_id}]"


class ChannelConfigParameter(models.Model):
    """
    One setting of a :class:`ChannelConfig`.

    Values are stored as text and checked against ``parameter_type`` (and
    ``validation_regex`` when set) on write.  ``default_value`` stands in
    when no value is set.  Sensitive values are masked on every read path.
    """

    class ParameterType(models.TextChoices):
        STRING = "STRING", "String"
        INTEGER = "INTEGER", "Integer"
        DECIMAL = "DECIMAL", "Decimal"
        BOOLEAN = "BOOLEAN", "Boolean"
        JSON = "JSON", "JSON"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    channel_config = models.ForeignKey(
        ChannelConfig,
        on_delete=models.CASCADE,
        related_name="parameters",
    )
    parameter_key = models.CharField(max_length=100)
    parameter_value = models.TextField(blank=True, default="")
    parameter_type = models.CharField(
        max_length=20,
        choices=ParameterType.choices,
        default=ParameterType.STRING,
    )
    description = models.CharField(max_length=500, blank=True, default="")
    category = models.CharField(max_length=50, blank=True, default="")
    is_sensitive = models.BooleanField(default=False)
    is_required = models.BooleanField(default=False)
    validation_regex = models.CharField(max_length=500, blank=True, default="")
    default_value = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "channel_config_parameters"
        ordering = ["channel_config", "category", "parameter_key"]
        verbose_name = "Channel Parameter"
        verbose_name_plural = "Channel Parameters"
        constraints = [
            models.UniqueConstraint(
                fields=["channel_config", "parameter_key"],
                name="channel_parameter_key_unique",
            ),
        ]

    @property
    def effective_value(self) -> str | None:
        """The stored value, else the default, else ``None``."""
        return self.parameter_value or self.default_value or None

    def __str__(self) -> str:
        return f"{self.channel_config_id}:{self.parameter_key}"
