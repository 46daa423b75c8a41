"""
apps.process_mappings.models
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
ApiProcessMapping – routes an API operation to the process plugin that
executes it, scoped by tenant, product and channel.
"""
import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone

from apps.tenants.models import Tenant
from .services.mapping_resolver import is_currently_effective, specificity_score


class ApiProcessMapping(models.Model):
    """
    A rule that says "operation X, in this context, runs process P".

    Resolution order when several rules match a request (most specific first):

    1. Tenant + Product + Channel
    2. Tenant + Product
    3. Tenant + Channel
    4. Tenant
    5. Product + Channel, Product, Channel (vanilla but narrowed)
    6. Vanilla (``tenant`` is NULL, no product, no channel)

    Within equal specificity the lower ``priority`` wins, then the lower id.
    See :mod:`apps.process_mappings.services.mapping_resolver`.

    Fields
    ------
    tenant
        NULL means a vanilla mapping, visible to every tenant as the fallback.
    product_id / channel_type
        NULL (or blank channel) means "any product" / "any channel".
    operation_id
        API operation identifier the rule applies to, e.g. ``"createAccount"``.
    api_path / http_method
        Descriptive only; not used for resolution.
    process_id / process_version
        Target plugin; a NULL version means "latest".
    priority
        Lower values win among equally specific rules.
    effective_from / effective_to
        Optional ``[from, to)`` validity window.
    version
        Optimistic-lock counter, bumped on every update.
    """

    class HttpMethod(models.TextChoices):
        GET = "GET", "GET"
        POST = "POST", "POST"
        PUT = "PUT", "PUT"
        PATCH = "PATCH", "PATCH"
        DELETE = "DELETE", "DELETE"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="process_mappings",
        help_text="NULL for a vanilla mapping shared by all tenants.",
    )
    product_id = models.UUIDField(null=True, blank=True)
    channel_type = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        help_text="MOBILE, WEB, API, BRANCH … NULL applies to every channel.",
    )
    api_path = models.CharField(max_length=255, blank=True, default="")
    http_method = models.CharField(
        max_length=10,
        choices=HttpMethod.choices,
        blank=True,
        default="",
    )
    operation_id = models.CharField(max_length=100, db_index=True)
    process_id = models.CharField(max_length=100, db_index=True)
    process_version = models.CharField(max_length=20, null=True, blank=True)
    priority = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    effective_from = models.DateTimeField(null=True, blank=True)
    effective_to = models.DateTimeField(null=True, blank=True)
    parameters = models.JSONField(
        default=dict,
        blank=True,
        help_text="Free-form parameters handed to the process plugin.",
    )
    description = models.CharField(max_length=500, blank=True, default="")
    created_by = models.CharField(max_length=100, blank=True, default="")
    updated_by = models.CharField(max_length=100, blank=True, default="")
    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "api_process_mappings"
        ordering = ["operation_id", "priority", "id"]
        verbose_name = "API Process Mapping"
        verbose_name_plural = "API Process Mappings"
        indexes = [
            models.Index(
                fields=["operation_id", "is_active"],
                name="apm_operation_active_idx",
            ),
            models.Index(fields=["tenant", "operation_id"], name="apm_tenant_operation_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(effective_from__isnull=True)
                    | Q(effective_to__isnull=True)
                    | Q(effective_from__lt=models.F("effective_to"))
                ),
                name="apm_effective_window_ordered",
            ),
        ]

    def save(self, *args, **kwargs) -> None:
        """Normalise a blank channel to NULL and upper-case the HTTP method."""
        self.channel_type = (self.channel_type or "").strip() or None
        self.http_method = (self.http_method or "").upper()
        super().save(*args, **kwargs)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def is_vanilla(self) -> bool:
        return self.tenant_id is None

    @property
    def specificity_score(self) -> int:
        return specificity_score(self)

    def is_currently_effective(self, at=None) -> bool:
        return is_currently_effective(self, at or timezone.now())

    def __str__(self) -> str:
        scope = "vanilla" if self.is_vanilla else f"tenant={self.tenant_id}"
        return f"{self.operation_id} -> {self.process_id} [{scope}, p={self.priority}]"
