"""
apps.feature_flags.models
~~~~~~~~~~~~~~~~~~~~~~~~~
FeatureFlag – a switch with optional tenant/environment scope, a time window
and a percentage rollout.
"""
import uuid

from django.core.validators import MaxValueValidator
from django.db import models

from apps.tenants.models import Tenant


class FeatureFlag(models.Model):
    """
    Fields
    ------
    tenant
        NULL means the global default for every tenant.
    environment
        Blank means "every environment".
    rollout_percentage
        Share of subjects (0–100) that see the flag on when ``enabled``.
    start_at / end_at
        Optional ``[start, end)`` window outside which the flag is ignored.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="feature_flags",
    )
    feature_key = models.CharField(max_length=100, db_index=True)
    name = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")
    enabled = models.BooleanField(default=False)
    environment = models.CharField(max_length=20, blank=True, default="")
    rollout_percentage = models.PositiveSmallIntegerField(
        default=100,
        validators=[MaxValueValidator(100)],
    )
    start_at = models.DateTimeField(null=True, blank=True)
    end_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["feature_key", "environment"]
        verbose_name = "Feature Flag"
        verbose_name_plural = "Feature Flags"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "feature_key", "environment"],
                name="feature_flag_scope_unique",
            ),
        ]

    def is_in_window(self, at) -> bool:
        if self.start_at is not None and at < self.start_at:
            return False
        if self.end_at is not None and at >= self.end_at:
            return False
        return True

    def __str__(self) -> str:
        scope = "default" if self.tenant_id is None else f"tenant={self.tenant_id}"
        state = "on" if self.enabled else "off"
        return f"{self.feature_key} [{scope}, env={self.environment or '*'}] {state}"
