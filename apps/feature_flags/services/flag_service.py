"""
apps.feature_flags.services.flag_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Feature-flag storage and evaluation.

Evaluation picks the first applicable flag in this order:

1. tenant + environment
2. tenant (all environments)
3. default + environment
4. default (all environments)

Inactive flags and flags outside their ``[start_at, end_at)`` window are
skipped.  The chosen flag is then subject to its rollout percentage.
"""
from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass
from datetime import datetime

import structlog
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from apps.feature_flags.models import FeatureFlag
from apps.tenants.models import Tenant
from common.exceptions import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

_FLAG_FIELDS = frozenset(
    {"name", "description", "enabled", "rollout_percentage", "start_at", "end_at", "is_active"}
)


@dataclass(frozen=True)
class FlagEvaluation:
    """
    Attributes:
        feature_key: The evaluated key.
        enabled: Final decision.
        source: Which layer decided – ``tenant_env``, ``tenant``,
            ``default_env``, ``default`` or ``missing``.
        flag: The flag that decided, ``None`` when missing.
    """

    feature_key: str
    enabled: bool
    source: str
    flag: FeatureFlag | None = None


def rollout_bucket(feature_key: str, subject_key: str) -> int:
    """Stable bucket in ``[0, 100)`` for *subject_key* under *feature_key*."""
    digest = hashlib.sha256(f"{feature_key}:{subject_key}".encode("utf-8")).hexdigest()
    return int(digest[:8], 16) % 100


def in_rollout(feature_key: str, percentage: int, subject_key: str | None) -> bool:
    percentage = max(0, min(int(percentage), 100))
    if percentage == 0:
        return False
    if percentage == 100:
        return True
    if not subject_key:
        # Partial rollouts need someone to bucket.
        return False
    return rollout_bucket(feature_key, subject_key) < percentage


def _source(flag: FeatureFlag) -> str:
    base = "default" if flag.tenant_id is None else "tenant"
    return f"{base}_env" if flag.environment else base


def _precedence(flag: FeatureFlag) -> tuple[int, int]:
    return (0 if flag.tenant_id is not None else 1, 0 if flag.environment else 1)


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

def create_flag(
    *,
    feature_key: str,
    tenant_id=None,
    environment: str = "",
    **attrs,
) -> FeatureFlag:
    """
    Create a flag in the given scope.

    Raises:
        NotFoundError: Unknown *tenant_id*.
        ConflictError: A flag already exists for this key and scope.
        ValidationError: Inverted window.
    """
    tenant = None
    if tenant_id is not None:
        tenant = Tenant.objects.filter(pk=tenant_id).first()
        if tenant is None:
            raise NotFoundError(f"Tenant '{tenant_id}' not found.")

    start_at, end_at = attrs.get("start_at"), attrs.get("end_at")
    if start_at is not None and end_at is not None and start_at >= end_at:
        raise ValidationError(
            "start_at must be earlier than end_at.",
            errors=[{"field": "end_at", "code": "invalid_window", "message": "end_at must be later than start_at."}],
        )

    environment = (environment or "").strip()
    if FeatureFlag.objects.filter(tenant=tenant, feature_key=feature_key, environment=environment).exists():
        raise ConflictError(f"Feature flag '{feature_key}' already exists in that scope.")

    flag = FeatureFlag(tenant=tenant, feature_key=feature_key, environment=environment)
    for field, value in attrs.items():
        if field in _FLAG_FIELDS and value is not None:
            setattr(flag, field, value)

    try:
        with transaction.atomic():
            flag.save()
    except IntegrityError as exc:
        raise ConflictError(f"Feature flag '{feature_key}' already exists in that scope.") from exc

    logger.info(
        "feature_flag_created",
        feature_key=feature_key,
        tenant_id=str(tenant.id) if tenant else None,
        environment=environment or None,
        enabled=flag.enabled,
    )
    return flag


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def evaluate_flag(
    *,
    feature_key: str,
    tenant_id: uuid.UUID | None = None,
    environment: str = "",
    subject_key: str | None = None,
    at: datetime | None = None,
) -> FlagEvaluation:
    """
    Decide whether *feature_key* is on for the given context.

    Args:
        feature_key: Flag to evaluate.
        tenant_id: Requesting tenant; ``None`` only sees default flags.
        environment: Deployment environment; blank only sees
            all-environment flags.
        subject_key: Identity bucketed for partial rollouts.  Defaults to
            the tenant id.
        at: Evaluation instant, ``now`` by default.

    Returns:
        A :class:`FlagEvaluation`.  A key with no applicable flag evaluates
        to ``enabled=False`` with ``source="missing"``.
    """
    at = at or timezone.now()
    environment = (environment or "").strip()

    tenant_scope = Q(tenant__isnull=True)
    if tenant_id is not None:
        tenant_scope |= Q(tenant_id=tenant_id)
    candidates = FeatureFlag.objects.filter(
        tenant_scope,
        feature_key=feature_key,
        environment__in=["", environment],
        is_active=True,
    )

    applicable = sorted(
        (flag for flag in candidates if flag.is_in_window(at)),
        key=_precedence,
    )
    if not applicable:
        logger.debug("feature_flag_missing", feature_key=feature_key)
        return FlagEvaluation(feature_key=feature_key, enabled=False, source="missing")

    flag = applicable[0]
    subject = subject_key or (str(tenant_id) if tenant_id is not None else None)
    enabled = flag.enabled and in_rollout(feature_key, flag.rollout_percentage, subject)

    logger.debug(
        "feature_flag_evaluated",
        feature_key=feature_key,
        source=_source(flag),
        enabled=enabled,
    )
    return FlagEvaluation(feature_key=feature_key, enabled=enabled, source=_source(flag), flag=flag)
