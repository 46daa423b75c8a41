"""
apps.tenants.services.tenant_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
All business logic for the Tenants application.

Views must call only these functions.  No business logic lives in views or
serializers.
"""
from __future__ import annotations

import uuid

import structlog
from django.db import IntegrityError, transaction
from django.utils.text import slugify

from apps.tenants.models import Tenant
from common.exceptions import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

_MUTABLE_FIELDS = frozenset(
    {"description", "timezone", "default_currency_code", "default_language_code"}
)


def _as_uuid(value: str | uuid.UUID) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def create_tenant(*, name: str, code: str | None = None, **attrs) -> Tenant:
    """
    Create a new :class:`Tenant`.

    Args:
        name: Unique display name.
        code: Unique programmatic code; derived from *name* when omitted.
        **attrs: Optional regional defaults and description.  Unknown keys
            are ignored.

    Returns:
        The persisted ``Tenant``.

    Raises:
        ConflictError: When the name or code is already taken.
    """
    code = slugify(code or name)
    if not code:
        raise ValidationError(f"Cannot derive a tenant code from '{name}'.")

    tenant = Tenant(name=name, code=code)
    for field, value in attrs.items():
        if field in _MUTABLE_FIELDS:
            setattr(tenant, field, value)

    try:
        with transaction.atomic():
            tenant.save()
    except IntegrityError as exc:
        raise ConflictError(
            f"A tenant named '{name}' or coded '{code}' already exists."
        ) from exc

    logger.info("tenant_created", tenant_id=str(tenant.id), code=tenant.code)
    return tenant


def get_tenant(tenant_ref: str | uuid.UUID) -> Tenant:
    """
    Fetch a :class:`Tenant` by UUID or by code.

    Raises:
        NotFoundError: If no tenant matches *tenant_ref*.
    """
    tenant_uuid = _as_uuid(tenant_ref)
    if tenant_uuid is not None:
        tenant = Tenant.objects.filter(pk=tenant_uuid).first()
    else:
        tenant = Tenant.objects.filter(code=str(tenant_ref)).first()

    if tenant is None:
        raise NotFoundError(f"Tenant '{tenant_ref}' not found.")
    return tenant


def list_tenants(*, status: str | None = None) -> list[Tenant]:
    """Return every tenant, optionally filtered by status."""
    qs = Tenant.objects.all()
    if status:
        qs = qs.filter(status=status)
    return list(qs)


def update_tenant_status(tenant_ref: str | uuid.UUID, *, status: str) -> Tenant:
    """
    Move a tenant to a new operational *status*.

    ``is_active`` follows the status: only ACTIVE and TRIAL tenants are active.
    """
    if status not in Tenant.Status.values:
        raise ValidationError(f"Unknown tenant status '{status}'.")

    tenant = get_tenant(tenant_ref)
    previous = tenant.status
    tenant.status = status
    tenant.is_active = status in (Tenant.Status.ACTIVE, Tenant.Status.TRIAL)
    tenant.save(update_fields=["status", "is_active", "updated_at"])

    logger.info(
        "tenant_status_changed",
        tenant_id=str(tenant.id),
        previous=previous,
        status=status,
    )
    return tenant
