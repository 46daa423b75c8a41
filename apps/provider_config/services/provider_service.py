"""
apps.provider_config.services.provider_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
All business logic for providers and their parameters.

Views must call only these functions.  No business logic lives in views or
serializers.

Effective parameters
--------------------
A parameter may be defined at four layers.  Later layers win::

    1. default  / all environments   (tenant NULL, environment "")
    2. default  / <environment>
    3. <tenant> / all environments
    4. <tenant> / <environment>
"""
from __future__ import annotations

import uuid

import structlog
from django.db import IntegrityError, transaction
from django.db.models import Q

from apps.provider_config.models import Provider, ProviderParameter
from apps.tenants.models import Tenant
from common.exceptions import ConflictError, NotFoundError, ValidationError
from .config_values import (
    ConfigValue,
    ConfigValueError,
    config_value_from_fields,
    describe,
)

logger = structlog.get_logger(__name__)

_PROVIDER_FIELDS = frozenset({"provider_type", "base_url", "is_active"})


def _as_uuid(value) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _tenant_or_404(tenant_id) -> Tenant | None:
    if tenant_id in (None, ""):
        return None
    tenant_uuid = _as_uuid(tenant_id)
    tenant = Tenant.objects.filter(pk=tenant_uuid).first() if tenant_uuid else None
    if tenant is None:
        raise NotFoundError(f"Tenant '{tenant_id}' not found.")
    return tenant


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

def create_provider(*, code: str, name: str, **attrs) -> Provider:
    """
    Register a new :class:`Provider`.

    Raises:
        ConflictError: When *code* is already taken.
    """
    provider = Provider(code=code, name=name)
    for field, value in attrs.items():
        if field in _PROVIDER_FIELDS:
            setattr(provider, field, value)

    try:
        with transaction.atomic():
            provider.save()
    except IntegrityError as exc:
        raise ConflictError(f"A provider coded '{code}' already exists.") from exc

    logger.info("provider_created", provider_id=str(provider.id), code=provider.code)
    return provider


def get_provider(provider_ref: str | uuid.UUID) -> Provider:
    """
    Fetch a :class:`Provider` by UUID or by code.

    Raises:
        NotFoundError: If nothing matches *provider_ref*.
    """
    provider_uuid = _as_uuid(provider_ref)
    if provider_uuid is not None:
        provider = Provider.objects.filter(pk=provider_uuid).first()
    else:
        provider = Provider.objects.filter(code=str(provider_ref)).first()

    if provider is None:
        raise NotFoundError(f"Provider '{provider_ref}' not found.")
    return provider


def list_providers(*, provider_type: str | None = None, active_only: bool = False) -> list[Provider]:
    qs = Provider.objects.all()
    if provider_type:
        qs = qs.filter(provider_type=provider_type)
    if active_only:
        qs = qs.filter(is_active=True)
    return list(qs)


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

def build_config_value(
    *,
    is_secret: bool,
    value: str | None = None,
    vault_ref: str | None = None,
) -> ConfigValue:
    """
    Turn submitted flat fields into a :data:`~.config_values.ConfigValue`.

    Raises:
        ValidationError: Carrying every problem reported by
            :func:`~.config_values.config_value_from_fields`.
    """
    try:
        return config_value_from_fields(is_secret=is_secret, value=value, vault_ref=vault_ref)
    except ConfigValueError as exc:
        raise ValidationError("Invalid parameter value.", errors=exc.errors) from exc


def set_parameter(
    *,
    provider_id,
    name: str,
    config_value: ConfigValue,
    tenant_id=None,
    environment: str = "",
    category: str = "",
) -> ProviderParameter:
    """
    Create or replace the parameter *name* in the given scope.

    Args:
        provider_id: Provider UUID or code.
        name: Parameter name, e.g. ``"api_key"``.
        config_value: A :class:`~.config_values.SecretRef` or
            :class:`~.config_values.Plaintext`.
        tenant_id: Owning tenant; ``None`` sets the default for all tenants.
        environment: Target environment; blank means every environment.
        category: Free-form grouping label.

    Raises:
        NotFoundError: Unknown provider or tenant.
        ValidationError: Blank *name*.
    """
    if not (name or "").strip():
        raise ValidationError(
            "Parameter name cannot be blank.",
            errors=[{"field": "name", "code": "required", "message": "name is required."}],
        )
    provider = get_provider(provider_id)
    tenant = _tenant_or_404(tenant_id)
    environment = (environment or "").strip()

    with transaction.atomic():
        parameter = (
            ProviderParameter.objects.select_for_update()
            .filter(provider=provider, tenant=tenant, name=name, environment=environment)
            .first()
        )
        created = parameter is None
        if created:
            parameter = ProviderParameter(
                provider=provider, tenant=tenant, name=name, environment=environment
            )
        parameter.config_value = config_value
        parameter.category = category or parameter.category
        parameter.save()

    logger.info(
        "provider_parameter_set",
        provider=provider.code,
        name=name,
        tenant_id=str(tenant.id) if tenant else None,
        environment=environment or None,
        is_secret=parameter.is_secret,
        created=created,
    )
    return parameter


def delete_parameter(
    *,
    provider_id,
    name: str,
    tenant_id=None,
    environment: str = "",
) -> None:
    """
    Remove the parameter *name* from exactly the given scope.

    Raises:
        NotFoundError: If the provider, tenant or parameter does not exist.
    """
    provider = get_provider(provider_id)
    tenant = _tenant_or_404(tenant_id)
    deleted, _ = ProviderParameter.objects.filter(
        provider=provider,
        tenant=tenant,
        name=name,
        environment=(environment or "").strip(),
    ).delete()
    if not deleted:
        raise NotFoundError(f"Parameter '{name}' not set for provider '{provider.code}' in that scope.")
    logger.info("provider_parameter_deleted", provider=provider.code, name=name)


def _layer(parameter: ProviderParameter) -> int:
    return (2 if parameter.tenant_id is not None else 0) + (1 if parameter.environment else 0)


def get_effective_parameters(
    *,
    provider_id,
    tenant_id=None,
    environment: str = "",
) -> dict[str, dict]:
    """
    Merge every layer that applies to *tenant_id* / *environment*.

    Returns:
        ``{name: describe(config_value) | {"category", "source"}}``, where
        ``source`` names the winning layer (``default``, ``default_env``,
        ``tenant``, ``tenant_env``).  Secrets only expose their vault
        reference.
    """
    provider = get_provider(provider_id)
    tenant = _tenant_or_404(tenant_id)
    environment = (environment or "").strip()

    qs = ProviderParameter.objects.filter(provider=provider, environment__in=["", environment])
    if tenant is None:
        qs = qs.filter(tenant__isnull=True)
    else:
        qs = qs.filter(Q(tenant__isnull=True) | Q(tenant=tenant))

    sources = ("default", "default_env", "tenant", "tenant_env")
    effective: dict[str, dict] = {}
    for parameter in sorted(qs, key=_layer):
        effective[parameter.name] = {
            **describe(parameter.config_value),
            "category": parameter.category,
            "source": sources[_layer(parameter)],
        }
    return effective
