"""
apps.channel_config.services.channel_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
All business logic for channel configurations and their parameters.

Views must call only these functions.  No business logic lives in views or
serializers.

Lookups are scoped by tenant and channel code: a tenant only ever sees its
own channels, and :func:`get_channel_parameters` answers "what does
``MOBILE_BANKING`` look like for this bank?" in one call.
"""
from __future__ import annotations

import json
import re
import uuid
from decimal import Decimal, InvalidOperation

import structlog
from django.db import IntegrityError, transaction

from apps.channel_config.models import (
    ChannelConfig,
    ChannelConfigParameter,
    normalise_channel_code,
)
from apps.tenants import services as tenant_services
from common.exceptions import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

#: Rendered in place of a sensitive value.
MASK = "********"

_CONFIG_FIELDS = frozenset(
    {
        "description",
        "channel_type",
        "requires_authentication",
        "session_timeout_minutes",
        "idle_timeout_minutes",
        "rate_limit_per_minute",
        "max_transaction_amount",
        "enabled",
        "priority",
        "is_active",
    }
)

_PARAMETER_FIELDS = frozenset(
    {"description", "category", "is_sensitive", "is_required", "validation_regex", "default_value"}
)

_BOOLEAN_LITERALS = frozenset({"true", "false"})


def _as_uuid(value) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Value checks
# ---------------------------------------------------------------------------

def _type_error(value: str, parameter_type: str) -> str | None:
    types = ChannelConfigParameter.ParameterType
    if parameter_type == types.INTEGER:
        try:
            int(value)
        except ValueError:
            return f"'{value}' is not an integer."
    elif parameter_type == types.DECIMAL:
        try:
            Decimal(value)
        except InvalidOperation:
            return f"'{value}' is not a decimal number."
    elif parameter_type == types.BOOLEAN:
        if value.lower() not in _BOOLEAN_LITERALS:
            return f"'{value}' is not 'true' or 'false'."
    elif parameter_type == types.JSON:
        try:
            json.loads(value)
        except json.JSONDecodeError:
            return "Value is not valid JSON."
    return None


def check_parameter_value(
    *,
    value: str,
    default_value: str = "",
    parameter_type: str = ChannelConfigParameter.ParameterType.STRING,
    validation_regex: str = "",
    is_required: bool = False,
) -> list[dict]:
    """
    Validate a parameter's value and default against its declared type.

    Every problem is collected rather than stopping at the first one.

    Returns:
        A list of ``{"field", "code", "message"}`` dicts; empty when valid.
    """
    errors: list[dict] = []
    if parameter_type not in ChannelConfigParameter.ParameterType.values:
        return [
            {
                "field": "parameter_type",
                "code": "invalid_choice",
                "message": f"'{parameter_type}' is not a known parameter type.",
            }
        ]

    pattern = None
    if validation_regex:
        try:
            pattern = re.compile(validation_regex)
        except re.error as exc:
            errors.append(
                {"field": "validation_regex", "code": "invalid_regex", "message": str(exc)}
            )

    if is_required and not (value or default_value):
        errors.append(
            {
                "field": "parameter_value",
                "code": "required",
                "message": "A required parameter needs a value or a default.",
            }
        )

    for field, candidate in (("parameter_value", value), ("default_value", default_value)):
        if not candidate:
            continue
        message = _type_error(candidate, parameter_type)
        if message:
            errors.append({"field": field, "code": "invalid_type", "message": message})
        elif pattern is not None and not pattern.fullmatch(candidate):
            errors.append(
                {
                    "field": field,
                    "code": "pattern_mismatch",
                    "message": f"Value does not match {validation_regex!r}.",
                }
            )
    return errors


# ---------------------------------------------------------------------------
# Channel configurations
# ---------------------------------------------------------------------------

def create_channel_config(
    *,
    tenant_id,
    channel_code: str,
    channel_name: str,
    **attrs,
) -> ChannelConfig:
    """
    Register a channel for a tenant.

    Raises:
        NotFoundError: Unknown tenant.
        ValidationError: Blank *channel_code*.
        ConflictError: The tenant already configures that channel.
    """
    tenant = tenant_services.get_tenant(tenant_id)
    code = normalise_channel_code(channel_code)
    if not code:
        raise ValidationError(
            "Channel code cannot be blank.",
            errors=[{"field": "channel_code", "code": "required", "message": "channel_code is required."}],
        )

    channel = ChannelConfig(tenant=tenant, channel_code=code, channel_name=channel_name)
    for field, value in attrs.items():
        if field in _CONFIG_FIELDS:
            setattr(channel, field, value)

    try:
        with transaction.atomic():
            channel.save()
    except IntegrityError as exc:
        raise ConflictError(
            f"Tenant '{tenant.code}' already configures channel '{code}'."
        ) from exc

    logger.info(
        "channel_config_created",
        channel_config_id=str(channel.id),
        tenant_id=str(tenant.id),
        channel_code=code,
    )
    return channel


def get_channel_config(config_id) -> ChannelConfig:
    """
    Raises:
        NotFoundError: If no channel configuration has *config_id*.
    """
    pk = _as_uuid(config_id)
    channel = ChannelConfig.objects.filter(pk=pk).first() if pk else None
    if channel is None:
        raise NotFoundError(f"Channel configuration '{config_id}' not found.")
    return channel


def find_channel_config(*, tenant_id, channel_code: str) -> ChannelConfig:
    """
    The active configuration of *channel_code* for *tenant_id*.

    Raises:
        NotFoundError: Unknown tenant, or the tenant has no active
            configuration for that channel.
    """
    tenant = tenant_services.get_tenant(tenant_id)
    code = normalise_channel_code(channel_code)
    channel = ChannelConfig.objects.filter(tenant=tenant, channel_code=code, is_active=True).first()
    if channel is None:
        raise NotFoundError(f"Channel '{code}' is not configured for tenant '{tenant.code}'.")
    return channel


def list_channel_configs(*, tenant_id, active_only: bool = False) -> list[ChannelConfig]:
    tenant = tenant_services.get_tenant(tenant_id)
    qs = ChannelConfig.objects.filter(tenant=tenant)
    if active_only:
        qs = qs.filter(is_active=True)
    return list(qs)


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

def set_parameter(
    *,
    config_id,
    parameter_key: str,
    parameter_value: str = "",
    parameter_type: str = ChannelConfigParameter.ParameterType.STRING,
    **attrs,
) -> ChannelConfigParameter:
    """
    Create or replace *parameter_key* on a channel configuration.

    Writing a key that was soft-deleted revives it.

    Args:
        config_id: Owning :class:`ChannelConfig`.
        parameter_key: e.g. ``"session_timeout_minutes"``.
        parameter_value: The value as text.
        parameter_type: One of :class:`ChannelConfigParameter.ParameterType`.
        **attrs: ``description``, ``category``, ``is_sensitive``,
            ``is_required``, ``validation_regex``, ``default_value``.

    Raises:
        NotFoundError: Unknown channel configuration.
        ValidationError: Blank key, or every problem reported by
            :func:`check_parameter_value`.
    """
    key = (parameter_key or "").strip()
    if not key:
        raise ValidationError(
            "Parameter key cannot be blank.",
            errors=[{"field": "parameter_key", "code": "required", "message": "parameter_key is required."}],
        )
    channel = get_channel_config(config_id)

    with transaction.atomic():
        parameter = (
            ChannelConfigParameter.objects.select_for_update()
            .filter(channel_config=channel, parameter_key=key)
            .first()
        )
        created = parameter is None
        if created:
            parameter = ChannelConfigParameter(channel_config=channel, parameter_key=key)
        parameter.parameter_value = parameter_value or ""
        parameter.parameter_type = parameter_type
        for field, value in attrs.items():
            if field in _PARAMETER_FIELDS and value is not None:
                setattr(parameter, field, value)

        errors = check_parameter_value(
            value=parameter.parameter_value,
            default_value=parameter.default_value,
            parameter_type=parameter.parameter_type,
            validation_regex=parameter.validation_regex,
            is_required=parameter.is_required,
        )
        if errors:
            raise ValidationError(f"Invalid value for parameter '{key}'.", errors=errors)

        parameter.is_active = True
        parameter.save()

    logger.info(
        "channel_parameter_set",
        channel_config_id=str(channel.id),
        channel_code=channel.channel_code,
        parameter_key=key,
        parameter_type=parameter_type,
        is_sensitive=parameter.is_sensitive,
        created=created,
    )
    return parameter


def delete_parameter(*, config_id, parameter_key: str) -> None:
    """
    Soft-delete *parameter_key*: the row stays, marked inactive.

    Raises:
        NotFoundError: Unknown configuration, or no active parameter by that
            key.
    """
    channel = get_channel_config(config_id)
    updated = ChannelConfigParameter.objects.filter(
        channel_config=channel, parameter_key=parameter_key, is_active=True
    ).update(is_active=False)
    if not updated:
        raise NotFoundError(
            f"Parameter '{parameter_key}' not set on channel '{channel.channel_code}'."
        )
    logger.info(
        "channel_parameter_deleted",
        channel_config_id=str(channel.id),
        parameter_key=parameter_key,
    )


def list_parameters(*, config_id, active_only: bool = True) -> list[ChannelConfigParameter]:
    channel = get_channel_config(config_id)
    qs = channel.parameters.all()
    if active_only:
        qs = qs.filter(is_active=True)
    return list(qs)


def describe_parameter(parameter: ChannelConfigParameter) -> dict:
    """
    Render a parameter for callers.

    ``source`` is ``value`` when a value is stored, ``default`` when the
    default stands in and ``missing`` when neither is set.
    """
    if parameter.parameter_value:
        source = "value"
    elif parameter.default_value:
        source = "default"
    else:
        source = "missing"
    value = parameter.effective_value
    if parameter.is_sensitive and value is not None:
        value = MASK
    return {
        "value": value,
        "parameter_type": parameter.parameter_type,
        "category": parameter.category,
        "is_sensitive": parameter.is_sensitive,
        "is_required": parameter.is_required,
        "source": source,
    }


def get_channel_parameters(
    *,
    tenant_id,
    channel_code: str,
    category: str | None = None,
) -> dict[str, dict]:
    """
    Active parameters of *tenant_id*'s *channel_code* configuration.

    Returns:
        ``{parameter_key: describe_parameter(...)}``.  Sensitive values are
        masked.

    Raises:
        NotFoundError: The tenant has no active configuration for that
            channel.
    """
    channel = find_channel_config(tenant_id=tenant_id, channel_code=channel_code)
    qs = channel.parameters.filter(is_active=True)
    if category:
        qs = qs.filter(category=category)

    parameters = {p.parameter_key: describe_parameter(p) for p in qs}
    missing = [key for key, p in parameters.items() if p["is_required"] and p["source"] == "missing"]
    if missing:
        logger.warning(
            "channel_required_parameters_missing",
            channel_config_id=str(channel.id),
            channel_code=channel.channel_code,
            parameter_keys=missing,
        )
    return parameters
