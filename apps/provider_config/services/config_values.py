"""
apps.provider_config.services.config_values
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Secret-aware configuration values.

A provider parameter holds exactly one of two things:

- a :class:`SecretRef` – a pointer into the credential vault; the secret
  itself is never stored here, or
- a :class:`Plaintext` value.

The database keeps three flat columns (``is_secret``, ``parameter_value``,
``credential_vault_id``).  Every combination that is not one of the two
shapes above is rejected by :func:`config_value_from_fields`, so the rest of
the code only ever sees the union.

This module is pure Python and can be exercised without Django.

Public API
----------
SecretRef / Plaintext         – The two variants
ConfigValue                   – ``SecretRef | Plaintext``
ConfigValueError              – Raised with every problem found
config_value_from_fields(...) -> ConfigValue
config_value_to_fields(value) -> (is_secret, value, vault_ref)
describe(value)               -> safe public dict
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import structlog

logger = structlog.get_logger(__name__)

#: A single validation error dict with "field", "code", and "message" keys.
ErrorDict = dict[str, str]


@dataclass(frozen=True)
class SecretRef:
    """Reference to a credential held in the vault."""

    vault_ref: str


@dataclass(frozen=True)
class Plaintext:
    """A non-sensitive value stored inline."""

    value: str


ConfigValue = Union[SecretRef, Plaintext]


class ConfigValueError(ValueError):
    """
    Raised when stored or submitted fields do not form a valid
    :data:`ConfigValue`.

    Attributes:
        errors: Every problem found, as ``{"field", "code", "message"}``
            dicts.  Validation does not stop at the first one.
    """

    def __init__(self, errors: list[ErrorDict]) -> None:
        self.errors = errors
        super().__init__("; ".join(e["message"] for e in errors))


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def config_value_from_fields(
    *,
    is_secret: bool,
    value: str | None = None,
    vault_ref: str | None = None,
) -> ConfigValue:
    """
    Build a :data:`ConfigValue` from the flat representation.

    Error codes:

    =======================  ===============================================
    Code                     Meaning
    =======================  ===============================================
    ``vault_ref_required``   Secret without a vault reference.
    ``plaintext_secret``     Secret that also carries an inline value.
    ``value_required``       Plaintext without a value.
    ``unexpected_vault_ref`` Plaintext that carries a vault reference.
    =======================  ===============================================

    Raises:
        ConfigValueError: With every problem found.
    """
    errors: list[ErrorDict] = []

    if is_secret:
        if _blank(vault_ref):
            errors.append(
                {
                    "field": "credential_vault_id",
                    "code": "vault_ref_required",
                    "message": "Secret parameters must reference a credential vault entry.",
                }
            )
        if not _blank(value):
            # Never log the value itself.
            logger.warning("plaintext_secret_rejected", vault_ref=vault_ref or None)
            errors.append(
                {
                    "field": "parameter_value",
                    "code": "plaintext_secret",
                    "message": "Secret parameters must not carry a plaintext value.",
                }
            )
    else:
        if value is None:
            errors.append(
                {
                    "field": "parameter_value",
                    "code": "value_required",
                    "message": "Plaintext parameters require a value.",
                }
            )
        if not _blank(vault_ref):
            errors.append(
                {
                    "field": "credential_vault_id",
                    "code": "unexpected_vault_ref",
                    "message": "Plaintext parameters must not reference the credential vault.",
                }
            )

    if errors:
        raise ConfigValueError(errors)

    if is_secret:
        return SecretRef(vault_ref=str(vault_ref).strip())
    return Plaintext(value=value)


def config_value_to_fields(config_value: ConfigValue) -> tuple[bool, str | None, str | None]:
    """Flatten *config_value* into ``(is_secret, parameter_value, credential_vault_id)``."""
    if isinstance(config_value, SecretRef):
        return True, None, config_value.vault_ref
    if isinstance(config_value, Plaintext):
        return False, config_value.value, None
    raise TypeError(f"Not a ConfigValue: {config_value!r}")


def describe(config_value: ConfigValue) -> dict:
    """
    Public rendering of *config_value*.

    Secrets only ever expose their vault reference.
    """
    if isinstance(config_value, SecretRef):
        return {"is_secret": True, "credential_vault_id": config_value.vault_ref}
    return {"is_secret": False, "value": config_value.value}
