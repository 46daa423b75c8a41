"""
apps.process_mappings.services.mapping_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
All business logic for API→process mappings.

Views must call only these functions.  No business logic lives in views or
serializers.

Responsibilities
----------------
- CRUD for :class:`~apps.process_mappings.models.ApiProcessMapping`, guarded
  by the optimistic-lock ``version`` column.
- Fetching resolution candidates from the database and delegating the choice
  to the pure
  :class:`~apps.process_mappings.services.mapping_resolver.MappingResolver`.
- Owning the resolution cache: looking results up, storing them and
  invalidating the affected tenant scope after every write.
- The read-only listings exposed by the API (per tenant, vanilla, per
  process, per route, filter + pagination).
"""
from __future__ import annotations

import uuid
from datetime import datetime

import structlog
from django.db.models import F, Min, Q, QuerySet
from django.utils import timezone

from apps.process_mappings.models import ApiProcessMapping
from apps.tenants.models import Tenant
from common.exceptions import ConflictError, NotFoundError, ValidationError
from common.pagination import paginate
from .mapping_cache import MappingResolutionCache, get_resolution_cache
from .mapping_resolver import (
    MappingResolution,
    MappingResolver,
    ResolutionRequest,
    ResolutionRequestError,
)

logger = structlog.get_logger(__name__)

#: Fields a create/update payload may set.
_WRITABLE_FIELDS = frozenset(
    {
        "tenant_id",
        "product_id",
        "channel_type",
        "api_path",
        "http_method",
        "operation_id",
        "process_id",
        "process_version",
        "priority",
        "is_active",
        "effective_from",
        "effective_to",
        "parameters",
        "description",
    }
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _coerce_uuid(value, *, field: str) -> uuid.UUID | None:
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(
            f"{field} must be a UUID.",
            errors=[{"field": field, "code": "invalid_uuid", "message": f"'{value}' is not a UUID."}],
        ) from None


def _ensure_tenant_exists(tenant_id: uuid.UUID | None) -> None:
    if tenant_id is not None and not Tenant.objects.filter(pk=tenant_id).exists():
        raise NotFoundError(f"Tenant '{tenant_id}' not found.")


def _check_window(effective_from: datetime | None, effective_to: datetime | None) -> None:
    if effective_from is not None and effective_to is not None and effective_from >= effective_to:
        raise ValidationError(
            "effective_from must be earlier than effective_to.",
            errors=[
                {
                    "field": "effective_to",
                    "code": "invalid_window",
                    "message": "effective_to must be later than effective_from.",
                }
            ],
        )


def _invalidate_scope(cache: MappingResolutionCache, tenant_id) -> None:
    # Vanilla rules reach every tenant, so any write touching one flushes all.
    cache.invalidate(tenant_id)


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

def get_mapping(mapping_id: str | uuid.UUID) -> ApiProcessMapping:
    """
    Fetch one mapping by id.

    Raises:
        NotFoundError: If no mapping has *mapping_id*.
    """
    pk = _coerce_uuid(mapping_id, field="id")
    mapping = ApiProcessMapping.objects.filter(pk=pk).first()
    if mapping is None:
        raise NotFoundError(f"ApiProcessMapping not found with id: {mapping_id}")
    return mapping


def create_mapping(
    *,
    data: dict,
    acting_user: str | None = None,
    cache: MappingResolutionCache | None = None,
) -> ApiProcessMapping:
    """
    Create a mapping from a validated payload.

    ``is_active`` defaults to ``True`` and ``priority`` to ``0``.  Afterwards
    the resolution cache for the mapping's tenant is invalidated (the whole
    cache for a vanilla mapping).

    Args:
        data: Field values; keys outside the writable set are ignored.
        acting_user: Recorded as ``created_by`` / ``updated_by``.
        cache: Resolution cache collaborator; defaults to
            :func:`get_resolution_cache`.

    Raises:
        ValidationError: Missing operation/process id, bad UUIDs or an
            inverted effective window.
    """
    cache = cache or get_resolution_cache()
    values = {k: v for k, v in data.items() if k in _WRITABLE_FIELDS}
    values["tenant_id"] = _coerce_uuid(values.get("tenant_id"), field="tenant_id")
    values["product_id"] = _coerce_uuid(values.get("product_id"), field="product_id")
    _ensure_tenant_exists(values["tenant_id"])

    errors = [
        {"field": name, "code": "required", "message": f"{name} is required and cannot be blank."}
        for name in ("operation_id", "process_id")
        if not str(values.get(name) or "").strip()
    ]
    if errors:
        raise ValidationError("Mapping is missing required fields.", errors=errors)

    if values.get("is_active") is None:
        values["is_active"] = True
    if values.get("priority") is None:
        values["priority"] = 0
    _check_window(values.get("effective_from"), values.get("effective_to"))

    mapping = ApiProcessMapping(
        **values,
        created_by=acting_user or "",
        updated_by=acting_user or "",
    )
    mapping.save()

    logger.info(
        "mapping_created",
        mapping_id=str(mapping.id),
        operation_id=mapping.operation_id,
        process_id=mapping.process_id,
        tenant_id=str(mapping.tenant_id) if mapping.tenant_id else None,
    )
    _invalidate_scope(cache, mapping.tenant_id)
    return mapping


def update_mapping(
    mapping_id: str | uuid.UUID,
    *,
    data: dict,
    expected_version: int | None = None,
    acting_user: str | None = None,
    cache: MappingResolutionCache | None = None,
) -> ApiProcessMapping:
    """
    Apply a partial update under optimistic locking.

    The write is a conditional ``UPDATE … WHERE version = <seen>`` that bumps
    ``version``; if another writer got there first, nothing is written.

    Args:
        mapping_id: Target mapping.
        data: Fields to change; keys outside the writable set are ignored.
        expected_version: The version the caller last read.  When given and
            it differs from the stored one, the update is rejected outright.
        acting_user: Recorded as ``updated_by``.
        cache: Resolution cache collaborator.

    Returns:
        The reloaded mapping.

    Raises:
        NotFoundError: Unknown *mapping_id*.
        ConflictError: Version mismatch or lost update race.
        ValidationError: Bad UUIDs or an inverted effective window.
    """
    cache = cache or get_resolution_cache()
    mapping = get_mapping(mapping_id)
    previous_tenant_id = mapping.tenant_id

    if expected_version is not None and expected_version != mapping.version:
        raise ConflictError(
            f"ApiProcessMapping {mapping.id} is at version {mapping.version}, "
            f"not {expected_version}."
        )

    changes = {k: v for k, v in data.items() if k in _WRITABLE_FIELDS}
    if "tenant_id" in changes:
        changes["tenant_id"] = _coerce_uuid(changes["tenant_id"], field="tenant_id")
        _ensure_tenant_exists(changes["tenant_id"])
    if "product_id" in changes:
        changes["product_id"] = _coerce_uuid(changes["product_id"], field="product_id")
    for name in ("operation_id", "process_id"):
        if name in changes and not str(changes[name] or "").strip():
            raise ValidationError(
                f"{name} cannot be blank.",
                errors=[{"field": name, "code": "required", "message": f"{name} cannot be blank."}],
            )
    if "channel_type" in changes:
        changes["channel_type"] = (changes["channel_type"] or "").strip() or None
    if "http_method" in changes:
        changes["http_method"] = (changes["http_method"] or "").upper()

    _check_window(
        changes.get("effective_from", mapping.effective_from),
        changes.get("effective_to", mapping.effective_to),
    )

    updated = ApiProcessMapping.objects.filter(pk=mapping.pk, version=mapping.version).update(
        **changes,
        updated_by=acting_user or mapping.updated_by,
        updated_at=timezone.now(),
        version=F("version") + 1,
    )
    if updated == 0:
        raise ConflictError(
            f"ApiProcessMapping {mapping.id} was modified concurrently; reload and retry."
        )

    mapping.refresh_from_db()
    logger.info("mapping_updated", mapping_id=str(mapping.id), version=mapping.version)

    _invalidate_scope(cache, previous_tenant_id)
    if mapping.tenant_id != previous_tenant_id:
        _invalidate_scope(cache, mapping.tenant_id)
    return mapping


def delete_mapping(
    mapping_id: str | uuid.UUID,
    *,
    cache: MappingResolutionCache | None = None,
) -> None:
    """Hard-delete a mapping and invalidate its tenant scope."""
    cache = cache or get_resolution_cache()
    mapping = get_mapping(mapping_id)
    tenant_id = mapping.tenant_id
    mapping.delete()
    logger.info("mapping_deleted", mapping_id=str(mapping_id))
    _invalidate_scope(cache, tenant_id)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def find_resolution_candidates(*, operation_id: str, at: datetime) -> list[ApiProcessMapping]:
    """
    Storage query feeding the resolver: every active mapping for
    *operation_id* whose effective window contains *at*.  Unordered; the
    resolver does the ranking.
    """
    qs = ApiProcessMapping.objects.filter(
        operation_id=operation_id,
        is_active=True,
    ).filter(
        Q(effective_from__isnull=True) | Q(effective_from__lte=at),
        Q(effective_to__isnull=True) | Q(effective_to__gt=at),
    )
    return list(qs)


def next_window_boundary(
    *, operation_id: str, at: datetime, candidates: list[ApiProcessMapping]
) -> datetime | None:
    """
    Earliest instant after *at* at which the candidate set for
    *operation_id* changes on its own: a fetched candidate's
    ``effective_to`` or a pending mapping's ``effective_from``.
    """
    boundaries = [c.effective_to for c in candidates if c.effective_to and c.effective_to > at]
    next_start = (
        ApiProcessMapping.objects.filter(
            operation_id=operation_id, is_active=True, effective_from__gt=at
        )
        .aggregate(next_start=Min("effective_from"))["next_start"]
    )
    if next_start is not None:
        boundaries.append(next_start)
    return min(boundaries, default=None)


def resolve_mapping(
    *,
    operation_id: str,
    tenant_id=None,
    product_id=None,
    channel_type: str | None = None,
    cache: MappingResolutionCache | None = None,
    at: datetime | None = None,
) -> MappingResolution:
    """
    Return the single mapping that should handle *operation_id* in the given
    context, or a not-found :class:`MappingResolution`.

    Steps:

    1. Validate the request (blank *operation_id* →
       :class:`~common.exceptions.ValidationError`).
    2. Look the request up in the resolution cache.  On a hit, return it.
    3. Otherwise fetch candidates and run
       :meth:`MappingResolver.resolve`, then store the outcome (found or
       not) under the key taken in step 2, valid until
       :func:`next_window_boundary`.

    Passing an explicit *at* bypasses the cache: point-in-time lookups are
    not what the cache holds.

    Raises:
        ValidationError: Blank *operation_id* or malformed UUIDs.
    """
    try:
        request = ResolutionRequest(
            operation_id=operation_id,
            tenant_id=_coerce_uuid(tenant_id, field="tenant_id"),
            product_id=_coerce_uuid(product_id, field="product_id"),
            channel_type=channel_type,
        )
    except ResolutionRequestError as exc:
        raise ValidationError(
            str(exc),
            errors=[{"field": "operation_id", "code": "required", "message": str(exc)}],
        ) from exc

    use_cache = at is None
    at = at or timezone.now()
    cache = cache or get_resolution_cache()

    lookup = cache.lookup(request, now=at) if use_cache else None
    if lookup is not None and lookup.hit:
        return lookup.resolution

    candidates = find_resolution_candidates(operation_id=request.operation_id, at=at)
    resolution = MappingResolver.resolve(candidates, request, at=at)
    _log_resolution(resolution)

    if lookup is not None:
        valid_until = next_window_boundary(
            operation_id=request.operation_id, at=at, candidates=candidates
        )
        cache.store(lookup.key, resolution, valid_until=valid_until, now=at)
    return resolution


def _log_resolution(resolution: MappingResolution) -> None:
    request = resolution.request
    context = {
        "operation_id": request.operation_id,
        "tenant_id": str(request.tenant_id) if request.tenant_id else None,
        "product_id": str(request.product_id) if request.product_id else None,
        "channel_type": request.channel_type,
    }
    if not resolution.found:
        logger.info("mapping_not_found", **context)
        return

    mapping = resolution.mapping
    if resolution.has_tie:
        logger.warning(
            "mapping_resolution_tie",
            selected_id=str(mapping.id),
            tied_ids=[str(i) for i in resolution.tied_ids],
            specificity=mapping.specificity_score,
            priority=mapping.priority,
            **context,
        )
    logger.debug(
        "mapping_resolved",
        mapping_id=str(mapping.id),
        process_id=mapping.process_id,
        vanilla=mapping.is_vanilla,
        candidate_count=resolution.candidate_count,
        **context,
    )


def invalidate_cache(tenant_id=None, *, cache: MappingResolutionCache | None = None) -> None:
    """
    Drop cached resolutions for *tenant_id*, or everything when ``None``.
    """
    cache = cache or get_resolution_cache()
    cache.invalidate(_coerce_uuid(tenant_id, field="tenant_id"))


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

def list_by_tenant(tenant_id) -> list[ApiProcessMapping]:
    """All mappings (active or not) owned by *tenant_id*."""
    return list(
        ApiProcessMapping.objects.filter(tenant_id=_coerce_uuid(tenant_id, field="tenant_id"))
    )


def list_vanilla_mappings() -> list[ApiProcessMapping]:
    """Active mappings with no tenant."""
    return list(ApiProcessMapping.objects.filter(tenant__isnull=True, is_active=True))


def list_by_process(process_id: str) -> list[ApiProcessMapping]:
    return list(ApiProcessMapping.objects.filter(process_id=process_id))


def count_active_by_process(process_id: str) -> int:
    return ApiProcessMapping.objects.filter(process_id=process_id, is_active=True).count()


def list_by_route(*, api_path: str, http_method: str) -> list[ApiProcessMapping]:
    """Active mappings documented for an HTTP route."""
    return list(
        ApiProcessMapping.objects.filter(
            api_path=api_path,
            http_method=http_method.upper(),
            is_active=True,
        )
    )


def exists_for_context(
    *,
    tenant_id,
    operation_id: str,
    product_id=None,
    channel_type: str | None = None,
) -> bool:
    """
    ``True`` if an active mapping exists with exactly this scope.

    Unlike resolution there is no wildcarding here: a NULL product or channel
    only matches a NULL column.  Useful to stop admins from creating
    duplicates.
    """
    qs = ApiProcessMapping.objects.filter(
        is_active=True,
        operation_id=operation_id,
        tenant_id=_coerce_uuid(tenant_id, field="tenant_id"),
        product_id=_coerce_uuid(product_id, field="product_id"),
    )
    channel_type = (channel_type or "").strip() or None
    qs = qs.filter(channel_type__isnull=True) if channel_type is None else qs.filter(
        channel_type=channel_type
    )
    return qs.exists()


def _filtered_queryset(filters: dict) -> QuerySet:
    qs = ApiProcessMapping.objects.all()
    if filters.get("vanilla") is True:
        qs = qs.filter(tenant__isnull=True)
    elif filters.get("vanilla") is False:
        qs = qs.filter(tenant__isnull=False)
    if filters.get("tenant_id"):
        qs = qs.filter(tenant_id=_coerce_uuid(filters["tenant_id"], field="tenant_id"))
    if filters.get("product_id"):
        qs = qs.filter(product_id=_coerce_uuid(filters["product_id"], field="product_id"))
    for name in ("channel_type", "operation_id", "process_id"):
        if filters.get(name):
            qs = qs.filter(**{name: filters[name]})
    if filters.get("http_method"):
        qs = qs.filter(http_method=filters["http_method"].upper())
    if filters.get("is_active") is not None:
        qs = qs.filter(is_active=filters["is_active"])
    return qs.order_by("operation_id", "priority", "id")


def filter_mappings(
    *,
    filters: dict | None = None,
    page: int = 1,
    page_size: int | None = None,
    serializer_class=None,
) -> dict:
    """Filter mappings and return one page in the pagination contract."""
    return paginate(
        _filtered_queryset(filters or {}),
        page=page,
        page_size=page_size,
        serializer_class=serializer_class,
    )
