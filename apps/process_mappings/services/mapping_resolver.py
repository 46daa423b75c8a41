"""
apps.process_mappings.services.mapping_resolver
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Deterministic, pure-function resolver that picks the process plugin for an
API operation.

Given a request context ``(tenant_id, operation_id, product_id, channel_type)``
and a snapshot of candidate mappings, the resolver returns **exactly one**
mapping or an explicit not-found outcome.

Selection rules (executed in this exact order):
    1. **Filter** – keep mappings whose ``operation_id`` equals the request's,
       that are currently effective (active and inside their
       ``[effective_from, effective_to)`` window) and whose every scope key
       (tenant, product, channel) is either NULL on the mapping (wildcard) or
       equal to the request's value.  A tenant-scoped mapping never matches a
       request that carries no tenant.
    2. **Score** – ``100·tenant + 10·product + 1·channel`` for each scope key
       the mapping sets.
    3. **Order** – specificity descending, then ``priority`` ascending, then
       mapping id ascending.
    4. **Pick** the first survivor, or report not-found.

Vanilla (tenant-less) mappings therefore act as the lowest tier fallback for
every tenant without any second query.

This module is **pure Python**: it has zero Django view, serializer, or ORM
imports.  Candidates are duck-typed: anything exposing the mapping attributes
(``id``, ``tenant_id``, ``product_id``, ``channel_type``, ``operation_id``,
``priority``, ``is_active``, ``effective_from``, ``effective_to``) works,
including ORM instances and plain dataclasses in tests.

Public API
----------
ResolutionRequest        – Input dataclass
MappingResolution        – Output dataclass (found or not-found)
ResolutionRequestError   – Raised for a blank ``operation_id``
MappingResolver.resolve(candidates, request, at=...) -> MappingResolution
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

#: Weights of each scope key in the specificity score.
TENANT_WEIGHT = 100
PRODUCT_WEIGHT = 10
CHANNEL_WEIGHT = 1


class ResolutionRequestError(ValueError):
    """Raised when a resolution request violates the caller contract."""


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResolutionRequest:
    """
    The context a caller wants a process mapping for.

    Attributes:
        operation_id: Required API operation identifier
            (e.g. ``"createAccount"``).  Surrounding whitespace is stripped.
        tenant_id: Requesting tenant, or ``None`` for a vanilla lookup.
        product_id: Product context, or ``None``.
        channel_type: Channel context (``"MOBILE"``, ``"WEB"`` …), or
            ``None``.  A blank string means "no channel".

    Raises:
        ResolutionRequestError: If *operation_id* is missing or blank.
    """

    operation_id: str
    tenant_id: Any = None
    product_id: Any = None
    channel_type: str | None = None

    def __post_init__(self) -> None:
        operation_id = _blank_to_none(self.operation_id)
        if operation_id is None:
            raise ResolutionRequestError("operation_id is required and cannot be blank.")
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "operation_id", operation_id)
        object.__setattr__(self, "channel_type", _blank_to_none(self.channel_type))

    @property
    def cache_key_parts(self) -> tuple:
        return (self.tenant_id, self.operation_id, self.product_id, self.channel_type)


@dataclass
class MappingResolution:
    """
    Outcome of :meth:`MappingResolver.resolve`.

    Not-found is a normal value, never an exception; callers decide whether
    absence is an error.

    Attributes:
        found: ``True`` iff a mapping was selected.
        mapping: The selected mapping, ``None`` when not found.
        request: The request that was resolved.
        candidate_count: Number of candidates that survived filtering.
        tied_ids: Ids of the *other* survivors that tie with the winner on
            both specificity and priority.  Non-empty means the winner was
            chosen by id alone, which signals an administrative data issue.
    """

    found: bool
    mapping: Any
    request: ResolutionRequest
    candidate_count: int = 0
    tied_ids: list = field(default_factory=list)

    @classmethod
    def not_found(cls, request: ResolutionRequest) -> "MappingResolution":
        return cls(found=False, mapping=None, request=request)

    @property
    def has_tie(self) -> bool:
        return bool(self.tied_ids)


# ---------------------------------------------------------------------------
# Scoring and eligibility
# ---------------------------------------------------------------------------

def specificity_score(mapping: Any) -> int:
    """
    Return how narrowly *mapping* targets a request context.

    ``100`` for a tenant, ``10`` for a product and ``1`` for a non-empty
    channel, summed.  A fully scoped mapping scores 111, a vanilla one 0.
    """
    score = 0
    if mapping.tenant_id is not None:
        score += TENANT_WEIGHT
    if mapping.product_id is not None:
        score += PRODUCT_WEIGHT
    if _blank_to_none(mapping.channel_type) is not None:
        score += CHANNEL_WEIGHT
    return score


def is_currently_effective(mapping: Any, at: datetime) -> bool:
    """
    Return ``True`` iff *mapping* is active and *at* lies inside
    ``[effective_from, effective_to)``.  NULL bounds are unbounded.
    """
    if not mapping.is_active:
        return False
    if mapping.effective_from is not None and at < mapping.effective_from:
        return False
    if mapping.effective_to is not None and at >= mapping.effective_to:
        return False
    return True


def _scope_matches(mapping_value: Any, request_value: Any) -> bool:
    # NULL on the mapping is a wildcard; NULL on the request only matches NULL.
    return mapping_value is None or mapping_value == request_value


def matches_scope(mapping: Any, request: ResolutionRequest) -> bool:
    """Return ``True`` iff every scope key of *mapping* admits *request*."""
    return (
        _scope_matches(mapping.tenant_id, request.tenant_id)
        and _scope_matches(mapping.product_id, request.product_id)
        and _scope_matches(_blank_to_none(mapping.channel_type), request.channel_type)
    )


def ranking_key(mapping: Any) -> tuple:
    """Sort key: most specific first, then lowest priority, then lowest id."""
    priority = mapping.priority if mapping.priority is not None else 0
    return (-specificity_score(mapping), priority, mapping.id)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

class MappingResolver:
    """
    Selects the single best API→process mapping for a request.

    Stateless: the same candidates, request and instant always yield the same
    mapping, and the candidates are never mutated.

    Example::

        resolution = MappingResolver.resolve(
            candidates=mappings,
            request=ResolutionRequest(operation_id="pay", tenant_id=t1),
            at=timezone.now(),
        )
        if resolution.found:
            run_process(resolution.mapping.process_id)
    """

    @staticmethod
    def resolve(
        candidates: Iterable[Any],
        request: ResolutionRequest,
        *,
        at: datetime,
    ) -> MappingResolution:
        """
        Run the filter → score → order → pick algorithm.

        Args:
            candidates: Snapshot of mappings to choose from.  May contain
                mappings for other operations, inactive or expired ones;
                they are filtered out here regardless of what the storage
                query already excluded.
            request: The validated :class:`ResolutionRequest`.
            at: The instant used for the effective-window check.  Must be
                comparable with the mappings' ``effective_from`` /
                ``effective_to`` (both aware or both naive).

        Returns:
            A :class:`MappingResolution`; ``found`` is ``False`` when no
            candidate survives filtering.
        """
        survivors = [
            mapping
            for mapping in candidates
            if mapping.operation_id == request.operation_id
            and is_currently_effective(mapping, at)
            and matches_scope(mapping, request)
        ]
        if not survivors:
            return MappingResolution.not_found(request)

        survivors.sort(key=ranking_key)
        winner = survivors[0]
        winner_rank = ranking_key(winner)[:2]
        tied_ids = [
            mapping.id for mapping in survivors[1:] if ranking_key(mapping)[:2] == winner_rank
        ]

        return MappingResolution(
            found=True,
            mapping=winner,
            request=request,
            candidate_count=len(survivors),
            tied_ids=tied_ids,
        )
