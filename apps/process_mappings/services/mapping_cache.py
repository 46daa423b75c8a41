"""
apps.process_mappings.services.mapping_cache
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Cache collaborator for mapping resolutions.

Entries are keyed by ``(tenant_id, operation_id, product_id, channel_type)``
and stored in an injected Django cache backend with a fixed TTL.  Both found
and not-found resolutions are cached.

Invalidation is scope-token based: every key embeds the current **global**
token and the current token of its **tenant** (vanilla requests use their own
``-`` tenant slot).  Rotating a token makes every key built with the old one
unreachable, which is how ``invalidate(tenant_id)`` drops exactly the entries
of one tenant and ``invalidate(None)`` drops everything, on any backend and
without scanning keys.  Orphaned entries age out through the TTL.

Tokens are random rather than counters: if the backend evicts a token, the
next reader mints a fresh one and simply misses, instead of resurrecting
entries stored under a reused value.

Each entry also carries a ``valid_until`` instant, the next moment at which
some mapping for the operation enters or leaves its effective window.  A hit
read at or after that instant is reported as a miss, and the backend timeout
is shortened so the entry does not outlive it.
"""
from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog
from django.conf import settings
from django.core.cache import caches
from django.utils import timezone

from .mapping_resolver import MappingResolution, ResolutionRequest

logger = structlog.get_logger(__name__)

_VANILLA_SLOT = "-"


@dataclass(frozen=True)
class CacheLookup:
    """
    Result of :meth:`MappingResolutionCache.lookup`.

    ``key`` is the key to :meth:`~MappingResolutionCache.store` a freshly
    computed resolution under.  It embeds the tokens seen at lookup time, so
    a resolution computed while an invalidation runs lands under a dead key.
    """

    key: str
    hit: bool
    resolution: MappingResolution | None = None


class MappingResolutionCache:
    """
    Tenant-scoped, TTL-bounded cache of :class:`MappingResolution` values.

    Args:
        backend: A Django cache backend, e.g. ``caches["process_mappings"]``.
        timeout: TTL in seconds for resolution entries.  ``None`` uses the
            backend's configured default.
        key_prefix: Namespace for every key written by this instance.
    """

    def __init__(self, backend: Any, *, timeout: int | None = None, key_prefix: str = "apm") -> None:
        self._backend = backend
        self._timeout = timeout
        self._prefix = key_prefix

    @property
    def timeout(self) -> int | None:
        return self._timeout

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def _token_key(self, slot: str) -> str:
        return f"{self._prefix}:token:{slot}"

    def _token(self, slot: str) -> str:
        key = self._token_key(slot)
        token = self._backend.get(key)
        if token is None:
            # add() keeps the first writer's token if two readers race.
            fresh = uuid.uuid4().hex
            self._backend.add(key, fresh, timeout=None)
            # A backend that drops the write (DummyCache, eviction) yields a
            # key nobody else shares, which only ever misses.
            token = self._backend.get(key) or fresh
        return token

    def _rotate(self, slot: str) -> None:
        self._backend.set(self._token_key(slot), uuid.uuid4().hex, timeout=None)

    @staticmethod
    def _tenant_slot(tenant_id: Any) -> str:
        return _VANILLA_SLOT if tenant_id is None else f"t{tenant_id}"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_key(self, request: ResolutionRequest) -> str:
        tenant_id, operation_id, product_id, channel_type = request.cache_key_parts
        slot = self._tenant_slot(tenant_id)
        return ":".join(
            [
                self._prefix,
                "resolve",
                self._token("global"),
                self._token(slot),
                slot,
                operation_id,
                "-" if product_id is None else str(product_id),
                channel_type or "-",
            ]
        )

    def lookup(self, request: ResolutionRequest, *, now: datetime | None = None) -> CacheLookup:
        key = self.build_key(request)
        entry = self._backend.get(key)
        if entry is None:
            return CacheLookup(key=key, hit=False)

        resolution, valid_until = entry
        if valid_until is not None and (now or timezone.now()) >= valid_until:
            logger.debug("mapping_cache_entry_outdated", key=key, valid_until=valid_until.isoformat())
            return CacheLookup(key=key, hit=False)
        return CacheLookup(key=key, hit=True, resolution=resolution)

    def store(
        self,
        key: str,
        resolution: MappingResolution,
        *,
        valid_until: datetime | None = None,
        now: datetime | None = None,
    ) -> None:
        """
        Cache *resolution* under *key*.

        Args:
            valid_until: First instant at which the resolution may change on
                its own because a mapping's effective window opens or
                closes.  ``None`` means no such boundary is pending.
            now: Reference time for turning *valid_until* into a timeout.
        """
        timeout = self._timeout
        if valid_until is not None:
            remaining = (valid_until - (now or timezone.now())).total_seconds()
            if remaining <= 0:
                return
            ceiling = self._timeout if self._timeout is not None else self._backend.default_timeout
            remaining = max(1, math.ceil(remaining))
            timeout = remaining if ceiling is None else min(ceiling, remaining)

        entry = (resolution, valid_until)
        if timeout is None:
            self._backend.set(key, entry)
        else:
            self._backend.set(key, entry, timeout=timeout)

    def invalidate(self, tenant_id: Any = None) -> None:
        """
        Drop cached resolutions.

        Args:
            tenant_id: Drop every entry whose key tenant equals this value.
                ``None`` drops the entire cache, which is what writes to
                vanilla mappings and bulk changes need since vanilla rules
                reach every tenant.
        """
        if tenant_id is None:
            self._rotate("global")
            logger.info("mapping_cache_invalidated", scope="global")
        else:
            self._rotate(self._tenant_slot(tenant_id))
            logger.info("mapping_cache_invalidated", scope="tenant", tenant_id=str(tenant_id))


def get_resolution_cache() -> MappingResolutionCache:
    """Build the default cache collaborator from ``settings``."""
    return MappingResolutionCache(
        caches[settings.PROCESS_MAPPING_CACHE_ALIAS],
        timeout=settings.PROCESS_MAPPING_CACHE_TTL,
    )
