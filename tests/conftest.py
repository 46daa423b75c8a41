"""
Shared fixtures for the test suite.
"""
from __future__ import annotations

import pytest
from django.conf import settings
from django.core.cache import caches
from rest_framework.test import APIClient

from apps.process_mappings.services.mapping_cache import MappingResolutionCache
from apps.tenants.models import Tenant


@pytest.fixture(autouse=True)
def _clear_caches():
    """LocMem caches outlive a test; start every test from an empty one."""
    for alias in settings.CACHES:
        caches[alias].clear()
    yield


@pytest.fixture
def api_client() -> APIClient:
    """Return an unauthenticated DRF APIClient."""
    return APIClient()


@pytest.fixture
def tenant(db) -> Tenant:
    return Tenant.objects.create(name="First National", code="first-national")


@pytest.fixture
def other_tenant(db) -> Tenant:
    return Tenant.objects.create(name="Second Savings", code="second-savings")


@pytest.fixture
def resolution_cache() -> MappingResolutionCache:
    """The cache collaborator backed by the test LocMem alias."""
    return MappingResolutionCache(caches[settings.PROCESS_MAPPING_CACHE_ALIAS], timeout=300)
