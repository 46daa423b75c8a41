"""
tests.test_common
~~~~~~~~~~~~~~~~~
Cross-cutting pieces: pagination, the exception handler, the health probe and
the resolution cache settings.
"""
from __future__ import annotations

import pytest
from django.core.exceptions import ImproperlyConfigured
from django.test import override_settings
from rest_framework import status

from apps.process_mappings.services.mapping_cache import get_resolution_cache
from apps.tenants.models import Tenant
from common.exceptions import ConflictError, ValidationError, custom_exception_handler
from common.pagination import clamp_page_size, paginate
from config.settings.base import LOCMEM_CACHE_BACKEND, process_mapping_cache

REDIS_BACKEND = "django.core.cache.backends.redis.RedisCache"


class TestPagination:

    @override_settings(DEFAULT_PAGE_SIZE=20, MAX_PAGE_SIZE=200)
    def test_clamp(self):
        assert clamp_page_size(None) == 20
        assert clamp_page_size(0) == 20
        assert clamp_page_size(50) == 50
        assert clamp_page_size(10_000) == 200

    @pytest.mark.django_db
    def test_paginate_contract(self):
        for i in range(3):
            Tenant.objects.create(name=f"Bank {i}", code=f"bank-{i}")

        page = paginate(Tenant.objects.order_by("code"), page=0, page_size=2)

        assert page["page"] == 1
        assert page["page_size"] == 2
        assert page["total_count"] == 3
        assert [t.code for t in page["items"]] == ["bank-0", "bank-1"]


class TestExceptionHandler:

    def test_app_error_payload(self):
        exc = ValidationError(
            "Bad input.", errors=[{"field": "x", "code": "required", "message": "x is required."}]
        )

        response = custom_exception_handler(exc, {})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.data == {
            "code": "validation_error",
            "detail": "Bad input.",
            "errors": [{"field": "x", "code": "required", "message": "x is required."}],
        }

    def test_errors_omitted_when_empty(self):
        response = custom_exception_handler(ConflictError(), {})
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data == {"code": "conflict", "detail": "A resource conflict occurred."}


@pytest.mark.django_db
class TestHealth:

    def test_healthy(self, api_client):
        response = api_client.get("/health/")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "ok", "db": "ok", "cache": "ok"}


class TestResolutionCacheSettings:

    def test_locmem_entry_carries_max_entries(self):
        entry = process_mapping_cache(
            LOCMEM_CACHE_BACKEND, "apm", timeout=30, max_entries=500
        )
        assert entry == {
            "BACKEND": LOCMEM_CACHE_BACKEND,
            "LOCATION": "apm",
            "TIMEOUT": 30,
            "OPTIONS": {"MAX_ENTRIES": 500},
        }

    def test_shared_backend_gets_no_locmem_options(self):
        entry = process_mapping_cache(
            REDIS_BACKEND, "redis://cache:6379/1", timeout=300, max_entries=500, require_shared=True
        )
        assert entry == {"BACKEND": REDIS_BACKEND, "LOCATION": "redis://cache:6379/1", "TIMEOUT": 300}

    @pytest.mark.parametrize(
        "backend", [LOCMEM_CACHE_BACKEND, "django.core.cache.backends.dummy.DummyCache"]
    )
    def test_shared_requirement_rejects_process_local_backends(self, backend):
        with pytest.raises(ImproperlyConfigured):
            process_mapping_cache(backend, "x", timeout=300, max_entries=1, require_shared=True)

    @override_settings(PROCESS_MAPPING_CACHE_TTL=30)
    def test_default_collaborator_uses_configured_ttl(self):
        assert get_resolution_cache().timeout == 30
