"""
tests.test_mapping_service
~~~~~~~~~~~~~~~~~~~~~~~~~~
DB-backed tests for the process-mapping service layer: resolution through
the cache, invalidation after writes and optimistic locking.
"""
from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from django.contrib import admin
from django.db.models import F
from django.utils import timezone

from apps.process_mappings.models import ApiProcessMapping
from apps.process_mappings.services import mapping_service
from common.exceptions import ConflictError, NotFoundError, ValidationError


def _mapping(**overrides) -> ApiProcessMapping:
    data = {"operation_id": "pay", "process_id": "default-pay"}
    data.update(overrides)
    return mapping_service.create_mapping(data=data, acting_user="alice")


# ===========================================================================
# TestCreateUpdateDelete
# ===========================================================================

@pytest.mark.django_db
class TestCreateUpdateDelete:

    def test_create_defaults(self, tenant):
        mapping = _mapping(tenant_id=tenant.id, channel_type="", http_method="post")

        assert mapping.is_active is True
        assert mapping.priority == 0
        assert mapping.version == 1
        assert mapping.channel_type is None
        assert mapping.http_method == "POST"
        assert mapping.created_by == "alice"

    def test_create_requires_operation_and_process(self, db):
        with pytest.raises(ValidationError) as exc_info:
            mapping_service.create_mapping(data={"operation_id": " "})
        fields = {e["field"] for e in exc_info.value.errors}
        assert fields == {"operation_id", "process_id"}

    def test_create_rejects_inverted_window(self, db):
        now = timezone.now()
        with pytest.raises(ValidationError):
            _mapping(effective_from=now, effective_to=now - timedelta(hours=1))

    def test_create_for_unknown_tenant(self, db):
        with pytest.raises(NotFoundError):
            _mapping(tenant_id=uuid.uuid4())

    def test_update_bumps_version(self, db):
        mapping = _mapping()

        updated = mapping_service.update_mapping(
            mapping.id, data={"process_id": "new-pay"}, expected_version=1, acting_user="bob"
        )

        assert updated.process_id == "new-pay"
        assert updated.version == 2
        assert updated.updated_by == "bob"

    def test_update_with_stale_version_conflicts(self, db):
        mapping = _mapping()
        mapping_service.update_mapping(mapping.id, data={"priority": 5}, expected_version=1)

        with pytest.raises(ConflictError):
            mapping_service.update_mapping(mapping.id, data={"priority": 9}, expected_version=1)

        assert ApiProcessMapping.objects.get(pk=mapping.id).priority == 5

    def test_update_losing_race_conflicts(self, db, monkeypatch):
        mapping = _mapping()
        real_get = mapping_service.get_mapping

        def get_then_race(mapping_id):
            loaded = real_get(mapping_id)
            # Another writer commits after we read.
            ApiProcessMapping.objects.filter(pk=loaded.pk).update(version=F("version") + 1)
            return loaded

        monkeypatch.setattr(mapping_service, "get_mapping", get_then_race)

        with pytest.raises(ConflictError):
            mapping_service.update_mapping(mapping.id, data={"priority": 3})

    def test_delete(self, db):
        mapping = _mapping()
        mapping_service.delete_mapping(mapping.id)

        assert not ApiProcessMapping.objects.filter(pk=mapping.id).exists()
        with pytest.raises(NotFoundError):
            mapping_service.get_mapping(mapping.id)


# ===========================================================================
# TestResolveMapping
# ===========================================================================

@pytest.mark.django_db
class TestResolveMapping:

    def test_pay_refund_example(self, tenant, other_tenant):
        _mapping(process_id="default-pay", priority=100)
        _mapping(process_id="t1-pay", tenant_id=tenant.id, priority=50)

        assert mapping_service.resolve_mapping(
            operation_id="pay", tenant_id=tenant.id
        ).mapping.process_id == "t1-pay"
        assert mapping_service.resolve_mapping(
            operation_id="pay", tenant_id=other_tenant.id
        ).mapping.process_id == "default-pay"
        assert not mapping_service.resolve_mapping(operation_id="refund", tenant_id=tenant.id).found

    def test_blank_operation_id_is_validation_error(self, db):
        with pytest.raises(ValidationError):
            mapping_service.resolve_mapping(operation_id="  ")

    def test_malformed_tenant_id_is_validation_error(self, db):
        with pytest.raises(ValidationError):
            mapping_service.resolve_mapping(operation_id="pay", tenant_id="not-a-uuid")

    def test_window_respected(self, db):
        now = timezone.now()
        _mapping(process_id="expired", priority=0, effective_to=now - timedelta(minutes=1))
        _mapping(process_id="current", priority=10)

        resolution = mapping_service.resolve_mapping(operation_id="pay")
        assert resolution.mapping.process_id == "current"

    def test_point_in_time_lookup(self, db):
        now = timezone.now()
        _mapping(process_id="later", effective_from=now + timedelta(days=1))

        assert not mapping_service.resolve_mapping(operation_id="pay").found
        assert mapping_service.resolve_mapping(
            operation_id="pay", at=now + timedelta(days=2)
        ).found

    def test_result_is_cached(self, tenant, resolution_cache, django_assert_num_queries):
        _mapping(tenant_id=tenant.id)
        mapping_service.resolve_mapping(operation_id="pay", tenant_id=tenant.id, cache=resolution_cache)

        with django_assert_num_queries(0):
            resolution = mapping_service.resolve_mapping(
                operation_id="pay", tenant_id=tenant.id, cache=resolution_cache
            )
        assert resolution.found

    def test_cached_mapping_dropped_once_its_window_closes(self, db, resolution_cache, monkeypatch):
        now = timezone.now()
        _mapping(process_id="short-lived", effective_to=now + timedelta(minutes=5))
        assert mapping_service.resolve_mapping(operation_id="pay", cache=resolution_cache).found

        monkeypatch.setattr(timezone, "now", lambda: now + timedelta(minutes=6))

        assert not mapping_service.resolve_mapping(operation_id="pay", cache=resolution_cache).found

    def test_cached_miss_dropped_once_a_window_opens(self, db, resolution_cache, monkeypatch):
        now = timezone.now()
        _mapping(process_id="scheduled", effective_from=now + timedelta(minutes=5))
        assert not mapping_service.resolve_mapping(operation_id="pay", cache=resolution_cache).found

        monkeypatch.setattr(timezone, "now", lambda: now + timedelta(minutes=6))

        resolution = mapping_service.resolve_mapping(operation_id="pay", cache=resolution_cache)
        assert resolution.mapping.process_id == "scheduled"

    def test_next_window_boundary(self, db):
        now = timezone.now()
        closing = _mapping(process_id="closing", effective_to=now + timedelta(hours=2))
        _mapping(process_id="opening", effective_from=now + timedelta(hours=1))
        _mapping(process_id="inactive", effective_from=now + timedelta(minutes=1), is_active=False)

        assert mapping_service.next_window_boundary(
            operation_id="pay", at=now, candidates=[closing]
        ) == now + timedelta(hours=1)
        assert mapping_service.next_window_boundary(
            operation_id="refund", at=now, candidates=[]
        ) is None

    def test_not_found_is_cached_until_a_write(self, tenant, resolution_cache):
        assert not mapping_service.resolve_mapping(
            operation_id="pay", tenant_id=tenant.id, cache=resolution_cache
        ).found

        # A write that bypasses the service leaves the cached miss in place.
        ApiProcessMapping.objects.create(operation_id="pay", process_id="sneaky")
        assert not mapping_service.resolve_mapping(
            operation_id="pay", tenant_id=tenant.id, cache=resolution_cache
        ).found

        mapping_service.invalidate_cache(None, cache=resolution_cache)
        assert mapping_service.resolve_mapping(
            operation_id="pay", tenant_id=tenant.id, cache=resolution_cache
        ).found

    def test_vanilla_write_invalidates_every_tenant(self, tenant, other_tenant, resolution_cache):
        for t in (tenant, other_tenant):
            mapping_service.resolve_mapping(operation_id="pay", tenant_id=t.id, cache=resolution_cache)

        mapping_service.create_mapping(
            data={"operation_id": "pay", "process_id": "default-pay"}, cache=resolution_cache
        )

        for t in (tenant, other_tenant):
            resolution = mapping_service.resolve_mapping(
                operation_id="pay", tenant_id=t.id, cache=resolution_cache
            )
            assert resolution.mapping.process_id == "default-pay"

    def test_tenant_write_invalidates_that_tenant(self, tenant, resolution_cache):
        mapping_service.create_mapping(
            data={"operation_id": "pay", "process_id": "default-pay"}, cache=resolution_cache
        )
        assert mapping_service.resolve_mapping(
            operation_id="pay", tenant_id=tenant.id, cache=resolution_cache
        ).mapping.process_id == "default-pay"

        mapping_service.create_mapping(
            data={"operation_id": "pay", "process_id": "t1-pay", "tenant_id": tenant.id},
            cache=resolution_cache,
        )

        assert mapping_service.resolve_mapping(
            operation_id="pay", tenant_id=tenant.id, cache=resolution_cache
        ).mapping.process_id == "t1-pay"

    def test_update_and_delete_invalidate(self, tenant, resolution_cache):
        mapping = mapping_service.create_mapping(
            data={"operation_id": "pay", "process_id": "t1-pay", "tenant_id": tenant.id},
            cache=resolution_cache,
        )
        mapping_service.resolve_mapping(operation_id="pay", tenant_id=tenant.id, cache=resolution_cache)

        mapping_service.update_mapping(
            mapping.id, data={"process_id": "t1-pay-v2"}, cache=resolution_cache
        )
        assert mapping_service.resolve_mapping(
            operation_id="pay", tenant_id=tenant.id, cache=resolution_cache
        ).mapping.process_id == "t1-pay-v2"

        mapping_service.delete_mapping(mapping.id, cache=resolution_cache)
        assert not mapping_service.resolve_mapping(
            operation_id="pay", tenant_id=tenant.id, cache=resolution_cache
        ).found


# ===========================================================================
# TestDeletesOutsideTheService
# ===========================================================================

@pytest.mark.django_db
class TestDeletesOutsideTheService:

    def test_admin_bulk_delete_invalidates(self, db, resolution_cache):
        _mapping(process_id="p1")
        assert mapping_service.resolve_mapping(operation_id="pay", cache=resolution_cache).found

        model_admin = admin.site._registry[ApiProcessMapping]
        model_admin.delete_queryset(None, ApiProcessMapping.objects.filter(operation_id="pay"))

        assert not mapping_service.resolve_mapping(operation_id="pay", cache=resolution_cache).found

    def test_tenant_delete_cascade_invalidates(self, tenant, resolution_cache):
        _mapping(process_id="t1-pay", tenant_id=tenant.id)
        tenant_id = tenant.id
        assert mapping_service.resolve_mapping(
            operation_id="pay", tenant_id=tenant_id, cache=resolution_cache
        ).found

        tenant.delete()

        assert not ApiProcessMapping.objects.filter(tenant_id=tenant_id).exists()
        assert not mapping_service.resolve_mapping(
            operation_id="pay", tenant_id=tenant_id, cache=resolution_cache
        ).found


# ===========================================================================
# TestListings
# ===========================================================================

@pytest.mark.django_db
class TestListings:

    def test_listings(self, tenant):
        vanilla = _mapping(process_id="proc-a", api_path="/payments", http_method="POST")
        scoped = _mapping(process_id="proc-a", tenant_id=tenant.id, channel_type="WEB")
        _mapping(process_id="proc-b", is_active=False)

        assert mapping_service.list_vanilla_mappings() == [vanilla]
        assert mapping_service.list_by_tenant(tenant.id) == [scoped]
        assert len(mapping_service.list_by_process("proc-a")) == 2
        assert mapping_service.count_active_by_process("proc-b") == 0
        assert mapping_service.list_by_route(api_path="/payments", http_method="post") == [vanilla]

    def test_exists_for_context_has_no_wildcards(self, tenant):
        _mapping(tenant_id=tenant.id, channel_type="WEB")

        assert mapping_service.exists_for_context(
            tenant_id=tenant.id, operation_id="pay", channel_type="WEB"
        )
        assert not mapping_service.exists_for_context(tenant_id=tenant.id, operation_id="pay")
        assert not mapping_service.exists_for_context(
            tenant_id=None, operation_id="pay", channel_type="WEB"
        )

    def test_filter_paginates(self, tenant):
        for i in range(5):
            _mapping(operation_id=f"op-{i}", tenant_id=tenant.id)
        _mapping(operation_id="op-vanilla")

        page = mapping_service.filter_mappings(filters={"vanilla": False}, page=2, page_size=2)

        assert page["total_count"] == 5
        assert page["page"] == 2
        assert page["page_size"] == 2
        assert [m.operation_id for m in page["items"]] == ["op-2", "op-3"]

    def test_filter_past_last_page_is_empty(self, db):
        _mapping()
        page = mapping_service.filter_mappings(page=10, page_size=5)
        assert page["items"] == []
        assert page["total_count"] == 1
