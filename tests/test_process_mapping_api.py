"""
tests.test_process_mapping_api
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Integration tests for the API→process mapping endpoints through DRF's
APIClient.
"""
from __future__ import annotations

import uuid

import pytest
from rest_framework import status

from apps.process_mappings.models import ApiProcessMapping

BASE = "/api/v1/api-process-mappings/"


def detail_url(mapping_id) -> str:
    return f"{BASE}{mapping_id}/"


def _create(api_client, **payload):
    body = {"operation_id": "pay", "process_id": "default-pay"}
    body.update(payload)
    return api_client.post(BASE, body, format="json")


@pytest.mark.django_db
class TestMappingCrudAPI:

    def test_create_201(self, api_client, tenant):
        response = _create(
            api_client,
            tenant_id=str(tenant.id),
            channel_type="MOBILE",
            http_method="post",
            api_path="/payments",
            parameters={"timeout_ms": 1500},
            acting_user="alice",
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["tenant_id"] == str(tenant.id)
        assert data["http_method"] == "POST"
        assert data["is_vanilla"] is False
        assert data["specificity_score"] == 101
        assert data["version"] == 1
        assert data["created_by"] == "alice"
        assert data["parameters"] == {"timeout_ms": 1500}

    def test_create_missing_operation_id_400(self, api_client, db):
        response = api_client.post(BASE, {"process_id": "p"}, format="json")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_create_inverted_window_422(self, api_client, db):
        response = _create(
            api_client,
            effective_from="2026-02-01T00:00:00Z",
            effective_to="2026-01-01T00:00:00Z",
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        body = response.json()
        assert body["code"] == "validation_error"
        assert body["errors"][0]["code"] == "invalid_window"

    def test_create_unknown_tenant_404(self, api_client, db):
        response = _create(api_client, tenant_id=str(uuid.uuid4()))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_get_put_delete(self, api_client, db):
        mapping_id = _create(api_client).json()["id"]

        assert api_client.get(detail_url(mapping_id)).json()["process_id"] == "default-pay"

        response = api_client.put(
            detail_url(mapping_id), {"process_id": "pay-v2", "version": 1}, format="json"
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["process_id"] == "pay-v2"
        assert response.json()["version"] == 2
        assert response.json()["operation_id"] == "pay"

        assert api_client.delete(detail_url(mapping_id)).status_code == status.HTTP_204_NO_CONTENT
        assert api_client.get(detail_url(mapping_id)).status_code == status.HTTP_404_NOT_FOUND

    def test_put_stale_version_409(self, api_client, db):
        mapping_id = _create(api_client).json()["id"]
        api_client.put(detail_url(mapping_id), {"priority": 3, "version": 1}, format="json")

        response = api_client.put(detail_url(mapping_id), {"priority": 4, "version": 1}, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "conflict"

    def test_get_unknown_404(self, api_client, db):
        assert api_client.get(detail_url(uuid.uuid4())).status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestMappingResolveAPI:

    def test_resolve_prefers_tenant_mapping(self, api_client, tenant, other_tenant):
        _create(api_client, process_id="default-pay", priority=100)
        _create(api_client, process_id="t1-pay", priority=50, tenant_id=str(tenant.id))

        t1 = api_client.get(f"{BASE}resolve/", {"operation_id": "pay", "tenant_id": str(tenant.id)})
        t2 = api_client.get(
            f"{BASE}resolve/", {"operation_id": "pay", "tenant_id": str(other_tenant.id)}
        )

        assert t1.json()["process_id"] == "t1-pay"
        assert t2.json()["process_id"] == "default-pay"

    def test_resolve_not_found_404(self, api_client, tenant):
        response = api_client.get(
            f"{BASE}resolve/", {"operation_id": "refund", "tenant_id": str(tenant.id)}
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == "mapping_not_found"

    def test_resolve_requires_operation_id(self, api_client, db):
        response = api_client.get(f"{BASE}resolve/")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_resolve_sees_update_immediately(self, api_client, tenant):
        mapping_id = _create(api_client, tenant_id=str(tenant.id), process_id="v1").json()["id"]
        params = {"operation_id": "pay", "tenant_id": str(tenant.id)}
        assert api_client.get(f"{BASE}resolve/", params).json()["process_id"] == "v1"

        api_client.put(detail_url(mapping_id), {"process_id": "v2"}, format="json")

        assert api_client.get(f"{BASE}resolve/", params).json()["process_id"] == "v2"

    def test_cache_invalidate_endpoint(self, api_client, db):
        params = {"operation_id": "pay"}
        assert api_client.get(f"{BASE}resolve/", params).status_code == status.HTTP_404_NOT_FOUND

        # Written behind the service's back; only an explicit flush reveals it.
        ApiProcessMapping.objects.create(operation_id="pay", process_id="manual")
        assert api_client.get(f"{BASE}resolve/", params).status_code == status.HTTP_404_NOT_FOUND

        response = api_client.post(f"{BASE}cache/invalidate/", {}, format="json")
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert api_client.get(f"{BASE}resolve/", params).json()["process_id"] == "manual"


@pytest.mark.django_db
class TestMappingListingAPI:

    def test_vanilla_tenant_and_process_listings(self, api_client, tenant):
        _create(api_client, process_id="proc-a")
        _create(api_client, process_id="proc-a", tenant_id=str(tenant.id))

        vanilla = api_client.get(f"{BASE}vanilla/").json()
        by_tenant = api_client.get(f"{BASE}tenants/{tenant.id}/mappings/").json()
        by_process = api_client.get(f"{BASE}processes/proc-a/").json()

        assert [m["is_vanilla"] for m in vanilla] == [True]
        assert [m["tenant_id"] for m in by_tenant] == [str(tenant.id)]
        assert len(by_process) == 2

    def test_filter_pagination_contract(self, api_client, tenant):
        for i in range(3):
            _create(api_client, operation_id=f"op-{i}", tenant_id=str(tenant.id))

        response = api_client.post(
            f"{BASE}filter/",
            {"tenant_id": str(tenant.id), "page": 1, "page_size": 2},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert set(body) == {"items", "total_count", "page", "page_size"}
        assert body["total_count"] == 3
        assert [m["operation_id"] for m in body["items"]] == ["op-0", "op-1"]

    def test_request_id_header_echoed(self, api_client, db):
        response = api_client.get(f"{BASE}vanilla/", HTTP_X_REQUEST_ID="req-123")
        assert response["X-Request-ID"] == "req-123"
