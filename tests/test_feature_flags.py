"""
tests.test_feature_flags
~~~~~~~~~~~~~~~~~~~~~~~~
Rollout bucketing (unit), flag evaluation (DB) and the flag API.
"""
from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework import status

from apps.feature_flags.services import flag_service
from common.exceptions import ConflictError, NotFoundError, ValidationError


class TestRollout:

    def test_bucket_is_stable_and_bounded(self):
        buckets = {flag_service.rollout_bucket("new-ui", f"user-{i}") for i in range(200)}
        assert all(0 <= b < 100 for b in buckets)
        assert flag_service.rollout_bucket("new-ui", "user-1") == flag_service.rollout_bucket(
            "new-ui", "user-1"
        )

    def test_extremes_ignore_subject(self):
        assert flag_service.in_rollout("k", 100, None) is True
        assert flag_service.in_rollout("k", 0, "someone") is False

    def test_partial_rollout_needs_subject(self):
        assert flag_service.in_rollout("k", 50, None) is False

    def test_partial_rollout_matches_bucket(self):
        bucket = flag_service.rollout_bucket("k", "subject")
        assert flag_service.in_rollout("k", bucket + 1, "subject") is True
        assert flag_service.in_rollout("k", bucket, "subject") is False

    def test_roughly_half_in_fifty_percent(self):
        hits = sum(flag_service.in_rollout("k", 50, f"s{i}") for i in range(1000))
        assert 400 < hits < 600


@pytest.mark.django_db
class TestEvaluateFlag:

    def test_missing(self):
        evaluation = flag_service.evaluate_flag(feature_key="ghost")
        assert evaluation.enabled is False
        assert evaluation.source == "missing"
        assert evaluation.flag is None

    def test_precedence(self, tenant):
        flag_service.create_flag(feature_key="instant-pay", enabled=False)
        flag_service.create_flag(feature_key="instant-pay", environment="prod", enabled=True)
        flag_service.create_flag(feature_key="instant-pay", tenant_id=tenant.id, enabled=True)
        flag_service.create_flag(
            feature_key="instant-pay", tenant_id=tenant.id, environment="prod", enabled=False
        )

        def source(**kwargs):
            return flag_service.evaluate_flag(feature_key="instant-pay", **kwargs).source

        assert source() == "default"
        assert source(environment="prod") == "default_env"
        assert source(tenant_id=tenant.id) == "tenant"
        assert source(tenant_id=tenant.id, environment="prod") == "tenant_env"
        assert flag_service.evaluate_flag(
            feature_key="instant-pay", tenant_id=tenant.id, environment="prod"
        ).enabled is False

    def test_other_tenant_sees_default(self, tenant, other_tenant):
        flag_service.create_flag(feature_key="k", enabled=False)
        flag_service.create_flag(feature_key="k", tenant_id=tenant.id, enabled=True)

        evaluation = flag_service.evaluate_flag(feature_key="k", tenant_id=other_tenant.id)
        assert evaluation.source == "default"
        assert evaluation.enabled is False

    def test_inactive_and_out_of_window_skipped(self, tenant):
        now = timezone.now()
        flag_service.create_flag(feature_key="k", enabled=True)
        flag_service.create_flag(feature_key="k", tenant_id=tenant.id, enabled=False, is_active=False)

        assert flag_service.evaluate_flag(feature_key="k", tenant_id=tenant.id).source == "default"

        flag_service.create_flag(
            feature_key="w", enabled=True, start_at=now + timedelta(hours=1)
        )
        assert flag_service.evaluate_flag(feature_key="w").source == "missing"
        assert flag_service.evaluate_flag(feature_key="w", at=now + timedelta(hours=2)).enabled

    def test_rollout_defaults_to_tenant_subject(self, tenant):
        flag_service.create_flag(feature_key="k", enabled=True, rollout_percentage=50)

        expected = flag_service.in_rollout("k", 50, str(tenant.id))
        assert flag_service.evaluate_flag(feature_key="k", tenant_id=tenant.id).enabled is expected
        # No tenant and no subject: a partial rollout stays off.
        assert flag_service.evaluate_flag(feature_key="k").enabled is False

    def test_duplicate_scope_conflicts(self):
        flag_service.create_flag(feature_key="k")
        with pytest.raises(ConflictError):
            flag_service.create_flag(feature_key="k")

    def test_unknown_tenant(self):
        with pytest.raises(NotFoundError):
            flag_service.create_flag(feature_key="k", tenant_id=uuid.uuid4())

    def test_inverted_window(self):
        now = timezone.now()
        with pytest.raises(ValidationError):
            flag_service.create_flag(feature_key="k", start_at=now, end_at=now)


@pytest.mark.django_db
class TestFeatureFlagAPI:

    def test_create_and_evaluate(self, api_client, tenant):
        response = api_client.post(
            "/api/v1/feature-flags/",
            {"feature_key": "card-freeze", "tenant_id": str(tenant.id), "enabled": True},
            format="json",
        )
        assert response.status_code == status.HTTP_201_CREATED
        flag_id = response.json()["id"]

        evaluation = api_client.get(
            "/api/v1/feature-flags/evaluate/",
            {"feature_key": "card-freeze", "tenant_id": str(tenant.id)},
        ).json()

        assert evaluation == {
            "feature_key": "card-freeze",
            "enabled": True,
            "source": "tenant",
            "flag_id": flag_id,
        }

    def test_evaluate_missing(self, api_client, db):
        evaluation = api_client.get(
            "/api/v1/feature-flags/evaluate/", {"feature_key": "nothing"}
        ).json()
        assert evaluation["enabled"] is False
        assert evaluation["source"] == "missing"
        assert evaluation["flag_id"] is None
