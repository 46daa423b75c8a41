"""
tests.test_mapping_resolver
~~~~~~~~~~~~~~~~~~~~~~~~~~~
Unit tests for the pure mapping resolver.  No database access required.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import pytest

from apps.process_mappings.services.mapping_resolver import (
    MappingResolver,
    ResolutionRequest,
    ResolutionRequestError,
    specificity_score,
)

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)

T1 = uuid.UUID("11111111-1111-1111-1111-111111111111")
T2 = uuid.UUID("22222222-2222-2222-2222-222222222222")
PRODUCT = uuid.UUID("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa")


@dataclass
class Mapping:
    id: int
    operation_id: str
    process_id: str
    tenant_id: uuid.UUID | None = None
    product_id: uuid.UUID | None = None
    channel_type: str | None = None
    priority: int = 0
    is_active: bool = True
    effective_from: datetime | None = None
    effective_to: datetime | None = None
    parameters: dict = field(default_factory=dict)


def resolve(mappings, **request):
    return MappingResolver.resolve(mappings, ResolutionRequest(**request), at=NOW)


# ===========================================================================
# TestResolutionRequest
# ===========================================================================

class TestResolutionRequest:

    @pytest.mark.parametrize("operation_id", ["", "   ", None])
    def test_blank_operation_id_rejected(self, operation_id):
        with pytest.raises(ResolutionRequestError):
            ResolutionRequest(operation_id=operation_id)

    def test_operation_id_is_stripped(self):
        assert ResolutionRequest(operation_id="  pay ").operation_id == "pay"

    def test_blank_channel_means_no_channel(self):
        assert ResolutionRequest(operation_id="pay", channel_type="  ").channel_type is None


# ===========================================================================
# TestSpecificity
# ===========================================================================

class TestSpecificity:

    def test_scores(self):
        assert specificity_score(Mapping(1, "x", "p")) == 0
        assert specificity_score(Mapping(1, "x", "p", channel_type="WEB")) == 1
        assert specificity_score(Mapping(1, "x", "p", product_id=PRODUCT)) == 10
        assert specificity_score(Mapping(1, "x", "p", tenant_id=T1)) == 100
        assert (
            specificity_score(Mapping(1, "x", "p", tenant_id=T1, product_id=PRODUCT, channel_type="WEB"))
            == 111
        )

    def test_empty_channel_does_not_count(self):
        assert specificity_score(Mapping(1, "x", "p", channel_type="")) == 0


# ===========================================================================
# TestMappingResolver
# ===========================================================================

class TestMappingResolver:

    def test_fully_scoped_mapping_beats_vanilla(self):
        vanilla = Mapping(1, "X", "vanilla")
        scoped = Mapping(2, "X", "scoped", tenant_id=T1, product_id=PRODUCT, channel_type="MOBILE")

        result = resolve(
            [vanilla, scoped],
            operation_id="X",
            tenant_id=T1,
            product_id=PRODUCT,
            channel_type="MOBILE",
        )

        assert result.found
        assert result.mapping is scoped

    def test_vanilla_fallback_for_any_tenant(self):
        vanilla = Mapping(1, "X", "vanilla")
        assert resolve([vanilla], operation_id="X", tenant_id=T1).mapping is vanilla

    def test_specificity_beats_priority(self):
        vanilla = Mapping(1, "X", "vanilla", priority=0)
        tenant = Mapping(2, "X", "tenant", tenant_id=T1, priority=999)
        assert resolve([vanilla, tenant], operation_id="X", tenant_id=T1).mapping is tenant

    def test_lower_priority_wins_at_equal_specificity(self):
        low = Mapping(1, "X", "low", tenant_id=T1, priority=10)
        high = Mapping(2, "X", "high", tenant_id=T1, priority=5)
        assert resolve([low, high], operation_id="X", tenant_id=T1).mapping is high

    def test_tenant_mapping_never_matches_tenantless_request(self):
        tenant = Mapping(1, "X", "tenant", tenant_id=T1)
        vanilla = Mapping(2, "X", "vanilla")

        assert resolve([tenant, vanilla], operation_id="X").mapping is vanilla
        assert not resolve([tenant], operation_id="X").found

    def test_other_tenants_mapping_not_visible(self):
        assert not resolve([Mapping(1, "X", "t1", tenant_id=T1)], operation_id="X", tenant_id=T2).found

    def test_scoped_product_requires_matching_request_product(self):
        scoped = Mapping(1, "X", "product", product_id=PRODUCT)
        assert not resolve([scoped], operation_id="X").found
        assert resolve([scoped], operation_id="X", product_id=PRODUCT).found

    def test_expired_mapping_never_returned(self):
        expired = Mapping(
            1, "X", "expired", tenant_id=T1, effective_to=NOW - timedelta(days=1)
        )
        vanilla = Mapping(2, "X", "vanilla")

        assert resolve([expired, vanilla], operation_id="X", tenant_id=T1).mapping is vanilla

    def test_effective_to_is_exclusive(self):
        ends_now = Mapping(1, "X", "ends-now", effective_to=NOW)
        assert not resolve([ends_now], operation_id="X").found

    def test_not_yet_effective_mapping_skipped(self):
        future = Mapping(1, "X", "future", effective_from=NOW + timedelta(seconds=1))
        starts_now = Mapping(2, "X", "now", effective_from=NOW)

        assert resolve([future], operation_id="X").found is False
        assert resolve([future, starts_now], operation_id="X").mapping is starts_now

    def test_inactive_mapping_never_returned(self):
        inactive = Mapping(1, "X", "inactive", tenant_id=T1, is_active=False)
        assert not resolve([inactive], operation_id="X", tenant_id=T1).found

    def test_no_mappings_is_not_found_not_an_error(self):
        result = resolve([], operation_id="X", tenant_id=T1)
        assert result.found is False
        assert result.mapping is None

    def test_other_operations_filtered_out(self):
        assert not resolve([Mapping(1, "Y", "y")], operation_id="X").found

    def test_tie_break_is_lowest_id_regardless_of_order(self):
        a = Mapping(7, "X", "seven", tenant_id=T1, priority=1)
        b = Mapping(3, "X", "three", tenant_id=T1, priority=1)

        for _ in range(5):
            assert resolve([a, b], operation_id="X", tenant_id=T1).mapping is b
            assert resolve([b, a], operation_id="X", tenant_id=T1).mapping is b

    def test_tie_is_reported(self):
        a = Mapping(1, "X", "a", priority=1)
        b = Mapping(2, "X", "b", priority=1)
        c = Mapping(3, "X", "c", priority=2)

        result = resolve([c, b, a], operation_id="X")

        assert result.has_tie
        assert result.tied_ids == [2]
        assert result.candidate_count == 3

    def test_deterministic_and_non_mutating(self):
        mappings = [
            Mapping(3, "X", "c", channel_type="WEB"),
            Mapping(1, "X", "a"),
            Mapping(2, "X", "b", product_id=PRODUCT),
        ]
        snapshot = list(mappings)

        results = {
            resolve(mappings, operation_id="X", product_id=PRODUCT, channel_type="WEB").mapping.id
            for _ in range(10)
        }

        assert results == {2}
        assert mappings == snapshot

    def test_pay_refund_example(self):
        mappings = [
            Mapping(1, "pay", "default-pay", priority=100),
            Mapping(2, "pay", "t1-pay", tenant_id=T1, priority=50),
        ]

        assert resolve(mappings, operation_id="pay", tenant_id=T1).mapping.process_id == "t1-pay"
        assert resolve(mappings, operation_id="pay", tenant_id=T2).mapping.process_id == "default-pay"
        assert resolve(mappings, operation_id="refund", tenant_id=T1).found is False
