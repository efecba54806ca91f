"""SuggestionService / DeduplicationGate 단위 테스트

테스트 케이스:
- submit: pending 삽입, priority 계산, type별 만료 시각
- 같은 원인 키 pending 제안이 있으면 버림 (종료된 제안은 재생성 허용)
- 테넌트/원인 키가 다르면 별도 제안
- 필수값/라우팅 검증 실패
- 게이트 통과 후 경합 시에도 pending 1건 유지
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from nexus_ops.core.errors import ValidationError
from nexus_ops.repositories import collections

TENANT_A = "tenant-a"
TENANT_B = "tenant-b"
NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def pending_docs(store) -> list[dict]:
    return [d for d in store.data[collections.SUGGESTIONS].values() if d["status"] == "pending"]


class TestSubmit:
    """후보 제출"""

    @pytest.mark.asyncio
    async def test_creates_pending_suggestion(self, suggestion_service, candidates):
        suggestion = await suggestion_service.submit(candidates.work_order(), now=NOW)

        assert suggestion is not None
        assert suggestion.id
        assert suggestion.status == "pending"
        assert suggestion.tenant_id == TENANT_A
        assert suggestion.root_cause_key == "work_order_need:WIDGET-1:order-1"
        assert suggestion.created_at == NOW
        assert suggestion.resolved_at is None

    @pytest.mark.asyncio
    async def test_priority_from_urgency(self, suggestion_service, candidates):
        urgent = await suggestion_service.submit(
            candidates.work_order(order_id="order-1", days_remaining=2), now=NOW
        )
        relaxed = await suggestion_service.submit(
            candidates.work_order(order_id="order-2", days_remaining=30), now=NOW
        )

        assert urgent.priority == "high"
        assert relaxed.priority == "low"

    @pytest.mark.asyncio
    async def test_expiry_per_type(self, suggestion_service, candidates):
        """work_order 7일, purchase 14일"""
        work_order = await suggestion_service.submit(candidates.work_order(), now=NOW)
        purchase = await suggestion_service.submit(candidates.purchase(), now=NOW)

        assert work_order.expires_at == NOW + timedelta(days=7)
        assert purchase.expires_at == NOW + timedelta(days=14)

    @pytest.mark.asyncio
    async def test_persisted_document(self, store, suggestion_service, candidates):
        suggestion = await suggestion_service.submit(candidates.purchase(), now=NOW)

        doc = store.data[collections.SUGGESTIONS][suggestion.id]
        assert doc["type"] == "purchase"
        assert doc["payload"]["suggested_order_qty"] == 22
        assert doc["related_ids"]["material_sku"] == "STEEL-01"


class TestDeduplication:
    """(tenant, type, root_cause_key) pending 유일성"""

    @pytest.mark.asyncio
    async def test_duplicate_candidate_discarded(self, store, suggestion_service, candidates):
        first = await suggestion_service.submit(candidates.work_order(), now=NOW)
        second = await suggestion_service.submit(candidates.work_order(qty=45), now=NOW)

        assert first is not None
        assert second is None
        assert len(pending_docs(store)) == 1
        assert pending_docs(store)[0]["payload"]["suggested_qty"] == 30

    @pytest.mark.asyncio
    async def test_different_root_cause_creates_new(self, store, suggestion_service, candidates):
        await suggestion_service.submit(candidates.work_order(order_id="order-1"), now=NOW)
        await suggestion_service.submit(candidates.work_order(order_id="order-2"), now=NOW)

        assert len(pending_docs(store)) == 2

    @pytest.mark.asyncio
    async def test_tenants_are_independent(self, store, suggestion_service, candidates):
        """같은 원인 키라도 테넌트가 다르면 별도 제안"""
        a = await suggestion_service.submit(candidates.work_order(tenant_id=TENANT_A), now=NOW)
        b = await suggestion_service.submit(candidates.work_order(tenant_id=TENANT_B), now=NOW)

        assert a is not None and b is not None
        assert a.tenant_id == TENANT_A
        assert b.tenant_id == TENANT_B

    @pytest.mark.asyncio
    async def test_resolved_suggestion_allows_new_candidate(
        self, store, suggestion_service, candidates
    ):
        """dismiss된 원인은 다시 감지되면 새 제안으로 생성"""
        first = await suggestion_service.submit(candidates.work_order(), now=NOW)
        await store.patch(collections.SUGGESTIONS, first.id, {"status": "dismissed"})

        second = await suggestion_service.submit(candidates.work_order(), now=NOW)

        assert second is not None
        assert second.id != first.id

    @pytest.mark.asyncio
    async def test_race_after_gate_keeps_single_pending(
        self, store, suggestion_service, candidates
    ):
        """게이트가 통과시켜도 삽입 시 재확인으로 중복 방지"""
        await suggestion_service.submit(candidates.work_order(), now=NOW)

        with patch.object(suggestion_service.gate, "admit", AsyncMock(return_value=True)):
            result = await suggestion_service.submit(candidates.work_order(), now=NOW)

        assert result is None
        assert len(pending_docs(store)) == 1

    @pytest.mark.asyncio
    async def test_concurrent_submits(self, store, suggestion_service, candidates):
        results = await asyncio.gather(
            *(suggestion_service.submit(candidates.work_order(), now=NOW) for _ in range(5))
        )

        assert sum(r is not None for r in results) == 1
        assert len(pending_docs(store)) == 1


class TestValidation:
    """삽입 전 검증"""

    @pytest.mark.asyncio
    async def test_blank_root_cause_key(self, suggestion_service, candidates):
        candidate = candidates.work_order().model_copy(update={"root_cause_key": "  "})

        with pytest.raises(ValidationError, match="VALIDATION_ERROR"):
            await suggestion_service.submit(candidate, now=NOW)

    @pytest.mark.asyncio
    async def test_blank_title(self, suggestion_service, candidates):
        candidate = candidates.purchase().model_copy(update={"title": ""})

        with pytest.raises(ValidationError):
            await suggestion_service.submit(candidate, now=NOW)

    @pytest.mark.asyncio
    async def test_route_mismatch(self, suggestion_service, candidates):
        """type과 출발/대상 모듈 조합이 다르면 거부"""
        candidate = candidates.work_order().model_copy(update={"source_module": "plan"})

        with pytest.raises(ValidationError) as exc_info:
            await suggestion_service.submit(candidate, now=NOW)

        assert "outbound -> production" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_payload_type_mismatch(self, suggestion_service, candidates):
        candidate = candidates.work_order().model_copy(update={"type": "purchase"})

        with pytest.raises(ValidationError):
            await suggestion_service.submit(candidate, now=NOW)

    @pytest.mark.asyncio
    async def test_rejected_candidate_not_stored(self, store, suggestion_service, candidates):
        candidate = candidates.work_order().model_copy(update={"root_cause_key": ""})

        with pytest.raises(ValidationError):
            await suggestion_service.submit(candidate, now=NOW)

        assert store.data[collections.SUGGESTIONS] == {}
