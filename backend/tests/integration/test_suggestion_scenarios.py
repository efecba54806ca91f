"""제안 흐름 통합 테스트

모듈 쓰기 -> 디텍터 예약 -> drain -> 제안 -> accept 까지 서비스 계층 전체를 통과한다.

시나리오:
1. 주문 생성 -> 작업지시 제안 -> 연쇄 발주 제안 -> 두 제안 수락
2. 같은 원인 재감지 시 중복 제안 없음
3. 수락 재시도는 대상 엔티티를 한 번만 만든다
4. 발주 입고 -> 대기 작업지시 릴리즈 제안 -> 수락 시 released
5. 예측 변경 -> 파급 제안 -> 수락 시 계획 수량 반영
6. 테넌트 격리
"""

from datetime import timedelta

import pytest

from nexus_ops.core.errors import InvalidTransition, NotFound
from nexus_ops.models.operations import OutboundOrderLine
from nexus_ops.repositories import collections
from nexus_ops.services.command_center_service import CommandCenterService, SuggestionFilter
from nexus_ops.services.inbound_service import InboundService
from nexus_ops.services.lifecycle import LifecycleManager
from nexus_ops.services.outbound_service import OutboundService
from nexus_ops.services.plan_service import PlanService

TENANT_A = "tenant-a"
TENANT_B = "tenant-b"


@pytest.fixture
def command_center(store) -> CommandCenterService:
    return CommandCenterService(store)


@pytest.fixture
def lifecycle(store) -> LifecycleManager:
    return LifecycleManager(store)


async def create_order(store, orchestrator, today, tenant_id=TENANT_A, qty=30, number="SO-1001"):
    return await OutboundService(store, orchestrator).create_order(
        tenant_id,
        order_number=number,
        customer_name="Acme Corp",
        requested_ship_date=today + timedelta(days=14),
        lines=[OutboundOrderLine(sku="WIDGET-1", qty_ordered=qty)],
    )


# ===== 1. 주문 -> 작업지시 -> 발주 =====


class TestOrderToPurchase:
    @pytest.fixture
    async def catalog(self, seed):
        await seed.widget_catalog(TENANT_A)
        await seed.raw_inventory(TENANT_A, "STEEL-01", 40)
        await seed.raw_inventory(TENANT_A, "BOLT-10", 500)

    @pytest.mark.asyncio
    async def test_order_produces_work_order_and_purchase_suggestions(
        self, store, orchestrator, handlers, scheduler, command_center, catalog, today
    ):
        await create_order(store, orchestrator, today)

        assert await scheduler.drain() == 2

        suggestions = await command_center.list_suggestions(TENANT_A)
        by_type = {s.type: s for s in suggestions}
        assert set(by_type) == {"work_order", "purchase"}

        work_order = by_type["work_order"]
        assert work_order.payload.shortfall == 30
        assert work_order.payload.source_order_number == "SO-1001"

        purchase = by_type["purchase"]
        assert purchase.payload.material_sku == "STEEL-01"
        assert purchase.payload.shortfall == 20
        assert purchase.payload.suggested_order_qty == 22
        assert purchase.payload.linked_suggestion_ids == [work_order.id]

    @pytest.mark.asyncio
    async def test_accept_both_suggestions(
        self, store, orchestrator, handlers, scheduler, command_center, lifecycle, catalog, today
    ):
        await create_order(store, orchestrator, today)
        await scheduler.drain()
        suggestions = {s.type: s for s in await command_center.list_suggestions(TENANT_A)}

        accepted_wo = await lifecycle.accept(TENANT_A, suggestions["work_order"].id, actor="u1")
        accepted_po = await lifecycle.accept(TENANT_A, suggestions["purchase"].id, actor="u1")

        work_order = store.data[collections.WORK_ORDERS][accepted_wo.result_ref]
        assert work_order["status"] == "draft"
        assert work_order["qty_planned"] == 30
        draft = store.data[collections.PURCHASE_DRAFTS][accepted_po.result_ref]
        assert draft["material_sku"] == "STEEL-01"
        assert draft["suggested_qty"] == 22
        assert await command_center.list_suggestions(TENANT_A) == []

        counts = await command_center.get_counts(TENANT_A)
        assert counts.total == 0
        assert counts.pending == 0


# ===== 2. 중복 제안 방지 =====


class TestDeduplication:
    @pytest.mark.asyncio
    async def test_repeated_trigger_creates_single_suggestion(
        self, store, orchestrator, handlers, scheduler, command_center, today
    ):
        order = await create_order(store, orchestrator, today)
        await scheduler.drain()

        await orchestrator.order_created(TENANT_A, order.id)
        await orchestrator.order_created(TENANT_A, order.id)
        await scheduler.drain()

        suggestions = await command_center.list_suggestions(
            TENANT_A, SuggestionFilter(type="work_order")
        )
        assert len(suggestions) == 1

    @pytest.mark.asyncio
    async def test_new_suggestion_after_dismiss(
        self, store, orchestrator, handlers, scheduler, command_center, lifecycle, today
    ):
        """pending이 아닌 제안은 같은 원인의 새 제안을 막지 않는다"""
        order = await create_order(store, orchestrator, today)
        await scheduler.drain()
        [first] = await command_center.list_suggestions(TENANT_A)
        await lifecycle.dismiss(TENANT_A, first.id, reason="handled manually")

        await orchestrator.order_created(TENANT_A, order.id)
        await scheduler.drain()

        [second] = await command_center.list_suggestions(TENANT_A)
        assert second.id != first.id
        assert second.root_cause_key == first.root_cause_key


# ===== 3. 수락 멱등성 =====


class TestIdempotentAccept:
    @pytest.mark.asyncio
    async def test_accept_twice_single_work_order(
        self, store, orchestrator, handlers, scheduler, command_center, lifecycle, today
    ):
        await create_order(store, orchestrator, today)
        await scheduler.drain()
        [suggestion] = await command_center.list_suggestions(TENANT_A)

        first = await lifecycle.accept(TENANT_A, suggestion.id)
        second = await lifecycle.accept(TENANT_A, suggestion.id)

        assert first.result_ref == second.result_ref
        assert len(store.data[collections.WORK_ORDERS]) == 1

    @pytest.mark.asyncio
    async def test_accepted_work_order_covers_order(
        self, store, orchestrator, handlers, scheduler, command_center, lifecycle, today
    ):
        """수락으로 생긴 작업지시가 주문을 충족하면 재감지해도 제안이 없다"""
        order = await create_order(store, orchestrator, today)
        await scheduler.drain()
        [suggestion] = await command_center.list_suggestions(TENANT_A)
        await lifecycle.accept(TENANT_A, suggestion.id)

        await orchestrator.order_created(TENANT_A, order.id)
        await scheduler.drain()

        assert await command_center.list_suggestions(TENANT_A) == []


# ===== 4. 입고 -> 릴리즈 =====


class TestReceiptToRelease:
    @pytest.mark.asyncio
    async def test_receipt_releases_waiting_work_order(
        self, store, seed, orchestrator, handlers, scheduler, command_center, lifecycle
    ):
        await seed.widget_catalog(TENANT_A)
        await seed.raw_inventory(TENANT_A, "STEEL-01", 5)
        await seed.raw_inventory(TENANT_A, "BOLT-10", 100)
        wo_id = await seed.work_order(TENANT_A, "WIDGET-1", 10, status="waiting_on_materials")
        po_id = await seed.purchase_order(
            TENANT_A, [{"id": "line-1", "item_sku": "STEEL-01", "qty_ordered": 20}]
        )

        await InboundService(store, orchestrator).update_purchase_order_status(
            TENANT_A, po_id, "closed", received={"line-1": 20}
        )
        assert await scheduler.drain() == 1

        [suggestion] = await command_center.list_suggestions(TENANT_A)
        assert suggestion.type == "release_wo"
        assert suggestion.payload.work_order_id == wo_id

        accepted = await lifecycle.accept(TENANT_A, suggestion.id)

        assert accepted.result_ref == wo_id
        work_order = store.data[collections.WORK_ORDERS][wo_id]
        assert work_order["status"] == "released"
        assert suggestion.id in work_order["applied_suggestion_ids"]

    @pytest.mark.asyncio
    async def test_partial_receipt_not_enough(
        self, store, seed, orchestrator, handlers, scheduler, command_center
    ):
        await seed.widget_catalog(TENANT_A)
        await seed.raw_inventory(TENANT_A, "BOLT-10", 100)
        await seed.work_order(TENANT_A, "WIDGET-1", 10, status="waiting_on_materials")
        po_id = await seed.purchase_order(
            TENANT_A, [{"id": "line-1", "item_sku": "STEEL-01", "qty_ordered": 20}]
        )

        await InboundService(store, orchestrator).update_purchase_order_status(
            TENANT_A, po_id, "partial", received={"line-1": 10}
        )
        await scheduler.drain()

        assert await command_center.list_suggestions(TENANT_A) == []


# ===== 5. 예측 변경 파급 =====


class TestForecastCascade:
    @pytest.mark.asyncio
    async def test_forecast_change_updates_planned_quantity(
        self, store, seed, orchestrator, handlers, scheduler, command_center, lifecycle
    ):
        await seed.widget_catalog(TENANT_A)
        plan_id = await seed.forecast(TENANT_A, "WIDGET-1", "2026-04", 100)
        wo_id = await seed.work_order(TENANT_A, "WIDGET-1", 100, source_plan_id=plan_id)

        await PlanService(store, orchestrator).revise_forecast(
            TENANT_A, sku="WIDGET-1", period_start="2026-04", plan_qty=130, customer_id="cust-1"
        )
        await scheduler.drain()

        [suggestion] = await command_center.list_suggestions(
            TENANT_A, SuggestionFilter(type="forecast_cascade")
        )
        assert suggestion.priority == "medium"
        assert suggestion.payload.percent_change == 30.0

        await lifecycle.accept(TENANT_A, suggestion.id)

        work_order = store.data[collections.WORK_ORDERS][wo_id]
        assert work_order["qty_planned"] == 130
        assert suggestion.id in work_order["applied_suggestion_ids"]

    @pytest.mark.asyncio
    async def test_small_change_below_threshold(
        self, store, seed, orchestrator, handlers, scheduler, command_center
    ):
        plan_id = await seed.forecast(TENANT_A, "WIDGET-1", "2026-04", 100)
        await seed.work_order(TENANT_A, "WIDGET-1", 100, source_plan_id=plan_id)

        await PlanService(store, orchestrator).revise_forecast(
            TENANT_A, sku="WIDGET-1", period_start="2026-04", plan_qty=105, customer_id="cust-1"
        )
        await scheduler.drain()

        assert await command_center.list_suggestions(TENANT_A) == []


# ===== 6. 테넌트 격리 =====


class TestTenantIsolation:
    @pytest.mark.asyncio
    async def test_suggestions_scoped_to_tenant(
        self, store, orchestrator, handlers, scheduler, command_center, lifecycle, today
    ):
        await create_order(store, orchestrator, today, tenant_id=TENANT_B, number="SO-9001")
        await scheduler.drain()

        assert await command_center.list_suggestions(TENANT_A) == []
        [suggestion] = await command_center.list_suggestions(TENANT_B)

        with pytest.raises(NotFound):
            await lifecycle.accept(TENANT_A, suggestion.id)
        assert store.data[collections.WORK_ORDERS] == {}


# ===== 기준 시나리오 =====


class TestReferenceScenarios:
    @pytest.mark.asyncio
    async def test_order_shortfall_and_rerun(
        self, store, seed, orchestrator, handlers, scheduler, command_center, today
    ):
        """완제품 20개 보유, 100개 주문 -> 부족분 80 제안 1건, 재실행해도 1건"""
        await seed.finished_inventory(TENANT_A, "WIDGET-1", 20)
        order = await create_order(store, orchestrator, today, qty=100)
        await scheduler.drain()

        [suggestion] = await command_center.list_suggestions(TENANT_A)
        assert suggestion.type == "work_order"
        assert suggestion.payload.shortfall == 80

        await orchestrator.order_created(TENANT_A, order.id)
        await scheduler.drain()

        assert len(await command_center.list_suggestions(TENANT_A)) == 1

    @pytest.mark.asyncio
    async def test_purchase_accept_creates_single_draft(
        self, store, suggestion_service, candidates, command_center, lifecycle
    ):
        suggestion = await suggestion_service.submit(candidates.purchase(qty=500))

        accepted = await lifecycle.accept(TENANT_A, suggestion.id)
        replay = await lifecycle.accept(TENANT_A, suggestion.id)

        assert accepted.status == "accepted"
        assert accepted.resolved_at is not None
        assert replay.result_ref == accepted.result_ref
        assert replay.resolved_at == accepted.resolved_at
        drafts = list(store.data[collections.PURCHASE_DRAFTS].values())
        assert [d["suggested_qty"] for d in drafts] == [500]

    @pytest.mark.asyncio
    async def test_dismissed_then_accept_fails(
        self, suggestion_service, candidates, lifecycle
    ):
        suggestion = await suggestion_service.submit(candidates.work_order())

        dismissed = await lifecycle.dismiss(TENANT_A, suggestion.id, reason="handled manually")

        assert dismissed.status == "dismissed"
        assert dismissed.dismiss_reason == "handled manually"
        with pytest.raises(InvalidTransition):
            await lifecycle.accept(TENANT_A, suggestion.id)

    @pytest.mark.asyncio
    async def test_large_forecast_increase(
        self, store, seed, orchestrator, handlers, scheduler, command_center
    ):
        """100 -> 160 (60% 증가) -> high 이상, 100 기준 작업지시 나열"""
        plan_id = await seed.forecast(TENANT_A, "WIDGET-1", "2026-04", 100)
        wo_id = await seed.work_order(TENANT_A, "WIDGET-1", 100, source_plan_id=plan_id)

        await PlanService(store, orchestrator).revise_forecast(
            TENANT_A, sku="WIDGET-1", period_start="2026-04", plan_qty=160, customer_id="cust-1"
        )
        await scheduler.drain()

        [suggestion] = await command_center.list_suggestions(TENANT_A)
        assert suggestion.type == "forecast_cascade"
        assert suggestion.priority in ("high", "critical")
        assert [
            (w.work_order_id, w.qty_planned, w.proposed_qty)
            for w in suggestion.payload.impacted_work_orders
        ] == [(wo_id, 100, 160)]
