"""pytest 설정 및 공유 fixture

테스트 인프라:
- In-memory 문서 저장소 (PostgreSQL 불필요)
- InlineTaskScheduler (Redis 불필요, drain()으로 디텍터 실행)
- 모듈 projection 시드 헬퍼
- FastAPI AsyncClient (의존성 오버라이드)
"""

import os
from collections.abc import AsyncGenerator
from contextlib import nullcontext
from datetime import date, datetime, timedelta, timezone
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("SCHEDULER_BACKEND", "inline")

from nexus_ops.core.config import Settings  # noqa: E402
from nexus_ops.infrastructure.scheduler import InlineTaskScheduler  # noqa: E402
from nexus_ops.models.suggestion import (  # noqa: E402
    ForecastCascadePayload,
    ImpactedWorkOrder,
    PurchasePayload,
    RelatedIds,
    ReleaseWorkOrderPayload,
    SuggestionCandidate,
    UrgencySignals,
    WorkOrderPayload,
)
from nexus_ops.repositories import collections  # noqa: E402
from nexus_ops.repositories.document_store import MemoryDocumentStore  # noqa: E402
from nexus_ops.services.orchestrator import SuggestionOrchestrator  # noqa: E402
from nexus_ops.services.suggestion_service import SuggestionService  # noqa: E402
from nexus_ops.workers.handlers import DetectorHandlers  # noqa: E402

TENANT_A = "tenant-a"
TENANT_B = "tenant-b"


# ===== 설정 =====


@pytest.fixture
def test_settings() -> Settings:
    """테스트용 설정 (memory 저장소 + inline 스케줄러)"""
    return Settings(
        app_env="test",
        store_backend="memory",
        scheduler_backend="inline",
        detector_delay_ms=0,
    )


@pytest.fixture
def today() -> date:
    return datetime.now(timezone.utc).date()


# ===== 저장소 / 스케줄러 =====


@pytest.fixture
def store() -> MemoryDocumentStore:
    """테스트마다 새 in-memory 저장소"""
    return MemoryDocumentStore()


@pytest.fixture
def scheduler() -> InlineTaskScheduler:
    """큐에 쌓고 drain()으로 실행하는 스케줄러"""
    return InlineTaskScheduler()


@pytest.fixture
def orchestrator(scheduler, test_settings) -> SuggestionOrchestrator:
    return SuggestionOrchestrator(scheduler, test_settings)


@pytest.fixture
def handlers(store, scheduler, orchestrator) -> DetectorHandlers:
    """테스트 저장소를 쓰는 디텍터 핸들러 (스케줄러에 등록됨)"""
    detector_handlers = DetectorHandlers(
        store_scope=lambda: nullcontext(store), orchestrator=orchestrator
    )
    scheduler.register(detector_handlers.registry())
    return detector_handlers


# ===== 시드 헬퍼 =====


class Seeder:
    """모듈 projection 문서 삽입 헬퍼"""

    def __init__(self, store: MemoryDocumentStore, today: date):
        self.store = store
        self.today = today

    async def finished_inventory(self, tenant_id: str, sku: str, on_hand: int, allocated: int = 0):
        return await self.store.insert(
            collections.FINISHED_INVENTORY,
            {"tenant_id": tenant_id, "sku": sku, "qty_on_hand": on_hand, "qty_allocated": allocated},
        )

    async def raw_inventory(
        self, tenant_id: str, material_sku: str, on_hand: float, allocated: float = 0.0
    ):
        return await self.store.insert(
            collections.RAW_INVENTORY,
            {
                "tenant_id": tenant_id,
                "material_sku": material_sku,
                "qty_on_hand": on_hand,
                "qty_allocated": allocated,
            },
        )

    async def raw_material(
        self,
        tenant_id: str,
        sku: str,
        name: str,
        cost_per_unit: float = 1.0,
        lead_time_days: int | None = None,
        preferred_vendor_id: str | None = None,
    ):
        return await self.store.insert(
            collections.RAW_MATERIALS,
            {
                "tenant_id": tenant_id,
                "sku": sku,
                "name": name,
                "uom": "EA",
                "cost_per_unit": cost_per_unit,
                "lead_time_days": lead_time_days,
                "preferred_vendor_id": preferred_vendor_id,
            },
        )

    async def vendor(self, tenant_id: str, name: str):
        return await self.store.insert(collections.VENDORS, {"tenant_id": tenant_id, "name": name})

    async def bom(self, tenant_id: str, finished_sku: str, materials: list[dict[str, Any]]):
        return await self.store.insert(
            collections.BOMS,
            {
                "tenant_id": tenant_id,
                "finished_sku": finished_sku,
                "finished_name": f"{finished_sku} Assembly",
                "materials": materials,
                "is_active": True,
            },
        )

    async def order(
        self,
        tenant_id: str,
        sku: str,
        qty: int,
        ship_in_days: int = 14,
        priority: str = "standard",
        order_number: str = "SO-1001",
    ):
        return await self.store.insert(
            collections.OUTBOUND_ORDERS,
            {
                "tenant_id": tenant_id,
                "order_number": order_number,
                "customer_name": "Acme Corp",
                "priority": priority,
                "requested_ship_date": (self.today + timedelta(days=ship_in_days)).isoformat(),
                "status": "pending",
                "lines": [{"sku": sku, "description": f"{sku} unit", "qty_ordered": qty}],
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
        )

    async def work_order(
        self,
        tenant_id: str,
        sku: str,
        qty: int,
        status: str = "scheduled",
        start_in_days: int = 5,
        wo_number: str = "WO-2026-0001",
        priority: str = "normal",
        **extra: Any,
    ):
        start = self.today + timedelta(days=start_in_days)
        return await self.store.insert(
            collections.WORK_ORDERS,
            {
                "tenant_id": tenant_id,
                "wo_number": wo_number,
                "finished_sku": sku,
                "finished_name": f"{sku} Assembly",
                "qty_planned": qty,
                "status": status,
                "priority": priority,
                "scheduled_start": start.isoformat(),
                "scheduled_end": (start + timedelta(days=2)).isoformat(),
                **extra,
            },
        )

    async def purchase_order(self, tenant_id: str, lines: list[dict[str, Any]], status: str = "open"):
        return await self.store.insert(
            collections.INBOUND_POS,
            {
                "tenant_id": tenant_id,
                "po_number": "PO-5001",
                "vendor_name": "Steel Supply Co",
                "status": status,
                "lines": lines,
            },
        )

    async def forecast(self, tenant_id: str, sku: str, period_start: str, qty: int):
        return await self.store.insert(
            collections.FORECAST_PLANS,
            {
                "tenant_id": tenant_id,
                "customer_id": "cust-1",
                "customer_name": "Acme Corp",
                "sku": sku,
                "period_start": period_start,
                "plan_qty": qty,
            },
        )

    async def widget_catalog(self, tenant_id: str) -> None:
        """WIDGET-1 BOM (STEEL-01 x2, BOLT-10 x4) + 원자재 마스터"""
        vendor_id = await self.vendor(tenant_id, "Steel Supply Co")
        await self.raw_material(
            tenant_id, "STEEL-01", "Steel Plate", cost_per_unit=2.5,
            lead_time_days=7, preferred_vendor_id=vendor_id,
        )
        await self.raw_material(tenant_id, "BOLT-10", "M10 Bolt", cost_per_unit=0.1)
        await self.bom(
            tenant_id,
            "WIDGET-1",
            [
                {"material_sku": "STEEL-01", "material_name": "Steel Plate", "qty_per_unit": 2},
                {"material_sku": "BOLT-10", "material_name": "M10 Bolt", "qty_per_unit": 4},
            ],
        )


@pytest.fixture
def seed(store, today) -> Seeder:
    return Seeder(store, today)


# ===== 후보 제안 팩토리 =====


class CandidateFactory:
    """type별 SuggestionCandidate 생성"""

    def __init__(self, today: date):
        self.today = today

    def work_order(
        self,
        tenant_id: str = TENANT_A,
        order_id: str = "order-1",
        sku: str = "WIDGET-1",
        qty: int = 30,
        days_remaining: int = 14,
        order_priority: str = "standard",
    ) -> SuggestionCandidate:
        end = self.today + timedelta(days=days_remaining)
        return SuggestionCandidate(
            tenant_id=tenant_id,
            type="work_order",
            source_module="outbound",
            target_module="production",
            root_cause_key=f"work_order_need:{sku}:{order_id}",
            title=f"Create work order for {qty} x {sku}",
            description=f"Order {order_id} is short {qty} units of {sku}.",
            payload=WorkOrderPayload(
                finished_sku=sku,
                finished_name=f"{sku} Assembly",
                qty_needed=qty,
                qty_in_stock=0,
                shortfall=qty,
                suggested_qty=qty,
                scheduled_start=end - timedelta(days=3),
                scheduled_end=end,
                source_order_id=order_id,
                source_order_number="SO-1001",
                order_priority=order_priority,
            ),
            related_ids=RelatedIds(order_id=order_id),
            urgency=UrgencySignals(days_remaining=days_remaining),
        )

    def purchase(
        self, tenant_id: str = TENANT_A, material_sku: str = "STEEL-01", qty: int = 22
    ) -> SuggestionCandidate:
        return SuggestionCandidate(
            tenant_id=tenant_id,
            type="purchase",
            source_module="production",
            target_module="inbound",
            root_cause_key=f"purchase_need:{material_sku}",
            title=f"Purchase {qty} EA of {material_sku}",
            description=f"Planned work orders are short on {material_sku}.",
            payload=PurchasePayload(
                material_sku=material_sku,
                material_name="Steel Plate",
                qty_needed=60,
                qty_available=40,
                shortfall=20,
                suggested_order_qty=qty,
                lead_time_days=7,
                estimated_cost=qty * 2.5,
                order_by_date=self.today + timedelta(days=5),
                needed_by_date=self.today + timedelta(days=12),
                linked_work_orders=["WO-2026-0001"],
                vendor_id="vendor-1",
            ),
            related_ids=RelatedIds(material_sku=material_sku),
            urgency=UrgencySignals(days_remaining=5),
        )

    def release(
        self, work_order_id: str, tenant_id: str = TENANT_A, wo_number: str = "WO-2026-0001"
    ) -> SuggestionCandidate:
        return SuggestionCandidate(
            tenant_id=tenant_id,
            type="release_wo",
            source_module="inbound",
            target_module="production",
            root_cause_key=f"release_ready:{work_order_id}",
            title=f"Release {wo_number}: materials available",
            description=f"All materials for {wo_number} are now available.",
            payload=ReleaseWorkOrderPayload(
                work_order_id=work_order_id,
                wo_number=wo_number,
                finished_sku="WIDGET-1",
                finished_name="WIDGET-1 Assembly",
            ),
            related_ids=RelatedIds(work_order_id=work_order_id),
            urgency=UrgencySignals(days_remaining=5),
        )

    def forecast(
        self,
        plan_id: str,
        impacted: list[tuple[str, int, int]],
        tenant_id: str = TENANT_A,
        previous_qty: int = 100,
        new_qty: int = 130,
    ) -> SuggestionCandidate:
        """impacted: (work_order_id, qty_planned, proposed_qty)"""
        change = round((new_qty - previous_qty) / previous_qty * 100, 1)
        return SuggestionCandidate(
            tenant_id=tenant_id,
            type="forecast_cascade",
            source_module="plan",
            target_module="production",
            root_cause_key="forecast_cascade:WIDGET-1:2026-04",
            title=f"Forecast for WIDGET-1 (2026-04) changed {change:g}%",
            description=f"Forecast changed from {previous_qty} to {new_qty}.",
            payload=ForecastCascadePayload(
                plan_id=plan_id,
                sku="WIDGET-1",
                period_start="2026-04",
                previous_qty=previous_qty,
                new_qty=new_qty,
                percent_change=change,
                impacted_work_orders=[
                    ImpactedWorkOrder(
                        work_order_id=wo_id,
                        wo_number=f"WO-{wo_id}",
                        qty_planned=planned,
                        proposed_qty=proposed,
                    )
                    for wo_id, planned, proposed in impacted
                ],
            ),
            related_ids=RelatedIds(plan_id=plan_id),
            urgency=UrgencySignals(percent_change=change),
        )


@pytest.fixture
def candidates(today) -> CandidateFactory:
    return CandidateFactory(today)


@pytest.fixture
def suggestion_service(store, test_settings) -> SuggestionService:
    return SuggestionService(store, test_settings)


# ===== API Client =====


@pytest.fixture
async def api_client(store, orchestrator, handlers) -> AsyncGenerator[AsyncClient, None]:
    """테스트 저장소/스케줄러를 주입한 async client"""
    from nexus_ops.api.dependencies import get_document_store, get_suggestion_orchestrator
    from nexus_ops.main import app

    async def override_get_document_store():
        yield store

    app.dependency_overrides[get_document_store] = override_get_document_store
    app.dependency_overrides[get_suggestion_orchestrator] = lambda: orchestrator

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def tenant_headers() -> dict[str, str]:
    return {"X-Tenant-ID": TENANT_A, "X-User-ID": "reviewer-1"}
