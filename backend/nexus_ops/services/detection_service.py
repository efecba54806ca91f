"""디텍터 실행 서비스

실행 시점의 최신 모듈 상태로 스냅샷을 만들고, 디텍터 출력 후보를
SuggestionService로 제출한다. 디텍터/게이트 오류는 여기서 로깅 후 흡수한다.
"""

import logging
from datetime import date, datetime, timezone

from nexus_ops.core.config import Settings, get_settings
from nexus_ops.models.operations import BillOfMaterials
from nexus_ops.models.suggestion import ReceivedMaterial, Suggestion, SuggestionCandidate
from nexus_ops.repositories.document_store import IDocumentStore
from nexus_ops.repositories.modules import (
    InboundProvider,
    OutboundProvider,
    PlanProvider,
    ProductionProvider,
)
from nexus_ops.repositories.suggestion_repository import SuggestionRepository
from nexus_ops.services.detectors import (
    DetectorConfig,
    ForecastCascadeSnapshot,
    PlannedDemand,
    ProductionNeedSnapshot,
    PurchaseNeedSnapshot,
    ReleaseReadySnapshot,
    detect_forecast_cascade,
    detect_production_need,
    detect_purchase_need,
    detect_release_ready,
)
from nexus_ops.services.orchestrator import SuggestionOrchestrator
from nexus_ops.services.priority import ORDER_PRIORITY_SEVERITY, WORK_ORDER_PRIORITY_SEVERITY
from nexus_ops.services.suggestion_service import SuggestionService

logger = logging.getLogger(__name__)

# 자재를 아직 확보하지 않은 계획 단계 작업지시
PLANNING_WO_STATUSES = frozenset({"draft", "scheduled", "waiting_on_materials"})


class DetectionService:
    """디텍터 실행 + 후보 제출"""

    def __init__(
        self,
        store: IDocumentStore,
        orchestrator: SuggestionOrchestrator | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.config = DetectorConfig.from_settings(self.settings)
        self.store = store
        self.orchestrator = orchestrator
        self.outbound = OutboundProvider(store)
        self.production = ProductionProvider(store)
        self.inbound = InboundProvider(store)
        self.plan = PlanProvider(store)
        self.suggestions = SuggestionRepository(store)
        self.suggestion_service = SuggestionService(store, self.settings)

    @staticmethod
    def _today(now: datetime | None) -> date:
        return (now or datetime.now(timezone.utc)).date()

    async def _submit_all(
        self, candidates: list[SuggestionCandidate], now: datetime | None
    ) -> list[Suggestion]:
        created = []
        for candidate in candidates:
            try:
                suggestion = await self.suggestion_service.submit(candidate, now=now)
            except Exception:
                logger.exception(
                    f"Candidate rejected: tenant={candidate.tenant_id}, type={candidate.type}, "
                    f"key={candidate.root_cause_key}"
                )
                continue
            if suggestion is not None:
                created.append(suggestion)
        return created

    async def _boms_by_sku(self, tenant_id: str) -> dict[str, BillOfMaterials]:
        return {bom.finished_sku: bom for bom in await self.production.list_boms(tenant_id)}

    # =========================================================================
    # Production-need
    # =========================================================================

    async def run_production_need(
        self, tenant_id: str, order_id: str, now: datetime | None = None
    ) -> list[Suggestion]:
        """출고 주문 기준 작업지시 필요 여부 검사"""
        try:
            order = await self.outbound.get_order(tenant_id, order_id)
            if order is None:
                logger.warning(f"Order not found for detection: tenant={tenant_id}, order={order_id}")
                return []

            skus = {line.sku for line in order.lines}
            boms = await self._boms_by_sku(tenant_id)
            snapshot = ProductionNeedSnapshot(
                tenant_id=tenant_id,
                today=self._today(now),
                order=order,
                finished_available={
                    sku: await self.production.finished_available(tenant_id, sku) for sku in skus
                },
                finished_names={sku: boms[sku].finished_name for sku in skus if sku in boms},
                open_work_orders=[
                    wo
                    for wo in await self.production.list_open_work_orders(tenant_id)
                    if wo.finished_sku in skus
                ],
                other_orders=[
                    other
                    for other in await self.outbound.list_orders(tenant_id)
                    if other.id != order.id and any(line.sku in skus for line in other.lines)
                ],
            )
            candidates = detect_production_need(snapshot, self.config)
        except Exception:
            logger.exception(f"Production-need detection failed: tenant={tenant_id}, order={order_id}")
            return []

        created = await self._submit_all(candidates, now)
        if created and self.orchestrator:
            # 후보 작업지시의 자재 검사는 제안이 확정된 뒤 예약
            await self.store.commit()
            for suggestion in created:
                await self.orchestrator.work_order_suggested(tenant_id, suggestion.id)
        return created

    # =========================================================================
    # Purchase-need
    # =========================================================================

    async def _planned_demands(self, tenant_id: str) -> list[PlannedDemand]:
        demands = [
            PlannedDemand(
                finished_sku=wo.finished_sku,
                qty=wo.qty_remaining,
                start=wo.scheduled_start,
                severity=WORK_ORDER_PRIORITY_SEVERITY.get(wo.priority),
                work_order_id=wo.id,
                wo_number=wo.wo_number,
            )
            for wo in await self.production.list_open_work_orders(tenant_id)
            if wo.status in PLANNING_WO_STATUSES
        ]
        pending = await self.suggestions.list_suggestions(
            tenant_id, status="pending", suggestion_type="work_order"
        )
        demands.extend(self._suggested_demand(s) for s in pending)
        return demands

    @staticmethod
    def _suggested_demand(suggestion: Suggestion) -> PlannedDemand:
        payload = suggestion.payload
        return PlannedDemand(
            finished_sku=payload.finished_sku,
            qty=payload.suggested_qty,
            start=payload.scheduled_start,
            severity=ORDER_PRIORITY_SEVERITY.get(payload.order_priority),
            suggestion_id=suggestion.id,
        )

    async def _purchase_trigger(
        self, tenant_id: str, work_order_id: str | None, suggestion_id: str | None
    ) -> PlannedDemand | None:
        if work_order_id:
            wo = await self.production.get_work_order(tenant_id, work_order_id)
            if wo is None or not wo.is_open:
                return None
            return PlannedDemand(
                finished_sku=wo.finished_sku,
                qty=wo.qty_remaining,
                start=wo.scheduled_start,
                severity=WORK_ORDER_PRIORITY_SEVERITY.get(wo.priority),
                work_order_id=wo.id,
                wo_number=wo.wo_number,
            )

        if suggestion_id:
            suggestion = await self.suggestions.get(tenant_id, suggestion_id)
            if suggestion is None or not suggestion.is_pending or suggestion.type != "work_order":
                return None
            return self._suggested_demand(suggestion)

        return None

    async def run_purchase_need(
        self,
        tenant_id: str,
        work_order_id: str | None = None,
        suggestion_id: str | None = None,
        now: datetime | None = None,
    ) -> list[Suggestion]:
        """작업지시(기존 또는 후보) 기준 원자재 부족 검사"""
        try:
            trigger = await self._purchase_trigger(tenant_id, work_order_id, suggestion_id)
            if trigger is None:
                logger.info(
                    f"Purchase-need trigger gone: tenant={tenant_id}, "
                    f"work_order={work_order_id}, suggestion={suggestion_id}"
                )
                return []

            boms = await self._boms_by_sku(tenant_id)
            trigger_bom = boms.get(trigger.finished_sku)
            material_skus = [m.material_sku for m in trigger_bom.materials] if trigger_bom else []

            raw_materials = {}
            raw_available = {}
            for sku in material_skus:
                material = await self.production.get_raw_material(tenant_id, sku)
                if material:
                    raw_materials[sku] = material
                raw_available[sku] = await self.production.raw_available(tenant_id, sku)

            vendors = {}
            for material in raw_materials.values():
                if material.preferred_vendor_id and material.preferred_vendor_id not in vendors:
                    vendor = await self.inbound.get_vendor(tenant_id, material.preferred_vendor_id)
                    if vendor:
                        vendors[vendor.id] = vendor

            snapshot = PurchaseNeedSnapshot(
                tenant_id=tenant_id,
                today=self._today(now),
                trigger=trigger,
                demands=await self._planned_demands(tenant_id),
                boms=boms,
                raw_materials=raw_materials,
                raw_available=raw_available,
                vendors=vendors,
            )
            candidates = detect_purchase_need(snapshot, self.config)
        except Exception:
            logger.exception(
                f"Purchase-need detection failed: tenant={tenant_id}, "
                f"work_order={work_order_id}, suggestion={suggestion_id}"
            )
            return []

        return await self._submit_all(candidates, now)

    # =========================================================================
    # Release-ready
    # =========================================================================

    async def run_release_ready(
        self, tenant_id: str, po_id: str | None = None, now: datetime | None = None
    ) -> list[Suggestion]:
        """자재 대기 작업지시 릴리즈 가능 여부 검사"""
        try:
            received: list[ReceivedMaterial] = []
            po_number = None
            if po_id:
                po = await self.inbound.get_purchase_order(tenant_id, po_id)
                if po is not None:
                    po_number = po.po_number
                    received = [
                        ReceivedMaterial(
                            sku=line.item_sku,
                            name=line.description or line.item_sku,
                            qty_received=line.qty_received,
                        )
                        for line in po.lines
                        if line.qty_received > 0
                    ]

            waiting = await self.production.list_work_orders(
                tenant_id, status="waiting_on_materials"
            )
            boms = await self._boms_by_sku(tenant_id)
            material_skus = {
                m.material_sku
                for wo in waiting
                if wo.finished_sku in boms
                for m in boms[wo.finished_sku].materials
            }
            snapshot = ReleaseReadySnapshot(
                tenant_id=tenant_id,
                today=self._today(now),
                waiting_work_orders=waiting,
                boms=boms,
                raw_available={
                    sku: await self.production.raw_available(tenant_id, sku)
                    for sku in material_skus
                },
                received=received,
                po_id=po_id,
                po_number=po_number,
            )
            candidates = detect_release_ready(snapshot, self.config)
        except Exception:
            logger.exception(f"Release-ready detection failed: tenant={tenant_id}, po={po_id}")
            return []

        return await self._submit_all(candidates, now)

    # =========================================================================
    # Forecast-cascade
    # =========================================================================

    async def run_forecast_cascade(
        self, tenant_id: str, plan_id: str, previous_qty: int, now: datetime | None = None
    ) -> list[Suggestion]:
        """예측 변경 파급 검사"""
        try:
            plan = await self.plan.get_plan(tenant_id, plan_id)
            if plan is None:
                logger.warning(f"Forecast not found for detection: tenant={tenant_id}, plan={plan_id}")
                return []

            snapshot = ForecastCascadeSnapshot(
                tenant_id=tenant_id,
                today=self._today(now),
                plan=plan,
                previous_qty=previous_qty,
                work_orders=await self.production.list_work_orders(
                    tenant_id, finished_sku=plan.sku
                ),
                bom=await self.production.get_bom(tenant_id, plan.sku),
            )
            candidates = detect_forecast_cascade(snapshot, self.config)
        except Exception:
            logger.exception(f"Forecast-cascade detection failed: tenant={tenant_id}, plan={plan_id}")
            return []

        return await self._submit_all(candidates, now)
