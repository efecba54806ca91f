"""Accept Executor

type별로 대상 모듈에 정확히 하나의 쓰기를 수행한다.
대상 엔티티에 suggestion id를 남겨 같은 제안으로 두 번 쓰지 않는다.
"""

import logging
from datetime import datetime, timezone

from nexus_ops.core.errors import CommandCenterError, ExecutionFailure
from nexus_ops.models.operations import PurchaseDraft
from nexus_ops.models.suggestion import (
    ForecastCascadePayload,
    PurchasePayload,
    ReleaseWorkOrderPayload,
    Suggestion,
    WorkOrderPayload,
)
from nexus_ops.repositories.document_store import IDocumentStore
from nexus_ops.repositories.modules import InboundProvider, ProductionProvider

logger = logging.getLogger(__name__)

ORDER_TO_WORK_ORDER_PRIORITY = {"next_day": "rush", "express": "high"}


class AcceptExecutor:
    def __init__(self, store: IDocumentStore):
        self.production = ProductionProvider(store)
        self.inbound = InboundProvider(store)

    async def execute(self, suggestion: Suggestion) -> str:
        """대상 모듈 쓰기 실행

        Returns:
            생성/변경된 대상 엔티티 ID (result_ref)

        Raises:
            NotFound: 대상 엔티티 미존재
            ExecutionFailure: 대상 모듈 쓰기 실패
        """
        payload = suggestion.payload
        try:
            if isinstance(payload, WorkOrderPayload):
                return await self._create_work_order(suggestion, payload)
            if isinstance(payload, PurchasePayload):
                return await self._create_purchase_draft(suggestion, payload)
            if isinstance(payload, ReleaseWorkOrderPayload):
                return await self._release_work_order(suggestion, payload)
            if isinstance(payload, ForecastCascadePayload):
                return await self._apply_forecast(suggestion, payload)
        except CommandCenterError:
            raise
        except Exception as e:
            logger.warning(
                f"Accept execution failed: tenant={suggestion.tenant_id}, "
                f"suggestion={suggestion.id}, type={suggestion.type}, error={e}"
            )
            raise ExecutionFailure(str(e)) from e

        raise ExecutionFailure(f"Unsupported suggestion type: {suggestion.type}")

    async def _create_work_order(self, suggestion: Suggestion, payload: WorkOrderPayload) -> str:
        existing = await self.production.find_work_order_by_suggestion(
            suggestion.tenant_id, suggestion.id
        )
        if existing:
            return existing.id

        work_order = await self.production.create_work_order(
            tenant_id=suggestion.tenant_id,
            finished_sku=payload.finished_sku,
            finished_name=payload.finished_name,
            qty_planned=payload.suggested_qty,
            scheduled_start=payload.scheduled_start,
            scheduled_end=payload.scheduled_end,
            priority=ORDER_TO_WORK_ORDER_PRIORITY.get(payload.order_priority, "normal"),
            source_order_id=payload.source_order_id,
            source_suggestion_id=suggestion.id,
            notes=f"Created from Command Center for order {payload.source_order_number}",
        )
        logger.info(
            f"Work order created from suggestion: tenant={suggestion.tenant_id}, "
            f"suggestion={suggestion.id}, wo={work_order.wo_number}"
        )
        return work_order.id

    async def _create_purchase_draft(self, suggestion: Suggestion, payload: PurchasePayload) -> str:
        existing = await self.inbound.find_purchase_draft_by_suggestion(
            suggestion.tenant_id, suggestion.id
        )
        if existing:
            return existing.id

        draft = await self.inbound.create_purchase_draft(
            PurchaseDraft(
                tenant_id=suggestion.tenant_id,
                material_sku=payload.material_sku,
                material_name=payload.material_name,
                suggested_qty=payload.suggested_order_qty,
                order_by_date=payload.order_by_date,
                needed_by_date=payload.needed_by_date,
                reason=suggestion.description,
                urgency=suggestion.priority,
                linked_work_orders=payload.linked_work_orders,
                vendor_id=payload.vendor_id,
                estimated_cost=payload.estimated_cost,
                source_suggestion_id=suggestion.id,
                created_at=datetime.now(timezone.utc),
            )
        )
        logger.info(
            f"Purchase draft created from suggestion: tenant={suggestion.tenant_id}, "
            f"suggestion={suggestion.id}, material={payload.material_sku}, "
            f"qty={payload.suggested_order_qty}"
        )
        return draft.id

    async def _release_work_order(
        self, suggestion: Suggestion, payload: ReleaseWorkOrderPayload
    ) -> str:
        work_order = await self.production.get_work_order(
            suggestion.tenant_id, payload.work_order_id
        )
        if work_order and suggestion.id in work_order.applied_suggestion_ids:
            return work_order.id

        released = await self.production.release_work_order(
            suggestion.tenant_id, payload.work_order_id, suggestion_id=suggestion.id
        )
        logger.info(
            f"Work order released from suggestion: tenant={suggestion.tenant_id}, "
            f"suggestion={suggestion.id}, wo={released.wo_number}"
        )
        return released.id

    async def _apply_forecast(
        self, suggestion: Suggestion, payload: ForecastCascadePayload
    ) -> str:
        note = (
            f"Planned quantity updated for forecast {payload.period_start} "
            f"({payload.previous_qty} -> {payload.new_qty})"
        )
        for impacted in payload.impacted_work_orders:
            work_order = await self.production.get_work_order(
                suggestion.tenant_id, impacted.work_order_id
            )
            if work_order and suggestion.id in work_order.applied_suggestion_ids:
                continue
            if work_order and not work_order.is_open:
                logger.info(
                    f"Skipping closed work order: tenant={suggestion.tenant_id}, "
                    f"wo={work_order.wo_number}, status={work_order.status}"
                )
                continue

            await self.production.update_planned_quantity(
                suggestion.tenant_id,
                impacted.work_order_id,
                impacted.proposed_qty,
                note=note,
                suggestion_id=suggestion.id,
            )

        logger.info(
            f"Forecast cascade applied: tenant={suggestion.tenant_id}, suggestion={suggestion.id}, "
            f"work_orders={len(payload.impacted_work_orders)}"
        )
        return payload.plan_id
