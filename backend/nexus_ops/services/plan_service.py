"""Plan 모듈 서비스

예측 수량 변경 후 이전 수량과 함께 forecast-cascade 디텍터 실행을 예약한다.
"""

import logging

from nexus_ops.models.operations import ForecastPlan
from nexus_ops.repositories.document_store import IDocumentStore
from nexus_ops.repositories.modules import PlanProvider
from nexus_ops.services.orchestrator import SuggestionOrchestrator

logger = logging.getLogger(__name__)


class PlanService:
    def __init__(self, store: IDocumentStore, orchestrator: SuggestionOrchestrator):
        self.store = store
        self.provider = PlanProvider(store)
        self.orchestrator = orchestrator

    async def revise_forecast(
        self,
        tenant_id: str,
        sku: str,
        period_start: str,
        plan_qty: int,
        customer_id: str | None = None,
        customer_name: str | None = None,
    ) -> tuple[ForecastPlan, int]:
        """예측 upsert

        Returns:
            (저장된 예측, 이전 수량). 신규 예측의 이전 수량은 0
        """
        existing = await self.provider.find_plan(tenant_id, sku, period_start, customer_id)
        if existing is None:
            previous_qty = 0
            plan = await self.provider.insert_plan(
                ForecastPlan(
                    tenant_id=tenant_id,
                    customer_id=customer_id,
                    customer_name=customer_name or "Unknown Customer",
                    sku=sku,
                    period_start=period_start,
                    plan_qty=plan_qty,
                )
            )
        else:
            previous_qty = existing.plan_qty
            if previous_qty == plan_qty:
                return existing, previous_qty
            plan = await self.provider.update_plan_qty(existing, plan_qty)

        await self.store.commit()
        logger.info(
            f"Forecast revised: tenant={tenant_id}, sku={sku}, period={period_start}, "
            f"{previous_qty} -> {plan_qty}"
        )

        await self.orchestrator.forecast_revised(tenant_id, plan.id, previous_qty)
        return plan, previous_qty
