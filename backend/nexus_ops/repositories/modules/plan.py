"""Plan 모듈 데이터 제공자"""

from datetime import datetime, timezone

from nexus_ops.models.operations import ForecastPlan
from nexus_ops.repositories import collections
from nexus_ops.repositories.document_store import IDocumentStore


class PlanProvider:
    """수요 예측 projection"""

    def __init__(self, store: IDocumentStore):
        self.store = store

    async def get_plan(self, tenant_id: str, plan_id: str) -> ForecastPlan | None:
        doc = await self.store.get(collections.FORECAST_PLANS, plan_id)
        if not doc or doc.get("tenant_id") != tenant_id:
            return None
        return ForecastPlan.model_validate(doc)

    async def find_plan(
        self, tenant_id: str, sku: str, period_start: str, customer_id: str | None = None
    ) -> ForecastPlan | None:
        where = {"sku": sku, "period_start": period_start}
        if customer_id:
            where["customer_id"] = customer_id
        docs = await self.store.query(collections.FORECAST_PLANS, tenant_id, where=where, limit=1)
        return ForecastPlan.model_validate(docs[0]) if docs else None

    async def insert_plan(self, plan: ForecastPlan) -> ForecastPlan:
        plan_id = await self.store.insert(collections.FORECAST_PLANS, plan.to_document())
        return plan.model_copy(update={"id": plan_id})

    async def update_plan_qty(self, plan: ForecastPlan, plan_qty: int) -> ForecastPlan:
        now = datetime.now(timezone.utc)
        await self.store.patch(
            collections.FORECAST_PLANS,
            plan.id,
            {"plan_qty": plan_qty, "updated_at": now.isoformat()},
        )
        return plan.model_copy(update={"plan_qty": plan_qty, "updated_at": now})
