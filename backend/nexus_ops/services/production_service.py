"""Production 모듈 서비스

작업지시 상태 변경 후 purchase-need 디텍터 실행을 예약한다.
"""

import logging

from nexus_ops.core.errors import NotFound
from nexus_ops.models.operations import WorkOrder
from nexus_ops.repositories.document_store import IDocumentStore
from nexus_ops.repositories.modules import ProductionProvider
from nexus_ops.services.orchestrator import SuggestionOrchestrator

logger = logging.getLogger(__name__)


class ProductionService:
    def __init__(self, store: IDocumentStore, orchestrator: SuggestionOrchestrator):
        self.store = store
        self.provider = ProductionProvider(store)
        self.orchestrator = orchestrator

    async def update_work_order_status(
        self, tenant_id: str, work_order_id: str, status: str
    ) -> WorkOrder:
        """작업지시 상태 변경

        Raises:
            NotFound: 작업지시 미존재
        """
        work_order = await self.provider.get_work_order(tenant_id, work_order_id)
        if work_order is None:
            raise NotFound(f"Work order {work_order_id} not found")
        if work_order.status == status:
            return work_order

        updated = await self.provider.update_work_order(
            tenant_id, work_order_id, {"status": status}
        )
        await self.store.commit()
        logger.info(
            f"Work order status changed: tenant={tenant_id}, wo={updated.wo_number}, "
            f"{work_order.status} -> {status}"
        )

        await self.orchestrator.work_order_status_changed(tenant_id, work_order_id, status)
        return updated
