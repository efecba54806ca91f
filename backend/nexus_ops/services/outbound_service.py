"""Outbound 모듈 서비스

주문 생성 후 production-need 디텍터 실행을 예약한다.
"""

import logging
from datetime import date

from nexus_ops.models.operations import OutboundOrder, OutboundOrderLine
from nexus_ops.repositories.document_store import IDocumentStore
from nexus_ops.repositories.modules import OutboundProvider
from nexus_ops.services.orchestrator import SuggestionOrchestrator

logger = logging.getLogger(__name__)


class OutboundService:
    def __init__(self, store: IDocumentStore, orchestrator: SuggestionOrchestrator):
        self.store = store
        self.provider = OutboundProvider(store)
        self.orchestrator = orchestrator

    async def create_order(
        self,
        tenant_id: str,
        order_number: str,
        customer_name: str,
        requested_ship_date: date,
        lines: list[OutboundOrderLine],
        priority: str = "standard",
    ) -> OutboundOrder:
        """출고 주문 생성"""
        order = await self.provider.insert_order(
            OutboundOrder(
                tenant_id=tenant_id,
                order_number=order_number,
                customer_name=customer_name,
                priority=priority,
                requested_ship_date=requested_ship_date,
                lines=lines,
            )
        )
        await self.store.commit()
        logger.info(f"Order created: tenant={tenant_id}, order={order.order_number}")

        await self.orchestrator.order_created(tenant_id, order.id)
        return order
