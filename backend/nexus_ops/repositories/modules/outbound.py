"""Outbound 모듈 데이터 제공자"""

from nexus_ops.models.operations import OutboundOrder
from nexus_ops.repositories import collections
from nexus_ops.repositories.document_store import IDocumentStore


class OutboundProvider:
    """출고 주문 projection"""

    def __init__(self, store: IDocumentStore):
        self.store = store

    async def get_order(self, tenant_id: str, order_id: str) -> OutboundOrder | None:
        doc = await self.store.get(collections.OUTBOUND_ORDERS, order_id)
        if not doc or doc.get("tenant_id") != tenant_id:
            return None
        return OutboundOrder.model_validate(doc)

    async def list_orders(self, tenant_id: str, status: str | None = None) -> list[OutboundOrder]:
        docs = await self.store.query(
            collections.OUTBOUND_ORDERS,
            tenant_id,
            where={"status": status} if status else None,
            order_by="created_at",
            descending=True,
        )
        return [OutboundOrder.model_validate(d) for d in docs]

    async def insert_order(self, order: OutboundOrder) -> OutboundOrder:
        order_id = await self.store.insert(collections.OUTBOUND_ORDERS, order.to_document())
        return order.model_copy(update={"id": order_id})
