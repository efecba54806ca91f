"""Inbound 모듈 서비스

발주서 입고/상태 변경 후 release-ready 디텍터 실행을 예약한다.
"""

import logging

from nexus_ops.core.errors import NotFound, ValidationError
from nexus_ops.models.operations import InboundPurchaseOrder
from nexus_ops.repositories.document_store import IDocumentStore
from nexus_ops.repositories.modules import InboundProvider, ProductionProvider
from nexus_ops.services.orchestrator import SuggestionOrchestrator

logger = logging.getLogger(__name__)


class InboundService:
    def __init__(self, store: IDocumentStore, orchestrator: SuggestionOrchestrator):
        self.store = store
        self.provider = InboundProvider(store)
        self.production = ProductionProvider(store)
        self.orchestrator = orchestrator

    async def update_purchase_order_status(
        self,
        tenant_id: str,
        po_id: str,
        status: str,
        received: dict[str, float] | None = None,
    ) -> InboundPurchaseOrder:
        """발주서 상태 변경 (+ 라인별 누적 입고 수량 반영)

        Args:
            received: 라인 ID -> 누적 입고 수량. 증가분만큼 원자재 재고가 늘어난다.

        Raises:
            NotFound: 발주서 미존재
            ValidationError: 알 수 없는 라인 ID 또는 입고 수량 감소
        """
        po = await self.provider.get_purchase_order(tenant_id, po_id)
        if po is None:
            raise NotFound(f"Purchase order {po_id} not found")

        lines = {line.id: line for line in po.lines}
        deltas: dict[str, float] = {}
        for line_id, qty_received in (received or {}).items():
            line = lines.get(line_id)
            if line is None:
                raise ValidationError(f"Unknown line {line_id} on {po.po_number}")
            if qty_received < line.qty_received:
                raise ValidationError(f"Received quantity cannot decrease on line {line_id}")
            deltas[line.item_sku] = deltas.get(line.item_sku, 0.0) + (
                qty_received - line.qty_received
            )
            line.qty_received = qty_received

        async with self.store.transaction():
            for material_sku, delta in deltas.items():
                if delta > 0:
                    await self.production.receive_raw_material(tenant_id, material_sku, delta)
            previous_status = po.status
            po.status = status
            await self.provider.save_purchase_order(po)
        await self.store.commit()
        logger.info(
            f"Purchase order updated: tenant={tenant_id}, po={po.po_number}, "
            f"{previous_status} -> {status}, received={deltas}"
        )

        await self.orchestrator.purchase_order_status_changed(tenant_id, po_id, status)
        return po
