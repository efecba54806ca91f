"""Production 모듈 데이터 제공자

작업지시 / BOM / 완제품·원자재 재고 projection 과
Accept Executor가 호출하는 쓰기 연산 (작업지시 생성, 릴리즈, 계획수량 변경).
"""

from datetime import date, datetime, timezone

from nexus_ops.core.errors import NotFound
from nexus_ops.models.operations import (
    BillOfMaterials,
    FinishedInventory,
    RawInventory,
    RawMaterial,
    WorkOrder,
)
from nexus_ops.repositories import collections
from nexus_ops.repositories.document_store import IDocumentStore


class ProductionProvider:
    """Production projection + 쓰기 연산"""

    def __init__(self, store: IDocumentStore):
        self.store = store

    # =========================================================================
    # Work Order
    # =========================================================================

    async def get_work_order(self, tenant_id: str, work_order_id: str) -> WorkOrder | None:
        doc = await self.store.get(collections.WORK_ORDERS, work_order_id)
        if not doc or doc.get("tenant_id") != tenant_id:
            return None
        return WorkOrder.model_validate(doc)

    async def list_work_orders(
        self, tenant_id: str, finished_sku: str | None = None, status: str | None = None
    ) -> list[WorkOrder]:
        where: dict[str, str] = {}
        if finished_sku:
            where["finished_sku"] = finished_sku
        if status:
            where["status"] = status
        docs = await self.store.query(
            collections.WORK_ORDERS, tenant_id, where=where, order_by="wo_number"
        )
        return [WorkOrder.model_validate(d) for d in docs]

    async def list_open_work_orders(self, tenant_id: str) -> list[WorkOrder]:
        """완료/취소되지 않은 작업지시"""
        return [wo for wo in await self.list_work_orders(tenant_id) if wo.is_open]

    async def find_work_order_by_suggestion(
        self, tenant_id: str, suggestion_id: str
    ) -> WorkOrder | None:
        docs = await self.store.query(
            collections.WORK_ORDERS,
            tenant_id,
            where={"source_suggestion_id": suggestion_id},
            limit=1,
        )
        return WorkOrder.model_validate(docs[0]) if docs else None

    async def next_wo_number(self, tenant_id: str, year: int) -> str:
        """WO-<year>-<seq> 형식 채번"""
        existing = await self.store.query(collections.WORK_ORDERS, tenant_id)
        prefix = f"WO-{year}-"
        seqs = [
            int(d["wo_number"][len(prefix):])
            for d in existing
            if d.get("wo_number", "").startswith(prefix)
            and d["wo_number"][len(prefix):].isdigit()
        ]
        return f"{prefix}{max(seqs, default=0) + 1:04d}"

    async def insert_work_order(self, work_order: WorkOrder) -> WorkOrder:
        work_order_id = await self.store.insert(collections.WORK_ORDERS, work_order.to_document())
        return work_order.model_copy(update={"id": work_order_id})

    async def create_work_order(
        self,
        tenant_id: str,
        finished_sku: str,
        finished_name: str,
        qty_planned: int,
        scheduled_start: date,
        scheduled_end: date,
        priority: str = "normal",
        source_order_id: str | None = None,
        source_suggestion_id: str | None = None,
        notes: str | None = None,
    ) -> WorkOrder:
        """draft 작업지시 생성"""
        now = datetime.now(timezone.utc)
        work_order = WorkOrder(
            tenant_id=tenant_id,
            wo_number=await self.next_wo_number(tenant_id, now.year),
            finished_sku=finished_sku,
            finished_name=finished_name,
            qty_planned=qty_planned,
            status="draft",
            priority=priority,
            scheduled_start=scheduled_start,
            scheduled_end=scheduled_end,
            source_order_id=source_order_id,
            source_suggestion_id=source_suggestion_id,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        return await self.insert_work_order(work_order)

    async def update_work_order(
        self, tenant_id: str, work_order_id: str, fields: dict
    ) -> WorkOrder:
        work_order = await self.get_work_order(tenant_id, work_order_id)
        if work_order is None:
            raise NotFound(f"Work order not found: {work_order_id}")

        updated = work_order.model_copy(
            update={**fields, "updated_at": datetime.now(timezone.utc)}
        )
        partial = {
            k: v for k, v in updated.to_document().items() if k in fields or k == "updated_at"
        }
        await self.store.patch(collections.WORK_ORDERS, work_order_id, partial)
        return updated

    async def release_work_order(
        self, tenant_id: str, work_order_id: str, suggestion_id: str | None = None
    ) -> WorkOrder:
        """waiting_on_materials -> released"""
        work_order = await self.get_work_order(tenant_id, work_order_id)
        if work_order is None:
            raise NotFound(f"Work order not found: {work_order_id}")
        if work_order.status != "waiting_on_materials":
            raise ValueError(
                f"Work order {work_order.wo_number} is {work_order.status}, "
                "not waiting_on_materials"
            )
        fields: dict = {"status": "released"}
        if suggestion_id:
            fields["applied_suggestion_ids"] = [*work_order.applied_suggestion_ids, suggestion_id]
        return await self.update_work_order(tenant_id, work_order_id, fields)

    async def update_planned_quantity(
        self,
        tenant_id: str,
        work_order_id: str,
        qty_planned: int,
        note: str | None = None,
        suggestion_id: str | None = None,
    ) -> WorkOrder:
        """예측 파급에 따른 계획수량 변경"""
        work_order = await self.get_work_order(tenant_id, work_order_id)
        if work_order is None:
            raise NotFound(f"Work order not found: {work_order_id}")

        fields: dict = {"qty_planned": qty_planned}
        if note:
            fields["notes"] = note
        if suggestion_id:
            fields["applied_suggestion_ids"] = [*work_order.applied_suggestion_ids, suggestion_id]
        return await self.update_work_order(tenant_id, work_order_id, fields)

    # =========================================================================
    # BOM / 재고
    # =========================================================================

    async def get_bom(self, tenant_id: str, finished_sku: str) -> BillOfMaterials | None:
        docs = await self.store.query(
            collections.BOMS,
            tenant_id,
            where={"finished_sku": finished_sku, "is_active": True},
            limit=1,
        )
        return BillOfMaterials.model_validate(docs[0]) if docs else None

    async def list_boms(self, tenant_id: str) -> list[BillOfMaterials]:
        docs = await self.store.query(collections.BOMS, tenant_id, where={"is_active": True})
        return [BillOfMaterials.model_validate(d) for d in docs]

    async def finished_available(self, tenant_id: str, sku: str) -> int:
        """완제품 가용 수량 (창고 합계)"""
        docs = await self.store.query(
            collections.FINISHED_INVENTORY, tenant_id, where={"sku": sku}
        )
        return sum(FinishedInventory.model_validate(d).qty_available for d in docs)

    async def raw_available(self, tenant_id: str, material_sku: str) -> float:
        """원자재 가용 수량 (on_hand - allocated 합계)"""
        docs = await self.store.query(
            collections.RAW_INVENTORY, tenant_id, where={"material_sku": material_sku}
        )
        return sum(RawInventory.model_validate(d).qty_available for d in docs)

    async def get_raw_material(self, tenant_id: str, sku: str) -> RawMaterial | None:
        docs = await self.store.query(
            collections.RAW_MATERIALS, tenant_id, where={"sku": sku}, limit=1
        )
        return RawMaterial.model_validate(docs[0]) if docs else None

    async def receive_raw_material(self, tenant_id: str, material_sku: str, qty: float) -> None:
        """입고 수량을 원자재 재고에 반영"""
        docs = await self.store.query(
            collections.RAW_INVENTORY, tenant_id, where={"material_sku": material_sku}, limit=1
        )
        if docs:
            inventory = RawInventory.model_validate(docs[0])
            await self.store.patch(
                collections.RAW_INVENTORY,
                inventory.id,
                {"qty_on_hand": inventory.qty_on_hand + qty},
            )
            return

        await self.store.insert(
            collections.RAW_INVENTORY,
            RawInventory(tenant_id=tenant_id, material_sku=material_sku, qty_on_hand=qty).to_document(),
        )
