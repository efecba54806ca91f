"""Inbound 모듈 데이터 제공자

발주서 / 공급사 projection 과 발주 초안 생성 쓰기 연산.
"""

from nexus_ops.models.operations import InboundPurchaseOrder, PurchaseDraft, Vendor
from nexus_ops.repositories import collections
from nexus_ops.repositories.document_store import IDocumentStore


class InboundProvider:
    """Inbound projection + 발주 초안 쓰기"""

    def __init__(self, store: IDocumentStore):
        self.store = store

    async def get_purchase_order(self, tenant_id: str, po_id: str) -> InboundPurchaseOrder | None:
        doc = await self.store.get(collections.INBOUND_POS, po_id)
        if not doc or doc.get("tenant_id") != tenant_id:
            return None
        return InboundPurchaseOrder.model_validate(doc)

    async def save_purchase_order(self, po: InboundPurchaseOrder) -> None:
        doc = po.to_document()
        await self.store.patch(
            collections.INBOUND_POS, po.id, {"status": doc["status"], "lines": doc["lines"]}
        )

    async def get_vendor(self, tenant_id: str, vendor_id: str) -> Vendor | None:
        doc = await self.store.get(collections.VENDORS, vendor_id)
        if not doc or doc.get("tenant_id") != tenant_id:
            return None
        return Vendor.model_validate(doc)

    async def find_purchase_draft_by_suggestion(
        self, tenant_id: str, suggestion_id: str
    ) -> PurchaseDraft | None:
        docs = await self.store.query(
            collections.PURCHASE_DRAFTS,
            tenant_id,
            where={"source_suggestion_id": suggestion_id},
            limit=1,
        )
        return PurchaseDraft.model_validate(docs[0]) if docs else None

    async def list_purchase_drafts(self, tenant_id: str) -> list[PurchaseDraft]:
        docs = await self.store.query(collections.PURCHASE_DRAFTS, tenant_id)
        return [PurchaseDraft.model_validate(d) for d in docs]

    async def create_purchase_draft(self, draft: PurchaseDraft) -> PurchaseDraft:
        draft_id = await self.store.insert(collections.PURCHASE_DRAFTS, draft.to_document())
        return draft.model_copy(update={"id": draft_id})
