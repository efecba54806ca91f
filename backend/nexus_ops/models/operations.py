"""모듈별 상태 Projection

outbound / production / inbound / plan 모듈이 문서 저장소에 보관하는 엔티티.
Command Center는 이 projection을 읽고, accept 시 고정된 쓰기 연산만 호출한다.
"""

from datetime import date, datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

OrderPriority = Literal["standard", "express", "next_day"]
WorkOrderStatus = Literal[
    "draft",
    "scheduled",
    "waiting_on_materials",
    "released",
    "in_progress",
    "completed",
    "cancelled",
]
WorkOrderPriority = Literal["low", "normal", "high", "rush"]
POStatus = Literal["open", "partial", "closed", "cancelled"]

CLOSED_WORK_ORDER_STATUSES = frozenset({"completed", "cancelled"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(BaseModel):
    """저장소 문서 공통 필드"""

    id: str = ""
    tenant_id: str

    def to_document(self) -> dict:
        doc = self.model_dump(mode="json")
        if not doc["id"]:
            doc.pop("id")
        return doc


# =============================================================================
# Outbound
# =============================================================================


class OutboundOrderLine(BaseModel):
    sku: str
    description: str = ""
    qty_ordered: int
    qty_shipped: int = 0
    unit_price: float = 0.0

    @property
    def qty_open(self) -> int:
        return max(self.qty_ordered - self.qty_shipped, 0)


class OutboundOrder(Document):
    """출고 주문"""

    order_number: str
    customer_name: str
    priority: OrderPriority = "standard"
    requested_ship_date: date
    status: str = "pending"
    lines: list[OutboundOrderLine] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)


# =============================================================================
# Production
# =============================================================================


class FinishedInventory(Document):
    """완제품 재고"""

    sku: str
    warehouse_id: str | None = None
    qty_on_hand: int = 0
    qty_allocated: int = 0

    @property
    def qty_available(self) -> int:
        return self.qty_on_hand - self.qty_allocated


class BOMMaterial(BaseModel):
    material_sku: str
    material_name: str
    qty_per_unit: float
    uom: str = "EA"
    scrap_factor: float = 1.0  # 1.05 = 5% 손실 가정


class BillOfMaterials(Document):
    """완제품 BOM"""

    finished_sku: str
    finished_name: str
    materials: list[BOMMaterial] = Field(default_factory=list)
    is_active: bool = True

    def requirement(self, material: BOMMaterial, qty: float) -> float:
        """완제품 qty 생산에 필요한 자재 수량"""
        return qty * material.qty_per_unit * material.scrap_factor


class RawMaterial(Document):
    """원자재 마스터"""

    sku: str
    name: str
    uom: str = "EA"
    cost_per_unit: float = 0.0
    lead_time_days: int | None = None
    preferred_vendor_id: str | None = None


class RawInventory(Document):
    """원자재 재고 (로트/창고 단위)"""

    material_sku: str
    qty_on_hand: float = 0.0
    qty_allocated: float = 0.0  # 열린 작업지시에 예약된 수량

    @property
    def qty_available(self) -> float:
        return self.qty_on_hand - self.qty_allocated


class WorkOrder(Document):
    """작업지시"""

    wo_number: str
    finished_sku: str
    finished_name: str
    qty_planned: int
    qty_completed: int = 0
    status: WorkOrderStatus = "draft"
    priority: WorkOrderPriority = "normal"
    scheduled_start: date
    scheduled_end: date
    source_order_id: str | None = None
    source_plan_id: str | None = None
    source_suggestion_id: str | None = None
    applied_suggestion_ids: list[str] = Field(default_factory=list)  # 릴리즈/수량변경을 적용한 제안
    notes: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_open(self) -> bool:
        return self.status not in CLOSED_WORK_ORDER_STATUSES

    @property
    def qty_remaining(self) -> int:
        return max(self.qty_planned - self.qty_completed, 0)


# =============================================================================
# Inbound
# =============================================================================


class Vendor(Document):
    name: str


class InboundPOLine(BaseModel):
    id: str
    item_sku: str
    description: str = ""
    qty_ordered: float
    qty_received: float = 0.0
    unit_price: float = 0.0
    uom: str = "EA"


class InboundPurchaseOrder(Document):
    """입고 발주서"""

    po_number: str
    vendor_id: str | None = None
    vendor_name: str = ""
    status: POStatus = "open"
    date_ordered: date | None = None
    date_promised: date | None = None
    lines: list[InboundPOLine] = Field(default_factory=list)


class PurchaseDraft(Document):
    """accept된 purchase 제안으로 생성되는 발주 초안"""

    material_sku: str
    material_name: str
    suggested_qty: int
    order_by_date: date
    needed_by_date: date
    reason: str = ""
    urgency: str = "medium"
    status: str = "draft"
    linked_work_orders: list[str] = Field(default_factory=list)
    vendor_id: str | None = None
    estimated_cost: float = 0.0
    source_suggestion_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


# =============================================================================
# Plan
# =============================================================================


class ForecastPlan(Document):
    """고객/SKU/기간별 수요 예측"""

    customer_id: str | None = None
    customer_name: str = "Unknown Customer"
    sku: str
    period_start: str  # YYYY-MM
    plan_qty: int
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
