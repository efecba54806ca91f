"""Command Center Suggestion 엔티티

교차 모듈 액션 제안.
- pending: 리뷰 대기 중 (유일한 변경 가능 상태)
- accepted: 수락됨 (대상 모듈 쓰기 완료)
- dismissed: 거절됨
- expired: 만료 스윕에 의해 종료됨

payload는 type 태그로 구분되는 discriminated union 이다.
"""

from datetime import date, datetime
from typing import Annotated, Literal, Union, get_args

from pydantic import BaseModel, Field

SuggestionType = Literal["work_order", "purchase", "release_wo", "forecast_cascade"]
SuggestionModule = Literal["outbound", "production", "inbound", "plan"]
SuggestionPriority = Literal["low", "medium", "high", "critical"]
SuggestionStatus = Literal["pending", "accepted", "dismissed", "expired"]

SUGGESTION_TYPES: tuple[str, ...] = get_args(SuggestionType)
SUGGESTION_MODULES: tuple[str, ...] = get_args(SuggestionModule)

PRIORITY_RANK: dict[str, int] = {"low": 0, "medium": 1, "high": 2, "critical": 3}

# type별 출발/대상 모듈 (고정)
TYPE_ROUTES: dict[str, tuple[str, str]] = {
    "work_order": ("outbound", "production"),
    "purchase": ("production", "inbound"),
    "release_wo": ("inbound", "production"),
    "forecast_cascade": ("plan", "production"),
}


def max_priority(*priorities: SuggestionPriority | None) -> SuggestionPriority:
    """가장 긴급한 tier 반환 (None 무시, 전부 None이면 low)"""
    present = [p for p in priorities if p is not None]
    if not present:
        return "low"
    return max(present, key=lambda p: PRIORITY_RANK[p])


# =============================================================================
# Payload variants
# =============================================================================


class WorkOrderPayload(BaseModel):
    """outbound → production: 주문 충족용 작업지시 생성"""

    type: Literal["work_order"] = "work_order"
    finished_sku: str
    finished_name: str
    qty_needed: int
    qty_in_stock: int
    qty_covered: int = 0  # 이미 열린 작업지시가 커버하는 수량
    shortfall: int
    suggested_qty: int
    scheduled_start: date
    scheduled_end: date
    source_order_id: str
    source_order_number: str
    order_priority: str = "standard"


class PurchasePayload(BaseModel):
    """production → inbound: 원자재 발주 초안 생성"""

    type: Literal["purchase"] = "purchase"
    material_sku: str
    material_name: str
    uom: str = "EA"
    qty_needed: float
    qty_available: float
    shortfall: float
    suggested_order_qty: int
    lead_time_days: int
    estimated_cost: float
    order_by_date: date
    needed_by_date: date
    linked_work_orders: list[str] = Field(default_factory=list)
    linked_suggestion_ids: list[str] = Field(default_factory=list)
    vendor_id: str | None = None
    vendor_name: str | None = None


class ReceivedMaterial(BaseModel):
    """입고로 확보된 자재"""

    sku: str
    name: str
    qty_received: float


class ReleaseWorkOrderPayload(BaseModel):
    """inbound → production: 자재 대기 작업지시 릴리즈"""

    type: Literal["release_wo"] = "release_wo"
    work_order_id: str
    wo_number: str
    finished_sku: str
    finished_name: str
    materials_received: list[ReceivedMaterial] = Field(default_factory=list)
    can_now_proceed: bool = True
    blocked_since: datetime | None = None
    source_po_number: str | None = None


class ImpactedWorkOrder(BaseModel):
    """이전 예측치 기준으로 산정된 하위 작업지시"""

    work_order_id: str
    wo_number: str
    qty_planned: int
    proposed_qty: int


class ForecastCascadePayload(BaseModel):
    """plan → production: 예측 변경 파급"""

    type: Literal["forecast_cascade"] = "forecast_cascade"
    plan_id: str
    sku: str
    period_start: str  # YYYY-MM
    previous_qty: int
    new_qty: int
    percent_change: float
    customer_name: str = "Unknown Customer"
    impacted_work_orders: list[ImpactedWorkOrder] = Field(default_factory=list)
    impacted_materials: list[str] = Field(default_factory=list)
    recommended_actions: list[str] = Field(default_factory=list)


SuggestionPayload = Annotated[
    Union[WorkOrderPayload, PurchasePayload, ReleaseWorkOrderPayload, ForecastCascadePayload],
    Field(discriminator="type"),
]


class RelatedIds(BaseModel):
    """관련 레코드 링크"""

    order_id: str | None = None
    work_order_id: str | None = None
    po_id: str | None = None
    material_sku: str | None = None
    plan_id: str | None = None


class UrgencySignals(BaseModel):
    """우선순위 계산 입력"""

    days_remaining: int | None = None
    severity: SuggestionPriority | None = None
    quantity_gap: float | None = None
    full_requirement: float | None = None
    percent_change: float | None = None


# =============================================================================
# Candidate / Suggestion
# =============================================================================


class SuggestionCandidate(BaseModel):
    """디텍터 출력. id/status/priority 없음 (삽입 시 부여)"""

    tenant_id: str
    type: SuggestionType
    source_module: SuggestionModule
    target_module: SuggestionModule
    root_cause_key: str
    title: str
    description: str
    payload: SuggestionPayload
    related_ids: RelatedIds = Field(default_factory=RelatedIds)
    urgency: UrgencySignals = Field(default_factory=UrgencySignals)


class Suggestion(BaseModel):
    """저장된 제안 문서"""

    id: str
    tenant_id: str
    type: SuggestionType
    source_module: SuggestionModule
    target_module: SuggestionModule
    priority: SuggestionPriority
    status: SuggestionStatus = "pending"
    root_cause_key: str
    title: str
    description: str
    payload: SuggestionPayload
    related_ids: RelatedIds = Field(default_factory=RelatedIds)
    created_at: datetime
    expires_at: datetime | None = None
    resolved_at: datetime | None = None
    accepted_at: datetime | None = None
    accepted_by: str | None = None
    dismissed_at: datetime | None = None
    dismissed_by: str | None = None
    dismiss_reason: str | None = None
    expire_reason: str | None = None
    result_ref: str | None = None  # accept 시 생성/변경된 대상 엔티티 ID

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"

    def to_document(self) -> dict:
        """문서 저장소 형식 (JSON 호환)"""
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, doc: dict) -> "Suggestion":
        return cls.model_validate(doc)
