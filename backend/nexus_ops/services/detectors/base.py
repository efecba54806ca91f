"""디텍터 입력 스냅샷과 설정

디텍터는 스냅샷만 읽는 순수 함수이므로 시계(today)도 스냅샷에 포함된다.
"""

from dataclasses import dataclass, field
from datetime import date

from nexus_ops.core.config import Settings
from nexus_ops.models.operations import (
    BillOfMaterials,
    ForecastPlan,
    OutboundOrder,
    RawMaterial,
    Vendor,
    WorkOrder,
)
from nexus_ops.models.suggestion import ReceivedMaterial, SuggestionPriority

WORK_ORDER_PRIORITY_RANK: dict[str, int] = {"rush": 0, "high": 1, "normal": 2, "low": 3}


@dataclass(frozen=True)
class DetectorConfig:
    """디텍터 상수"""

    production_lead_days: int = 3
    default_vendor_lead_days: int = 14
    planning_horizon_days: int = 30
    purchase_buffer: float = 1.1
    forecast_change_threshold_pct: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "DetectorConfig":
        return cls(
            production_lead_days=settings.production_lead_days,
            default_vendor_lead_days=settings.default_vendor_lead_days,
            planning_horizon_days=settings.planning_horizon_days,
            purchase_buffer=settings.purchase_buffer,
            forecast_change_threshold_pct=settings.forecast_change_threshold_pct,
        )


@dataclass
class ProductionNeedSnapshot:
    """출고 주문 1건 기준 완제품 재고/작업지시 상태"""

    tenant_id: str
    today: date
    order: OutboundOrder
    finished_available: dict[str, int] = field(default_factory=dict)
    finished_names: dict[str, str] = field(default_factory=dict)
    open_work_orders: list[WorkOrder] = field(default_factory=list)
    # 같은 SKU를 요구하는 다른 활성 주문 (미연결 작업지시 배분용)
    other_orders: list[OutboundOrder] = field(default_factory=list)


@dataclass
class PlannedDemand:
    """자재 소요를 만드는 생산 계획 (기존 작업지시 또는 pending work_order 제안)"""

    finished_sku: str
    qty: int
    start: date
    severity: SuggestionPriority | None = None
    work_order_id: str | None = None
    wo_number: str | None = None
    suggestion_id: str | None = None


@dataclass
class PurchaseNeedSnapshot:
    """트리거 작업지시 기준 원자재 소요/가용 상태"""

    tenant_id: str
    today: date
    trigger: PlannedDemand
    demands: list[PlannedDemand] = field(default_factory=list)
    boms: dict[str, BillOfMaterials] = field(default_factory=dict)
    raw_materials: dict[str, RawMaterial] = field(default_factory=dict)
    raw_available: dict[str, float] = field(default_factory=dict)
    vendors: dict[str, Vendor] = field(default_factory=dict)


@dataclass
class ReleaseReadySnapshot:
    """자재 대기 작업지시와 원자재 가용 상태"""

    tenant_id: str
    today: date
    waiting_work_orders: list[WorkOrder] = field(default_factory=list)
    boms: dict[str, BillOfMaterials] = field(default_factory=dict)
    raw_available: dict[str, float] = field(default_factory=dict)
    received: list[ReceivedMaterial] = field(default_factory=list)
    po_id: str | None = None
    po_number: str | None = None


@dataclass
class ForecastCascadeSnapshot:
    """예측 변경 전후 수량과 하위 작업지시"""

    tenant_id: str
    today: date
    plan: ForecastPlan
    previous_qty: int
    work_orders: list[WorkOrder] = field(default_factory=list)
    bom: BillOfMaterials | None = None
