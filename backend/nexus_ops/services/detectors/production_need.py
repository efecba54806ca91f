"""Production-need 디텍터 (outbound -> production)

출고 주문 라인의 완제품 수요가 가용 재고와 열린 작업지시 커버리지를
넘어서면 작업지시 생성 제안을 만든다.
"""

from collections import defaultdict
from datetime import timedelta

from nexus_ops.models.operations import OutboundOrder, WorkOrder
from nexus_ops.models.suggestion import (
    RelatedIds,
    SuggestionCandidate,
    UrgencySignals,
    WorkOrderPayload,
)
from nexus_ops.services.detectors.base import DetectorConfig, ProductionNeedSnapshot
from nexus_ops.services.priority import ORDER_PRIORITY_SEVERITY

INACTIVE_ORDER_STATUSES = frozenset({"cancelled", "shipped", "delivered"})

# 주문에 연결되지 않은 작업지시 중 커버리지로 인정하는 상태
UNLINKED_COVERAGE_STATUSES = frozenset({"draft", "scheduled"})


def root_cause_key(sku: str, order_id: str) -> str:
    return f"work_order_need:{sku}:{order_id}"


def _open_qty(order: OutboundOrder, sku: str) -> int:
    return sum(line.qty_open for line in order.lines if line.sku == sku and line.qty_open > 0)


def _linked_coverage(work_orders: list[WorkOrder], order: OutboundOrder, sku: str) -> int:
    return sum(
        wo.qty_remaining
        for wo in work_orders
        if wo.is_open and wo.finished_sku == sku and wo.source_order_id == order.id
    )


def _unlinked_allocation(snapshot: ProductionNeedSnapshot, sku: str, available: int) -> int:
    """주문 미연결 작업지시 수량 중 이 주문 몫

    미연결 draft/scheduled 작업지시는 같은 SKU의 활성 주문들이 납기일, 주문번호
    순으로 나눠 가진다. 한 단위의 공급은 최대 한 주문만 커버한다.
    """
    pool = sum(
        wo.qty_remaining
        for wo in snapshot.open_work_orders
        if wo.is_open
        and wo.finished_sku == sku
        and not wo.source_order_id
        and wo.status in UNLINKED_COVERAGE_STATUSES
    )
    if pool <= 0:
        return 0

    competing = [
        other
        for other in snapshot.other_orders
        if other.id != snapshot.order.id
        and other.status not in INACTIVE_ORDER_STATUSES
        and _open_qty(other, sku) > 0
    ]
    queue = sorted(
        [snapshot.order, *competing], key=lambda o: (o.requested_ship_date, o.order_number)
    )
    for order in queue:
        need = _open_qty(order, sku) - available - _linked_coverage(
            snapshot.open_work_orders, order, sku
        )
        share = min(pool, max(need, 0))
        if order.id == snapshot.order.id:
            return share
        pool -= share
    return 0


def detect_production_need(
    snapshot: ProductionNeedSnapshot, config: DetectorConfig
) -> list[SuggestionCandidate]:
    order = snapshot.order
    if order.status in INACTIVE_ORDER_STATUSES:
        return []

    required_by_sku: dict[str, int] = defaultdict(int)
    descriptions: dict[str, str] = {}
    for line in order.lines:
        if line.qty_open > 0:
            required_by_sku[line.sku] += line.qty_open
            descriptions.setdefault(line.sku, line.description)

    scheduled_end = order.requested_ship_date
    scheduled_start = scheduled_end - timedelta(days=config.production_lead_days)
    days_remaining = (scheduled_end - snapshot.today).days
    severity = ORDER_PRIORITY_SEVERITY.get(order.priority)

    candidates = []
    for sku, required in required_by_sku.items():
        available = snapshot.finished_available.get(sku, 0)
        linked = _linked_coverage(snapshot.open_work_orders, order, sku)
        covered = linked + _unlinked_allocation(snapshot, sku, available)
        gap = required - available - covered
        if gap <= 0:
            continue

        name = snapshot.finished_names.get(sku) or descriptions.get(sku) or sku
        payload = WorkOrderPayload(
            finished_sku=sku,
            finished_name=name,
            qty_needed=required,
            qty_in_stock=available,
            qty_covered=covered,
            shortfall=gap,
            suggested_qty=gap,
            scheduled_start=scheduled_start,
            scheduled_end=scheduled_end,
            source_order_id=order.id,
            source_order_number=order.order_number,
            order_priority=order.priority,
        )
        candidates.append(
            SuggestionCandidate(
                tenant_id=snapshot.tenant_id,
                type="work_order",
                source_module="outbound",
                target_module="production",
                root_cause_key=root_cause_key(sku, order.id),
                title=f"Create work order for {gap} x {name}",
                description=(
                    f"Order {order.order_number} for {order.customer_name} needs {required} "
                    f"units of {sku} by {scheduled_end.isoformat()}; {available} in stock and "
                    f"{covered} covered by open work orders."
                ),
                payload=payload,
                related_ids=RelatedIds(order_id=order.id),
                urgency=UrgencySignals(
                    days_remaining=days_remaining,
                    severity=severity,
                    quantity_gap=gap,
                    full_requirement=required,
                ),
            )
        )

    return candidates
