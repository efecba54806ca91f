"""Forecast-cascade 디텍터 (plan -> production)

예측 수량 변경률이 임계값을 넘으면, 이전 예측치 기준으로 계획된
하위 작업지시 목록과 변경 권고를 담은 제안을 만든다.
"""

from nexus_ops.models.operations import WorkOrder
from nexus_ops.models.suggestion import (
    ForecastCascadePayload,
    ImpactedWorkOrder,
    RelatedIds,
    SuggestionCandidate,
    UrgencySignals,
)
from nexus_ops.services.detectors.base import DetectorConfig, ForecastCascadeSnapshot


def root_cause_key(sku: str, period_start: str) -> str:
    return f"forecast_cascade:{sku}:{period_start}"


def percent_change(previous_qty: int, new_qty: int) -> float:
    """변경률(%). 이전 수량 0에서의 증가는 100%로 본다."""
    if previous_qty == 0:
        return 100.0 if new_qty > 0 else 0.0
    return round((new_qty - previous_qty) / previous_qty * 100, 1)


def proposed_quantity(qty_planned: int, previous_qty: int, new_qty: int) -> int:
    if previous_qty == 0:
        return qty_planned
    return round(qty_planned * new_qty / previous_qty)


def _is_downstream(work_order: WorkOrder, snapshot: ForecastCascadeSnapshot) -> bool:
    plan = snapshot.plan
    if not work_order.is_open or work_order.finished_sku != plan.sku:
        return False
    if work_order.source_plan_id:
        return work_order.source_plan_id == plan.id
    # 주문 연결 없이 같은 기간에 잡힌 작업지시는 예측 기반으로 본다
    return (
        work_order.source_order_id is None
        and work_order.scheduled_start.strftime("%Y-%m") == plan.period_start
    )


def _recommended_actions(
    snapshot: ForecastCascadeSnapshot, impacted: list[ImpactedWorkOrder], change: float
) -> list[str]:
    plan = snapshot.plan
    delta = plan.plan_qty - snapshot.previous_qty
    actions = [
        f"{'Increase' if wo.proposed_qty > wo.qty_planned else 'Reduce'} {wo.wo_number} "
        f"from {wo.qty_planned} to {wo.proposed_qty}"
        for wo in impacted
        if wo.proposed_qty != wo.qty_planned
    ]
    if not impacted and delta > 0:
        actions.append(f"Plan production of {delta} additional units of {plan.sku}")
    if snapshot.bom and change > 0:
        actions.append("Check raw material availability for the increased volume")
    if change < 0:
        actions.append("Review open purchase orders for excess material")
    return actions


def detect_forecast_cascade(
    snapshot: ForecastCascadeSnapshot, config: DetectorConfig
) -> list[SuggestionCandidate]:
    plan = snapshot.plan
    change = percent_change(snapshot.previous_qty, plan.plan_qty)
    if abs(change) <= config.forecast_change_threshold_pct:
        return []

    impacted = [
        ImpactedWorkOrder(
            work_order_id=wo.id,
            wo_number=wo.wo_number,
            qty_planned=wo.qty_planned,
            proposed_qty=proposed_quantity(wo.qty_planned, snapshot.previous_qty, plan.plan_qty),
        )
        for wo in snapshot.work_orders
        if _is_downstream(wo, snapshot)
    ]
    materials = [m.material_sku for m in snapshot.bom.materials] if snapshot.bom else []

    payload = ForecastCascadePayload(
        plan_id=plan.id,
        sku=plan.sku,
        period_start=plan.period_start,
        previous_qty=snapshot.previous_qty,
        new_qty=plan.plan_qty,
        percent_change=change,
        customer_name=plan.customer_name,
        impacted_work_orders=impacted,
        impacted_materials=materials,
        recommended_actions=_recommended_actions(snapshot, impacted, change),
    )
    direction = "up" if change > 0 else "down"
    return [
        SuggestionCandidate(
            tenant_id=snapshot.tenant_id,
            type="forecast_cascade",
            source_module="plan",
            target_module="production",
            root_cause_key=root_cause_key(plan.sku, plan.period_start),
            title=f"Forecast for {plan.sku} ({plan.period_start}) {direction} {abs(change):g}%",
            description=(
                f"{plan.customer_name} forecast changed from {snapshot.previous_qty} to "
                f"{plan.plan_qty}; {len(impacted)} work order(s) were sized against the "
                "previous forecast."
            ),
            payload=payload,
            related_ids=RelatedIds(plan_id=plan.id),
            urgency=UrgencySignals(percent_change=change),
        )
    ]
