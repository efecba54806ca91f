"""Purchase-need 디텍터 (production -> inbound)

트리거 작업지시의 BOM 자재마다 planning horizon 내 전체 생산 계획의
누적 소요량을 가용 재고와 비교한다.
"""

import math
from datetime import timedelta

from nexus_ops.models.suggestion import (
    PurchasePayload,
    RelatedIds,
    SuggestionCandidate,
    UrgencySignals,
    max_priority,
)
from nexus_ops.services.detectors.base import (
    DetectorConfig,
    PlannedDemand,
    PurchaseNeedSnapshot,
)


def root_cause_key(material_sku: str) -> str:
    return f"purchase_need:{material_sku}"


def _in_horizon(snapshot: PurchaseNeedSnapshot, config: DetectorConfig) -> list[PlannedDemand]:
    horizon_end = snapshot.today + timedelta(days=config.planning_horizon_days)
    demands = [d for d in snapshot.demands if d.start <= horizon_end]

    trigger = snapshot.trigger
    already = any(
        (trigger.work_order_id and d.work_order_id == trigger.work_order_id)
        or (trigger.suggestion_id and d.suggestion_id == trigger.suggestion_id)
        for d in demands
    )
    if not already:
        demands.append(trigger)
    return demands


def suggested_order_qty(shortfall: float, buffer: float) -> int:
    """부족분 x 여유율 올림 (부동소수 오차 제거 후)"""
    return math.ceil(round(shortfall * buffer, 6))


def detect_purchase_need(
    snapshot: PurchaseNeedSnapshot, config: DetectorConfig
) -> list[SuggestionCandidate]:
    trigger_bom = snapshot.boms.get(snapshot.trigger.finished_sku)
    if trigger_bom is None:
        return []

    demands = _in_horizon(snapshot, config)
    candidates = []

    for material in trigger_bom.materials:
        drivers: list[PlannedDemand] = []
        requirement = 0.0
        for demand in demands:
            bom = snapshot.boms.get(demand.finished_sku)
            if bom is None:
                continue
            for line in bom.materials:
                if line.material_sku == material.material_sku:
                    requirement += bom.requirement(line, demand.qty)
                    if demand not in drivers:
                        drivers.append(demand)

        available = snapshot.raw_available.get(material.material_sku, 0.0)
        if requirement <= available:
            continue

        shortfall = round(requirement - available, 4)
        order_qty = suggested_order_qty(shortfall, config.purchase_buffer)
        raw = snapshot.raw_materials.get(material.material_sku)
        lead_time = (
            raw.lead_time_days
            if raw and raw.lead_time_days is not None
            else config.default_vendor_lead_days
        )
        needed_by = min(d.start for d in drivers)
        order_by = needed_by - timedelta(days=lead_time)
        vendor = None
        if raw and raw.preferred_vendor_id:
            vendor = snapshot.vendors.get(raw.preferred_vendor_id)
        severities = [d.severity for d in drivers if d.severity]
        name = raw.name if raw else material.material_name
        uom = raw.uom if raw else material.uom

        payload = PurchasePayload(
            material_sku=material.material_sku,
            material_name=name,
            uom=uom,
            qty_needed=round(requirement, 4),
            qty_available=available,
            shortfall=shortfall,
            suggested_order_qty=order_qty,
            lead_time_days=lead_time,
            estimated_cost=round(order_qty * (raw.cost_per_unit if raw else 0.0), 2),
            order_by_date=order_by,
            needed_by_date=needed_by,
            linked_work_orders=[d.wo_number for d in drivers if d.wo_number],
            linked_suggestion_ids=[d.suggestion_id for d in drivers if d.suggestion_id],
            vendor_id=vendor.id if vendor else None,
            vendor_name=vendor.name if vendor else None,
        )
        candidates.append(
            SuggestionCandidate(
                tenant_id=snapshot.tenant_id,
                type="purchase",
                source_module="production",
                target_module="inbound",
                root_cause_key=root_cause_key(material.material_sku),
                title=f"Purchase {order_qty} {uom} of {name}",
                description=(
                    f"{len(drivers)} planned work order(s) need {payload.qty_needed:g} {uom} of "
                    f"{material.material_sku} but only {available:g} is available. "
                    f"Order by {order_by.isoformat()} ({lead_time} day lead time)."
                ),
                payload=payload,
                related_ids=RelatedIds(
                    work_order_id=snapshot.trigger.work_order_id,
                    material_sku=material.material_sku,
                ),
                urgency=UrgencySignals(
                    days_remaining=(order_by - snapshot.today).days,
                    severity=max_priority(*severities) if severities else None,
                    quantity_gap=shortfall,
                    full_requirement=payload.qty_needed,
                ),
            )
        )

    return candidates
