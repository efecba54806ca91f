"""Release-ready 디텍터 (inbound -> production)

자재 대기 작업지시에 원자재 가용량을 우선순위 순서로 배정하고,
모든 자재 라인이 충족된 작업지시마다 릴리즈 제안을 만든다.
"""

from nexus_ops.models.operations import WorkOrder
from nexus_ops.models.suggestion import (
    ReceivedMaterial,
    RelatedIds,
    ReleaseWorkOrderPayload,
    SuggestionCandidate,
    UrgencySignals,
)
from nexus_ops.services.detectors.base import (
    WORK_ORDER_PRIORITY_RANK,
    DetectorConfig,
    ReleaseReadySnapshot,
)
from nexus_ops.services.priority import WORK_ORDER_PRIORITY_SEVERITY


def root_cause_key(work_order_id: str) -> str:
    return f"release_ready:{work_order_id}"


def _allocation_order(work_order: WorkOrder) -> tuple:
    return (
        WORK_ORDER_PRIORITY_RANK.get(work_order.priority, len(WORK_ORDER_PRIORITY_RANK)),
        work_order.scheduled_start,
        work_order.wo_number,
    )


def detect_release_ready(
    snapshot: ReleaseReadySnapshot, config: DetectorConfig
) -> list[SuggestionCandidate]:
    pool = dict(snapshot.raw_available)
    received_by_sku = {r.sku: r for r in snapshot.received}
    candidates = []

    waiting = [wo for wo in snapshot.waiting_work_orders if wo.status == "waiting_on_materials"]
    for work_order in sorted(waiting, key=_allocation_order):
        bom = snapshot.boms.get(work_order.finished_sku)
        if bom is None or not bom.materials:
            continue

        required = {
            m.material_sku: bom.requirement(m, work_order.qty_remaining) for m in bom.materials
        }
        if any(pool.get(sku, 0.0) < qty for sku, qty in required.items()):
            continue
        for sku, qty in required.items():
            pool[sku] = pool.get(sku, 0.0) - qty

        materials = [received_by_sku[sku] for sku in required if sku in received_by_sku]
        if not materials:
            materials = [
                ReceivedMaterial(
                    sku=m.material_sku,
                    name=m.material_name,
                    qty_received=required[m.material_sku],
                )
                for m in bom.materials
            ]

        payload = ReleaseWorkOrderPayload(
            work_order_id=work_order.id,
            wo_number=work_order.wo_number,
            finished_sku=work_order.finished_sku,
            finished_name=work_order.finished_name,
            materials_received=materials,
            can_now_proceed=True,
            blocked_since=work_order.updated_at,
            source_po_number=snapshot.po_number,
        )
        material_names = ", ".join(m.name for m in materials)
        candidates.append(
            SuggestionCandidate(
                tenant_id=snapshot.tenant_id,
                type="release_wo",
                source_module="inbound",
                target_module="production",
                root_cause_key=root_cause_key(work_order.id),
                title=f"Release {work_order.wo_number}: materials available",
                description=(
                    f"All materials for {work_order.wo_number} ({work_order.qty_remaining} x "
                    f"{work_order.finished_name}) are now available: {material_names}."
                ),
                payload=payload,
                related_ids=RelatedIds(work_order_id=work_order.id, po_id=snapshot.po_id),
                urgency=UrgencySignals(
                    days_remaining=(work_order.scheduled_start - snapshot.today).days,
                    severity=WORK_ORDER_PRIORITY_SEVERITY.get(work_order.priority),
                ),
            )
        )

    return candidates
