"""Suggestion Orchestrator

모듈 쓰기 경로의 트리거 지점. 자기 쓰기를 마친 뒤 디텍터 실행을 예약만 하고,
예약 실패는 SchedulingFailure로 로깅할 뿐 호출자에게 전파하지 않는다.
"""

import logging
from typing import Any

from nexus_ops.core.config import Settings, get_settings
from nexus_ops.core.errors import SchedulingFailure
from nexus_ops.core.telemetry import record_counter
from nexus_ops.infrastructure.scheduler import TaskScheduler, get_task_scheduler

logger = logging.getLogger(__name__)

# 태스크 이름 (arq 함수명과 동일)
DETECT_PRODUCTION_NEED = "detect_production_need"
DETECT_PURCHASE_NEED = "detect_purchase_need"
DETECT_RELEASE_READY = "detect_release_ready"
DETECT_FORECAST_CASCADE = "detect_forecast_cascade"

# 이 상태로 바뀐 작업지시는 자재 소요를 다시 계산한다
MATERIAL_PLANNING_WO_STATUSES = frozenset({"scheduled", "released", "waiting_on_materials"})

# 이 상태로 바뀐 발주서는 입고분이 생긴 것으로 본다
RECEIVED_PO_STATUSES = frozenset({"partial", "closed"})


class SuggestionOrchestrator:
    def __init__(self, scheduler: TaskScheduler, settings: Settings | None = None):
        self.scheduler = scheduler
        self.settings = settings or get_settings()

    async def schedule(self, handler: str, tenant_id: str, **kwargs: Any) -> bool:
        """디텍터 실행 예약 (실패 시 False, 예외 없음)"""
        try:
            await self.scheduler.schedule_after(
                self.settings.detector_delay_ms, handler, tenant_id=tenant_id, **kwargs
            )
            return True
        except Exception as e:
            failure = SchedulingFailure(f"{handler} could not be scheduled: {e}")
            logger.error(
                f"Detector scheduling failed: tenant={tenant_id}, handler={handler}, "
                f"args={kwargs}, error={failure.message}"
            )
            record_counter("scheduling_failures", {"handler": handler})
            return False

    # =========================================================================
    # Trigger points
    # =========================================================================

    async def order_created(self, tenant_id: str, order_id: str) -> bool:
        return await self.schedule(DETECT_PRODUCTION_NEED, tenant_id, order_id=order_id)

    async def work_order_status_changed(
        self, tenant_id: str, work_order_id: str, status: str
    ) -> bool:
        if status not in MATERIAL_PLANNING_WO_STATUSES:
            return False
        return await self.schedule(DETECT_PURCHASE_NEED, tenant_id, work_order_id=work_order_id)

    async def work_order_suggested(self, tenant_id: str, suggestion_id: str) -> bool:
        """work_order 제안이 생기면 그 후보 작업지시의 자재 소요를 검사"""
        return await self.schedule(DETECT_PURCHASE_NEED, tenant_id, suggestion_id=suggestion_id)

    async def purchase_order_status_changed(self, tenant_id: str, po_id: str, status: str) -> bool:
        if status not in RECEIVED_PO_STATUSES:
            return False
        return await self.schedule(DETECT_RELEASE_READY, tenant_id, po_id=po_id)

    async def forecast_revised(self, tenant_id: str, plan_id: str, previous_qty: int) -> bool:
        return await self.schedule(
            DETECT_FORECAST_CASCADE, tenant_id, plan_id=plan_id, previous_qty=previous_qty
        )


_orchestrator: SuggestionOrchestrator | None = None


def get_orchestrator() -> SuggestionOrchestrator:
    """설정된 TaskScheduler를 쓰는 Orchestrator 싱글톤"""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = SuggestionOrchestrator(get_task_scheduler())
    return _orchestrator
