"""디텍터 태스크 본체

arq 태스크와 InlineTaskScheduler가 공유한다. 태스크마다 새 저장소 스코프를 열어
실행 시점의 최신 스냅샷을 읽는다.
"""

import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, Awaitable, Callable

from nexus_ops.repositories.document_store import IDocumentStore, document_store_scope
from nexus_ops.services.detection_service import DetectionService
from nexus_ops.services.lifecycle import LifecycleManager
from nexus_ops.services.orchestrator import (
    DETECT_FORECAST_CASCADE,
    DETECT_PRODUCTION_NEED,
    DETECT_PURCHASE_NEED,
    DETECT_RELEASE_READY,
    SuggestionOrchestrator,
    get_orchestrator,
)

logger = logging.getLogger(__name__)

StoreScope = Callable[[], AbstractAsyncContextManager[IDocumentStore]]


class DetectorHandlers:
    def __init__(
        self,
        store_scope: StoreScope = document_store_scope,
        orchestrator: SuggestionOrchestrator | None = None,
    ):
        self.store_scope = store_scope
        self._orchestrator = orchestrator

    @property
    def orchestrator(self) -> SuggestionOrchestrator:
        # inline 스케줄러 생성 중 순환을 피하기 위해 지연 조회
        return self._orchestrator or get_orchestrator()

    async def detect_production_need(self, tenant_id: str, order_id: str) -> int:
        async with self.store_scope() as store:
            service = DetectionService(store, orchestrator=self.orchestrator)
            created = await service.run_production_need(tenant_id, order_id)
        return len(created)

    async def detect_purchase_need(
        self,
        tenant_id: str,
        work_order_id: str | None = None,
        suggestion_id: str | None = None,
    ) -> int:
        async with self.store_scope() as store:
            service = DetectionService(store)
            created = await service.run_purchase_need(
                tenant_id, work_order_id=work_order_id, suggestion_id=suggestion_id
            )
        return len(created)

    async def detect_release_ready(self, tenant_id: str, po_id: str | None = None) -> int:
        async with self.store_scope() as store:
            service = DetectionService(store)
            created = await service.run_release_ready(tenant_id, po_id=po_id)
        return len(created)

    async def detect_forecast_cascade(self, tenant_id: str, plan_id: str, previous_qty: int) -> int:
        async with self.store_scope() as store:
            service = DetectionService(store)
            created = await service.run_forecast_cascade(tenant_id, plan_id, previous_qty)
        return len(created)

    async def expire_stale_suggestions(self) -> int:
        async with self.store_scope() as store:
            return await LifecycleManager(store).expire_all()

    def registry(self) -> dict[str, Callable[..., Awaitable[Any]]]:
        """태스크 이름 -> 핸들러"""
        return {
            DETECT_PRODUCTION_NEED: self.detect_production_need,
            DETECT_PURCHASE_NEED: self.detect_purchase_need,
            DETECT_RELEASE_READY: self.detect_release_ready,
            DETECT_FORECAST_CASCADE: self.detect_forecast_cascade,
        }
