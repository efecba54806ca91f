"""공유 API dependencies - 엔드포인트 간 중복 제거"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from nexus_ops.core.errors import CommandCenterError
from nexus_ops.repositories.document_store import IDocumentStore, document_store_scope
from nexus_ops.services.command_center_service import CommandCenterService
from nexus_ops.services.inbound_service import InboundService
from nexus_ops.services.lifecycle import LifecycleManager
from nexus_ops.services.orchestrator import SuggestionOrchestrator, get_orchestrator
from nexus_ops.services.outbound_service import OutboundService
from nexus_ops.services.plan_service import PlanService
from nexus_ops.services.production_service import ProductionService

# ===== Tenant / Actor =====


async def get_tenant_id(
    x_tenant_id: Annotated[str | None, Header(alias="X-Tenant-ID")] = None,
) -> str:
    """요청 테넌트 (모든 코어 호출에 명시적으로 전달)"""
    if not x_tenant_id or not x_tenant_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "TENANT_REQUIRED", "message": "X-Tenant-ID header is required"},
        )
    return x_tenant_id.strip()


async def get_actor_id(
    x_user_id: Annotated[str | None, Header(alias="X-User-ID")] = None,
) -> str | None:
    """accept/dismiss 수행자 (감사 기록용, 선택)"""
    return x_user_id


# ===== Document Store =====


async def get_document_store() -> AsyncGenerator[IDocumentStore, None]:
    """요청 단위 문서 저장소 (sql 백엔드는 정상 종료 시 커밋, 예외 시 롤백)"""
    async with document_store_scope() as store:
        yield store


StoreDep = Annotated[IDocumentStore, Depends(get_document_store)]
TenantDep = Annotated[str, Depends(get_tenant_id)]


# ===== Service Dependencies =====


def get_suggestion_orchestrator() -> SuggestionOrchestrator:
    return get_orchestrator()


OrchestratorDep = Annotated[SuggestionOrchestrator, Depends(get_suggestion_orchestrator)]


def get_command_center_service(store: StoreDep) -> CommandCenterService:
    return CommandCenterService(store)


def get_lifecycle_manager(store: StoreDep) -> LifecycleManager:
    return LifecycleManager(store)


def get_outbound_service(store: StoreDep, orchestrator: OrchestratorDep) -> OutboundService:
    return OutboundService(store, orchestrator)


def get_production_service(store: StoreDep, orchestrator: OrchestratorDep) -> ProductionService:
    return ProductionService(store, orchestrator)


def get_inbound_service(store: StoreDep, orchestrator: OrchestratorDep) -> InboundService:
    return InboundService(store, orchestrator)


def get_plan_service(store: StoreDep, orchestrator: OrchestratorDep) -> PlanService:
    return PlanService(store, orchestrator)


# ===== Service Error Handling =====

# 서비스 레이어에서 발생하는 에러 코드와 HTTP 응답 매핑
# (status_code, error_code, message)
SERVICE_ERROR_MAPPING: dict[str, tuple[int, str, str]] = {
    "NOT_FOUND": (404, "NOT_FOUND", "Resource not found"),
    "INVALID_TRANSITION": (409, "INVALID_TRANSITION", "Suggestion is no longer pending"),
    "EXECUTION_FAILURE": (502, "EXECUTION_FAILURE", "Target module write failed"),
    "VALIDATION_ERROR": (422, "VALIDATION_ERROR", "Validation error"),
    "SCHEDULING_FAILURE": (503, "SCHEDULING_FAILURE", "Detector scheduling failed"),
}


def handle_service_error(error: ValueError, default_message: str = "Validation error") -> None:
    """서비스 레이어 에러를 HTTPException으로 변환

    Args:
        error: 서비스에서 발생한 ValueError (에러 코드가 str로 전달됨)
        default_message: 매핑되지 않은 에러의 기본 메시지

    Raises:
        HTTPException: 매핑된 HTTP 에러 응답
    """
    error_code = str(error)

    if error_code in SERVICE_ERROR_MAPPING:
        status_code, code, message = SERVICE_ERROR_MAPPING[error_code]
        if isinstance(error, CommandCenterError) and error.message:
            message = error.message
        raise HTTPException(
            status_code=status_code,
            detail={"error": code, "message": message},
        )

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "VALIDATION_ERROR", "message": default_message},
    )
