"""Command Center API 엔드포인트

교차 모듈 제안 조회 / 수락 / 거절.
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query

from nexus_ops.api.dependencies import (
    TenantDep,
    get_actor_id,
    get_command_center_service,
    get_lifecycle_manager,
    handle_service_error,
)
from nexus_ops.models.suggestion import (
    SuggestionModule,
    SuggestionPriority,
    SuggestionStatus,
    SuggestionType,
)
from nexus_ops.schemas import ErrorResponse
from nexus_ops.schemas.command_center import (
    CommandCenterResponse,
    DismissSuggestionRequest,
    SuggestionCountsResponse,
    SuggestionListResponse,
    SuggestionResponse,
)
from nexus_ops.services.command_center_service import CommandCenterService, SuggestionFilter
from nexus_ops.services.lifecycle import LifecycleManager

router = APIRouter(prefix="/command-center", tags=["Command Center"])


def get_suggestion_filter(
    type: Annotated[SuggestionType | None, Query()] = None,
    source_module: Annotated[SuggestionModule | None, Query(alias="sourceModule")] = None,
    priority: Annotated[SuggestionPriority | None, Query()] = None,
    status: Annotated[SuggestionStatus | Literal["all"], Query()] = "pending",
) -> SuggestionFilter:
    """status=all 이면 상태 필터 없음"""
    return SuggestionFilter(
        type=type,
        source_module=source_module,
        priority=priority,
        status=None if status == "all" else status,
    )


FilterDep = Annotated[SuggestionFilter, Depends(get_suggestion_filter)]
ServiceDep = Annotated[CommandCenterService, Depends(get_command_center_service)]
LifecycleDep = Annotated[LifecycleManager, Depends(get_lifecycle_manager)]


@router.get(
    "",
    response_model=CommandCenterResponse,
    summary="Command Center 데이터",
    description="필터된 제안 목록과 카운트를 함께 조회합니다.",
)
async def get_command_center(
    tenant_id: TenantDep, filters: FilterDep, service: ServiceDep
) -> CommandCenterResponse:
    suggestions, counts = await service.get_command_center_data(tenant_id, filters)
    return CommandCenterResponse(
        suggestions=[SuggestionResponse.from_suggestion(s) for s in suggestions],
        counts=SuggestionCountsResponse.from_counts(counts),
    )


@router.get(
    "/suggestions",
    response_model=SuggestionListResponse,
    summary="제안 목록",
    description="priority 내림차순, 생성일 내림차순. status 기본값은 pending입니다.",
)
async def list_suggestions(
    tenant_id: TenantDep, filters: FilterDep, service: ServiceDep
) -> SuggestionListResponse:
    suggestions = await service.list_suggestions(tenant_id, filters)
    return SuggestionListResponse(
        suggestions=[SuggestionResponse.from_suggestion(s) for s in suggestions]
    )


@router.get(
    "/counts",
    response_model=SuggestionCountsResponse,
    summary="제안 카운트",
)
async def get_counts(tenant_id: TenantDep, service: ServiceDep) -> SuggestionCountsResponse:
    return SuggestionCountsResponse.from_counts(await service.get_counts(tenant_id))


@router.get(
    "/suggestions/{suggestion_id}",
    response_model=SuggestionResponse,
    summary="제안 상세",
    responses={404: {"model": ErrorResponse}},
)
async def get_suggestion(
    suggestion_id: str, tenant_id: TenantDep, service: ServiceDep
) -> SuggestionResponse:
    try:
        return SuggestionResponse.from_suggestion(
            await service.get_suggestion(tenant_id, suggestion_id)
        )
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "/suggestions/{suggestion_id}/accept",
    response_model=SuggestionResponse,
    summary="제안 수락",
    description="대상 모듈 쓰기를 수행하고 accepted로 전환합니다. 이미 accepted면 그대로 반환합니다.",
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def accept_suggestion(
    suggestion_id: str,
    tenant_id: TenantDep,
    lifecycle: LifecycleDep,
    actor_id: Annotated[str | None, Depends(get_actor_id)],
) -> SuggestionResponse:
    try:
        suggestion = await lifecycle.accept(tenant_id, suggestion_id, actor=actor_id)
        return SuggestionResponse.from_suggestion(suggestion)
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "/suggestions/{suggestion_id}/dismiss",
    response_model=SuggestionResponse,
    summary="제안 거절",
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def dismiss_suggestion(
    suggestion_id: str,
    tenant_id: TenantDep,
    lifecycle: LifecycleDep,
    actor_id: Annotated[str | None, Depends(get_actor_id)],
    request: DismissSuggestionRequest | None = None,
) -> SuggestionResponse:
    try:
        suggestion = await lifecycle.dismiss(
            tenant_id,
            suggestion_id,
            reason=request.reason if request else None,
            actor=actor_id,
        )
        return SuggestionResponse.from_suggestion(suggestion)
    except ValueError as e:
        handle_service_error(e)
