"""모듈 쓰기 API (트리거 지점)

각 쓰기가 확정된 뒤 해당 디텍터 실행이 예약됩니다.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from nexus_ops.api.dependencies import (
    TenantDep,
    get_inbound_service,
    get_outbound_service,
    get_plan_service,
    get_production_service,
    handle_service_error,
)
from nexus_ops.models.operations import OutboundOrderLine
from nexus_ops.schemas import ErrorResponse
from nexus_ops.schemas.operations import (
    CreateOrderRequest,
    ForecastResponse,
    OrderResponse,
    PurchaseOrderResponse,
    ReviseForecastRequest,
    UpdatePurchaseOrderStatusRequest,
    UpdateWorkOrderStatusRequest,
    WorkOrderResponse,
)
from nexus_ops.services.inbound_service import InboundService
from nexus_ops.services.outbound_service import OutboundService
from nexus_ops.services.plan_service import PlanService
from nexus_ops.services.production_service import ProductionService

outbound_router = APIRouter(prefix="/outbound", tags=["Outbound"])
production_router = APIRouter(prefix="/production", tags=["Production"])
inbound_router = APIRouter(prefix="/inbound", tags=["Inbound"])
plan_router = APIRouter(prefix="/plan", tags=["Plan"])


@outbound_router.post(
    "/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="출고 주문 생성",
)
async def create_order(
    request: CreateOrderRequest,
    tenant_id: TenantDep,
    service: Annotated[OutboundService, Depends(get_outbound_service)],
) -> OrderResponse:
    order = await service.create_order(
        tenant_id,
        order_number=request.order_number,
        customer_name=request.customer_name,
        requested_ship_date=request.requested_ship_date,
        priority=request.priority,
        lines=[
            OutboundOrderLine(
                sku=line.sku,
                description=line.description,
                qty_ordered=line.qty_ordered,
                unit_price=line.unit_price,
            )
            for line in request.lines
        ],
    )
    return OrderResponse.model_validate(order)


@production_router.patch(
    "/work-orders/{work_order_id}/status",
    response_model=WorkOrderResponse,
    summary="작업지시 상태 변경",
    responses={404: {"model": ErrorResponse}},
)
async def update_work_order_status(
    work_order_id: str,
    request: UpdateWorkOrderStatusRequest,
    tenant_id: TenantDep,
    service: Annotated[ProductionService, Depends(get_production_service)],
) -> WorkOrderResponse:
    try:
        work_order = await service.update_work_order_status(
            tenant_id, work_order_id, request.status
        )
        return WorkOrderResponse.model_validate(work_order)
    except ValueError as e:
        handle_service_error(e)


@inbound_router.patch(
    "/purchase-orders/{po_id}/status",
    response_model=PurchaseOrderResponse,
    summary="발주서 상태 변경 / 입고 반영",
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_purchase_order_status(
    po_id: str,
    request: UpdatePurchaseOrderStatusRequest,
    tenant_id: TenantDep,
    service: Annotated[InboundService, Depends(get_inbound_service)],
) -> PurchaseOrderResponse:
    try:
        po = await service.update_purchase_order_status(
            tenant_id, po_id, request.status, received=request.received
        )
        return PurchaseOrderResponse.model_validate(po)
    except ValueError as e:
        handle_service_error(e)


@plan_router.put(
    "/forecasts",
    response_model=ForecastResponse,
    summary="예측 등록/변경",
)
async def revise_forecast(
    request: ReviseForecastRequest,
    tenant_id: TenantDep,
    service: Annotated[PlanService, Depends(get_plan_service)],
) -> ForecastResponse:
    plan, previous_qty = await service.revise_forecast(
        tenant_id,
        sku=request.sku,
        period_start=request.period_start,
        plan_qty=request.plan_qty,
        customer_id=request.customer_id,
        customer_name=request.customer_name,
    )
    return ForecastResponse(
        id=plan.id,
        sku=plan.sku,
        period_start=plan.period_start,
        plan_qty=plan.plan_qty,
        previous_qty=previous_qty,
    )
