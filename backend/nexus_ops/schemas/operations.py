"""모듈 트리거 지점 스키마 (주문 생성, 작업지시/발주서 상태, 예측 변경)"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from nexus_ops.models.operations import POStatus, WorkOrderStatus


class OrderLineRequest(BaseModel):
    sku: str
    description: str = ""
    qty_ordered: int = Field(gt=0, alias="qtyOrdered", serialization_alias="qtyOrdered")
    unit_price: float = Field(default=0.0, ge=0, alias="unitPrice", serialization_alias="unitPrice")

    class Config:
        populate_by_name = True


class CreateOrderRequest(BaseModel):
    """출고 주문 생성 요청"""

    order_number: str = Field(alias="orderNumber", serialization_alias="orderNumber")
    customer_name: str = Field(alias="customerName", serialization_alias="customerName")
    priority: Literal["standard", "express", "next_day"] = "standard"
    requested_ship_date: date = Field(
        alias="requestedShipDate", serialization_alias="requestedShipDate"
    )
    lines: list[OrderLineRequest] = Field(min_length=1)

    class Config:
        populate_by_name = True


class OrderResponse(BaseModel):
    """출고 주문 응답"""

    id: str
    order_number: str = Field(serialization_alias="orderNumber")
    customer_name: str = Field(serialization_alias="customerName")
    priority: str
    status: str
    requested_ship_date: date = Field(serialization_alias="requestedShipDate")

    class Config:
        populate_by_name = True
        from_attributes = True


class UpdateWorkOrderStatusRequest(BaseModel):
    """작업지시 상태 변경 요청"""

    status: WorkOrderStatus


class WorkOrderResponse(BaseModel):
    """작업지시 응답"""

    id: str
    wo_number: str = Field(serialization_alias="woNumber")
    finished_sku: str = Field(serialization_alias="finishedSku")
    qty_planned: int = Field(serialization_alias="qtyPlanned")
    status: str
    priority: str
    scheduled_start: date = Field(serialization_alias="scheduledStart")
    scheduled_end: date = Field(serialization_alias="scheduledEnd")

    class Config:
        populate_by_name = True
        from_attributes = True


class UpdatePurchaseOrderStatusRequest(BaseModel):
    """발주서 상태 변경 요청

    received: 라인 ID별 누적 입고 수량
    """

    status: POStatus
    received: dict[str, float] | None = None


class PurchaseOrderResponse(BaseModel):
    """발주서 응답"""

    id: str
    po_number: str = Field(serialization_alias="poNumber")
    status: str

    class Config:
        populate_by_name = True
        from_attributes = True


class ReviseForecastRequest(BaseModel):
    """예측 upsert 요청"""

    sku: str
    period_start: str = Field(
        pattern=r"^\d{4}-(0[1-9]|1[0-2])$", alias="periodStart", serialization_alias="periodStart"
    )
    plan_qty: int = Field(ge=0, alias="planQty", serialization_alias="planQty")
    customer_id: str | None = Field(
        default=None, alias="customerId", serialization_alias="customerId"
    )
    customer_name: str | None = Field(
        default=None, alias="customerName", serialization_alias="customerName"
    )

    class Config:
        populate_by_name = True


class ForecastResponse(BaseModel):
    """예측 응답"""

    id: str
    sku: str
    period_start: str = Field(serialization_alias="periodStart")
    plan_qty: int = Field(serialization_alias="planQty")
    previous_qty: int = Field(serialization_alias="previousQty")

    class Config:
        populate_by_name = True
