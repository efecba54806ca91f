from fastapi import APIRouter

from nexus_ops.api.v1.endpoints import command_center, operations

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(command_center.router)

# 모듈 쓰기 (트리거 지점)
api_router.include_router(operations.outbound_router)
api_router.include_router(operations.production_router)
api_router.include_router(operations.inbound_router)
api_router.include_router(operations.plan_router)
