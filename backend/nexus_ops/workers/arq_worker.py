"""ARQ Worker 설정 및 태스크 정의 (OTel 계측 포함)"""

import logging
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from arq import cron
from opentelemetry import trace

from nexus_ops.core.config import get_settings
from nexus_ops.core.telemetry import get_command_center_metrics, get_tracer, setup_telemetry
from nexus_ops.infrastructure.scheduler.arq_scheduler import get_redis_settings
from nexus_ops.workers.handlers import DetectorHandlers

logger = logging.getLogger(__name__)

T = TypeVar("T")

handlers = DetectorHandlers()


def traced_task(task_name: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """ARQ 태스크에 OTel 트레이싱 + 메트릭 추가 데코레이터"""

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(ctx: dict, *args: Any, **kwargs: Any) -> T:
            tracer = get_tracer()
            metrics = get_command_center_metrics()

            with tracer.start_as_current_span(
                f"arq.task.{task_name}",
                kind=trace.SpanKind.CONSUMER,
            ) as span:
                span.set_attribute("arq.task.name", task_name)
                if "tenant_id" in kwargs:
                    span.set_attribute("tenant.id", kwargs["tenant_id"])

                start_time = time.perf_counter()
                try:
                    result = await func(ctx, *args, **kwargs)
                    span.set_attribute("arq.task.status", "success")
                    if metrics:
                        metrics.arq_task_result.add(
                            1, {"task_name": task_name, "status": "success"}
                        )
                    return result

                except Exception as e:
                    span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    if metrics:
                        metrics.arq_task_result.add(
                            1, {"task_name": task_name, "status": "failed"}
                        )
                    raise

                finally:
                    duration = time.perf_counter() - start_time
                    if metrics:
                        metrics.arq_task_duration.record(duration, {"task_name": task_name})

        return wrapper  # type: ignore

    return decorator


@traced_task("detect_production_need")
async def detect_production_need(ctx: dict, tenant_id: str, order_id: str) -> dict:
    """출고 주문 -> 작업지시 제안"""
    created = await handlers.detect_production_need(tenant_id, order_id)
    logger.info(f"[detect_production_need] tenant={tenant_id}, order={order_id}, created={created}")
    return {"status": "success", "created": created}


@traced_task("detect_purchase_need")
async def detect_purchase_need(
    ctx: dict,
    tenant_id: str,
    work_order_id: str | None = None,
    suggestion_id: str | None = None,
) -> dict:
    """작업지시(기존/후보) -> 발주 제안"""
    created = await handlers.detect_purchase_need(
        tenant_id, work_order_id=work_order_id, suggestion_id=suggestion_id
    )
    logger.info(
        f"[detect_purchase_need] tenant={tenant_id}, work_order={work_order_id}, "
        f"suggestion={suggestion_id}, created={created}"
    )
    return {"status": "success", "created": created}


@traced_task("detect_release_ready")
async def detect_release_ready(ctx: dict, tenant_id: str, po_id: str | None = None) -> dict:
    """입고 -> 작업지시 릴리즈 제안"""
    created = await handlers.detect_release_ready(tenant_id, po_id=po_id)
    logger.info(f"[detect_release_ready] tenant={tenant_id}, po={po_id}, created={created}")
    return {"status": "success", "created": created}


@traced_task("detect_forecast_cascade")
async def detect_forecast_cascade(
    ctx: dict, tenant_id: str, plan_id: str, previous_qty: int
) -> dict:
    """예측 변경 -> 파급 제안"""
    created = await handlers.detect_forecast_cascade(tenant_id, plan_id, previous_qty)
    logger.info(f"[detect_forecast_cascade] tenant={tenant_id}, plan={plan_id}, created={created}")
    return {"status": "success", "created": created}


@traced_task("expire_stale_suggestions")
async def expire_stale_suggestions(ctx: dict) -> dict:
    """만료 스윕 (cron)"""
    expired = await handlers.expire_stale_suggestions()
    logger.info(f"[expire_stale_suggestions] expired={expired}")
    return {"status": "success", "expired": expired}


async def startup(ctx: dict) -> None:
    """Worker 시작 시 Telemetry 초기화"""
    setup_telemetry("nexus-arq-worker", "0.1.0")
    logger.info("ARQ Worker started with telemetry")


async def shutdown(ctx: dict) -> None:
    """Worker 종료 시 정리"""
    logger.info("ARQ Worker shutting down")


class WorkerSettings:
    """ARQ Worker 설정"""

    # 등록된 태스크 함수
    functions = [
        detect_production_need,
        detect_purchase_need,
        detect_release_ready,
        detect_forecast_cascade,
    ]

    # 매시 expiry_sweep_minute 분에 만료 스윕
    cron_jobs = [
        cron(expire_stale_suggestions, minute=get_settings().expiry_sweep_minute),
    ]

    # Redis 연결 설정 (arq는 인스턴스를 기대)
    redis_settings = get_redis_settings()

    # 라이프사이클 콜백
    on_startup = startup
    on_shutdown = shutdown

    # Worker 설정
    max_tries = 1                    # 재시도 없음
    job_timeout = 300                # 작업 타임아웃 (5분)
    keep_result = 3600               # 결과 보관 시간 (1시간)
    health_check_interval = 60       # 헬스체크 간격 (60초)
