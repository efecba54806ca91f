"""OpenTelemetry 계측 설정

Backend와 ARQ Worker에서 공통으로 사용하는 OTel 초기화 로직과
Command Center 전용 메트릭을 제공합니다.
"""

from __future__ import annotations

import logging
import os
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.semconv.resource import ResourceAttributes

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

T = TypeVar("T")


def init_telemetry(
    service_name: str,
    service_version: str = "0.1.0",
    otlp_endpoint: str | None = None,
) -> tuple[trace.Tracer, metrics.Meter]:
    """OpenTelemetry 초기화

    Args:
        service_name: 서비스 이름 (예: "nexus-backend", "nexus-arq-worker")
        service_version: 서비스 버전
        otlp_endpoint: OTLP 수신 엔드포인트 (기본값: OTEL_EXPORTER_OTLP_ENDPOINT 환경변수)

    Returns:
        (Tracer, Meter) 튜플
    """
    endpoint = otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")

    resource = Resource.create(
        {
            ResourceAttributes.SERVICE_NAME: service_name,
            ResourceAttributes.SERVICE_VERSION: service_version,
            ResourceAttributes.DEPLOYMENT_ENVIRONMENT: os.getenv("APP_ENV", "development"),
        }
    )

    tracer_provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(tracer_provider)

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=endpoint, insecure=True),
        export_interval_millis=10000,
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)

    tracer = trace.get_tracer(service_name, service_version)
    meter = metrics.get_meter(service_name, service_version)

    logger.info(
        "Telemetry initialized: service=%s, endpoint=%s",
        service_name,
        endpoint,
    )

    return tracer, meter


def instrument_fastapi(app: FastAPI) -> None:
    """FastAPI 자동 계측"""
    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")
    except Exception as e:
        logger.warning("Failed to instrument FastAPI: %s", e)


# ===========================================
# Command Center 전용 메트릭
# ===========================================


class CommandCenterMetrics:
    """Command Center 커스텀 메트릭"""

    def __init__(self, meter: metrics.Meter):
        self.meter = meter
        self._init_suggestion_metrics()
        self._init_arq_metrics()

    def _init_suggestion_metrics(self) -> None:
        """제안 생성/중복/전이 메트릭"""
        self.suggestions_created = self.meter.create_counter(
            name="nexus_suggestions_created_total",
            description="생성된 pending 제안 수",
        )
        self.suggestions_deduplicated = self.meter.create_counter(
            name="nexus_suggestions_deduplicated_total",
            description="중복 게이트에서 버려진 후보 수",
        )
        self.suggestion_transitions = self.meter.create_counter(
            name="nexus_suggestion_transitions_total",
            description="제안 상태 전이 수 (accepted/dismissed/expired)",
        )
        self.scheduling_failures = self.meter.create_counter(
            name="nexus_detector_scheduling_failures_total",
            description="디텍터 예약 실패 수",
        )

    def _init_arq_metrics(self) -> None:
        """ARQ 태스크 메트릭"""
        self.arq_task_enqueue_total = self.meter.create_counter(
            name="nexus_arq_task_enqueue_total",
            description="ARQ 태스크 enqueue 수",
        )
        self.arq_task_duration = self.meter.create_histogram(
            name="nexus_arq_task_duration_seconds",
            description="ARQ 태스크 실행 시간",
            unit="s",
        )
        self.arq_task_result = self.meter.create_counter(
            name="nexus_arq_task_result_total",
            description="ARQ 태스크 결과 (success/failed)",
        )


# ===========================================
# 싱글톤 인스턴스 및 접근자
# ===========================================

_tracer: trace.Tracer | None = None
_meter: metrics.Meter | None = None
_metrics: CommandCenterMetrics | None = None
_initialized: bool = False


def get_tracer() -> trace.Tracer:
    """Tracer 인스턴스 반환 (초기화 안 된 경우 noop tracer 반환)"""
    if _tracer is None:
        return trace.get_tracer("nexus-noop")
    return _tracer


def get_command_center_metrics() -> CommandCenterMetrics | None:
    """Command Center 메트릭 인스턴스 반환 (초기화 안 된 경우 None)"""
    return _metrics


def record_counter(name: str, attributes: dict[str, str] | None = None) -> None:
    """카운터 1 증가 (telemetry 미초기화 시 무시)"""
    cc_metrics = get_command_center_metrics()
    if cc_metrics is None:
        return
    getattr(cc_metrics, name).add(1, attributes or {})


def setup_telemetry(service_name: str, service_version: str = "0.1.0") -> None:
    """전역 telemetry 설정 (애플리케이션 시작 시 호출)"""
    global _tracer, _meter, _metrics, _initialized

    if _initialized:
        logger.warning("Telemetry already initialized, skipping")
        return

    _tracer, _meter = init_telemetry(service_name, service_version)
    _metrics = CommandCenterMetrics(_meter)
    _initialized = True


def traced_function(
    span_name: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """async 함수를 OTel span으로 래핑하는 데코레이터

    Usage:
        @traced_function("command_center.accept")
        async def accept(...):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = span_name or func.__name__

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            tracer = get_tracer()
            with tracer.start_as_current_span(name) as span:
                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                    raise

        return wrapper  # type: ignore

    return decorator
