"""ARQ(Redis) 기반 TaskScheduler"""

import logging
from datetime import timedelta
from typing import Any
from urllib.parse import urlparse

from arq import ArqRedis, create_pool
from arq.connections import RedisSettings

from nexus_ops.core.config import get_settings
from nexus_ops.core.telemetry import get_command_center_metrics

logger = logging.getLogger(__name__)


def get_redis_settings() -> RedisSettings:
    """arq_redis_url -> RedisSettings"""
    settings = get_settings()
    parsed = urlparse(settings.arq_redis_url)

    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(parsed.path.lstrip("/") or "0"),
        password=parsed.password,
    )


async def get_arq_pool() -> ArqRedis:
    """ARQ Redis 연결 풀"""
    return await create_pool(get_redis_settings())


class ArqTaskScheduler:
    """arq enqueue_job으로 디텍터 태스크 예약"""

    async def schedule_after(self, delay_ms: int, handler: str, **kwargs: Any) -> None:
        pool = await get_arq_pool()
        try:
            await pool.enqueue_job(
                handler,
                _defer_by=timedelta(milliseconds=delay_ms) if delay_ms > 0 else None,
                **kwargs,
            )
        finally:
            await pool.close()

        metrics = get_command_center_metrics()
        if metrics:
            metrics.arq_task_enqueue_total.add(1, {"task_name": handler})

        logger.info(f"{handler} enqueued: tenant={kwargs.get('tenant_id')}, delay_ms={delay_ms}")
