# scheduler 패키지
import logging

from nexus_ops.core.config import get_settings

from .base import TaskScheduler
from .inline import InlineTaskScheduler

logger = logging.getLogger(__name__)

# 싱글톤 인스턴스
_task_scheduler: TaskScheduler | None = None


def get_task_scheduler() -> TaskScheduler:
    """TaskScheduler 싱글톤 반환

    scheduler_backend=arq 이면 ArqTaskScheduler,
    inline 이면 프로세스 내 DetectorHandlers를 등록한 InlineTaskScheduler
    """
    global _task_scheduler
    if _task_scheduler is not None:
        return _task_scheduler

    if get_settings().scheduler_backend == "arq":
        from .arq_scheduler import ArqTaskScheduler

        _task_scheduler = ArqTaskScheduler()
        logger.info("ArqTaskScheduler 초기화")
    else:
        from nexus_ops.workers.handlers import DetectorHandlers

        scheduler = InlineTaskScheduler(eager=True)
        scheduler.register(DetectorHandlers().registry())
        _task_scheduler = scheduler
        logger.info("InlineTaskScheduler 초기화 (eager)")

    return _task_scheduler


__all__ = [
    "InlineTaskScheduler",
    "TaskScheduler",
    "get_task_scheduler",
]
