"""In-process TaskScheduler

Redis 없이 디텍터를 같은 프로세스에서 실행한다.
- eager=False (테스트): 큐에 쌓아두고 drain()으로 실행, history에 예약 기록
- eager=True (로컬 실행): asyncio 태스크로 즉시 예약
"""

import asyncio
import logging
from collections import deque
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

Handler = Callable[..., Awaitable[Any]]


class InlineTaskScheduler:
    def __init__(self, handlers: dict[str, Handler] | None = None, eager: bool = False):
        self.handlers: dict[str, Handler] = dict(handlers or {})
        self.eager = eager
        self.queue: deque[tuple[str, dict[str, Any]]] = deque()
        self.history: list[tuple[str, dict[str, Any]]] = []
        self._tasks: set[asyncio.Task] = set()

    def register(self, handlers: dict[str, Handler]) -> None:
        self.handlers.update(handlers)

    async def schedule_after(self, delay_ms: int, handler: str, **kwargs: Any) -> None:
        if handler not in self.handlers:
            raise KeyError(f"Unknown handler: {handler}")

        if not self.eager:
            self.history.append((handler, kwargs))
            self.queue.append((handler, kwargs))
            return

        task = asyncio.create_task(self._run_later(delay_ms, handler, kwargs))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_later(self, delay_ms: int, handler: str, kwargs: dict[str, Any]) -> None:
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)
        await self._run(handler, kwargs)

    async def _run(self, handler: str, kwargs: dict[str, Any]) -> None:
        try:
            await self.handlers[handler](**kwargs)
        except Exception:
            logger.exception(f"Inline task failed: {handler}")

    async def drain(self) -> int:
        """큐가 빌 때까지 실행 (실행 중 추가된 태스크 포함). 실행한 태스크 수 반환"""
        executed = 0
        while self.queue or self._tasks:
            if self.queue:
                handler, kwargs = self.queue.popleft()
                await self._run(handler, kwargs)
                executed += 1
            else:
                running = list(self._tasks)
                await asyncio.gather(*running)
                self._tasks.difference_update(running)
        return executed
