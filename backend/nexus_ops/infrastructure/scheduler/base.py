"""TaskScheduler 추상 인터페이스

arq/inline 구현체가 이 인터페이스를 따름
"""

from typing import Any, Protocol


class TaskScheduler(Protocol):
    """지연 태스크 예약 인터페이스 (fire-and-forget)"""

    async def schedule_after(self, delay_ms: int, handler: str, **kwargs: Any) -> None:
        """delay_ms 후 handler 실행 예약

        Args:
            delay_ms: 지연 시간 (밀리초)
            handler: 등록된 태스크 이름 (예: "detect_production_need")
            **kwargs: 태스크 인자 (JSON 호환 값만)

        Raises:
            Exception: 예약 실패 (호출자가 로깅 후 흡수)
        """
        ...
