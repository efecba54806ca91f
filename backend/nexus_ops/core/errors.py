"""Command Center 에러 분류

모든 에러는 ValueError 하위 클래스이며 str(e)가 에러 코드를 반환한다.
엔드포인트는 handle_service_error로 코드를 HTTP 응답에 매핑한다.
메시지에는 호출한 테넌트 자신의 식별자만 포함한다.
"""


class CommandCenterError(ValueError):
    """Command Center 기본 에러"""

    code = "COMMAND_CENTER_ERROR"

    def __init__(self, message: str = "", code: str | None = None):
        self.code = code or self.code
        self.message = message
        super().__init__(self.code)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class InvalidTransition(CommandCenterError):
    """pending이 아닌 제안에 대한 accept/dismiss"""

    code = "INVALID_TRANSITION"


class NotFound(CommandCenterError):
    """제안 또는 대상 모듈 엔티티 미존재 (타 테넌트 소유 포함)"""

    code = "NOT_FOUND"


class ExecutionFailure(CommandCenterError):
    """Accept 시 대상 모듈 쓰기 실패. 제안은 pending으로 유지된다."""

    code = "EXECUTION_FAILURE"


class SchedulingFailure(CommandCenterError):
    """디텍터 실행 예약 실패. 로깅만 하고 호출자에게 전파하지 않는다."""

    code = "SCHEDULING_FAILURE"


class ValidationError(CommandCenterError):
    """후보 제안/페이로드 필수값 검증 실패"""

    code = "VALIDATION_ERROR"
