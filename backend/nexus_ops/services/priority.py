"""Priority Calculator

urgency 신호를 tier로 변환한다. 여러 신호가 있으면 가장 긴급한 tier가 이긴다.
"""

from nexus_ops.core.config import Settings, get_settings
from nexus_ops.models.suggestion import SuggestionPriority, UrgencySignals, max_priority

# 상위 모듈 긴급도 -> severity
ORDER_PRIORITY_SEVERITY: dict[str, SuggestionPriority] = {
    "next_day": "critical",
    "express": "high",
}
WORK_ORDER_PRIORITY_SEVERITY: dict[str, SuggestionPriority] = {
    "rush": "critical",
    "high": "high",
}

# severity 만으로 보장되는 최소 tier
SEVERITY_FLOOR: dict[str, SuggestionPriority] = {
    "critical": "high",
    "high": "medium",
}


class PriorityCalculator:
    """urgency 신호 -> priority tier"""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def score(self, signals: UrgencySignals) -> SuggestionPriority:
        return max_priority(
            self._from_days(signals.days_remaining),
            self._from_severity(signals),
            self._from_percent_change(signals.percent_change),
        )

    def _from_days(self, days_remaining: int | None) -> SuggestionPriority | None:
        if days_remaining is None:
            return None
        if days_remaining <= 0:
            return "critical"
        if days_remaining <= self.settings.priority_high_window_days:
            return "high"
        if days_remaining <= self.settings.priority_medium_window_days:
            return "medium"
        return "low"

    def _from_severity(self, signals: UrgencySignals) -> SuggestionPriority | None:
        if signals.severity is None:
            return None
        if (
            signals.severity in ("critical", "high")
            and signals.quantity_gap is not None
            and signals.full_requirement is not None
            and signals.quantity_gap > signals.full_requirement
        ):
            return "critical"
        return SEVERITY_FLOOR.get(signals.severity)

    def _from_percent_change(self, percent_change: float | None) -> SuggestionPriority | None:
        if percent_change is None:
            return None
        magnitude = abs(percent_change)
        if magnitude >= self.settings.forecast_high_pct:
            return "high"
        if magnitude >= self.settings.forecast_medium_pct:
            return "medium"
        return "low"
