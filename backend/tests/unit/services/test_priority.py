"""PriorityCalculator 단위 테스트

테스트 케이스:
- 남은 일수 구간 (<=0 critical, <=3 high, <=10 medium, 그 외 low)
- severity 하한 및 전체 소요 초과 시 critical
- 예측 변경률 구간
- 여러 신호 중 최대 tier
- 남은 일수가 줄어들면 tier가 낮아지지 않음
"""

import pytest

from nexus_ops.core.config import Settings
from nexus_ops.models.suggestion import PRIORITY_RANK, UrgencySignals
from nexus_ops.services.priority import PriorityCalculator


@pytest.fixture
def calculator() -> PriorityCalculator:
    return PriorityCalculator(Settings())


class TestPriorityCalculator:
    @pytest.mark.parametrize(
        ("days", "expected"),
        [
            (-5, "critical"),
            (0, "critical"),
            (1, "high"),
            (3, "high"),
            (4, "medium"),
            (10, "medium"),
            (11, "low"),
            (90, "low"),
        ],
    )
    def test_days_remaining_tiers(self, calculator, days, expected):
        assert calculator.score(UrgencySignals(days_remaining=days)) == expected

    def test_no_signals_is_low(self, calculator):
        assert calculator.score(UrgencySignals()) == "low"

    @pytest.mark.parametrize(
        ("severity", "expected"),
        [("critical", "high"), ("high", "medium"), ("medium", "low"), ("low", "low")],
    )
    def test_severity_floor(self, calculator, severity, expected):
        assert calculator.score(UrgencySignals(severity=severity)) == expected

    def test_severity_with_gap_exceeding_requirement_is_critical(self, calculator):
        """긴급 주문에서 부족분이 전체 소요를 넘으면 critical"""
        signals = UrgencySignals(severity="high", quantity_gap=120, full_requirement=100)
        assert calculator.score(signals) == "critical"

    def test_gap_within_requirement_keeps_floor(self, calculator):
        signals = UrgencySignals(severity="high", quantity_gap=100, full_requirement=100)
        assert calculator.score(signals) == "medium"

    @pytest.mark.parametrize(
        ("pct", "expected"),
        [
            (50.0, "high"),
            (-60.0, "high"),
            (20.0, "medium"),
            (-35.5, "medium"),
            (19.9, "low"),
            (11.0, "low"),
        ],
    )
    def test_percent_change_tiers(self, calculator, pct, expected):
        assert calculator.score(UrgencySignals(percent_change=pct)) == expected

    def test_most_urgent_signal_wins(self, calculator):
        """low(일수) + critical severity -> high"""
        signals = UrgencySignals(days_remaining=30, severity="critical")
        assert calculator.score(signals) == "high"

    def test_days_beat_severity_when_more_urgent(self, calculator):
        signals = UrgencySignals(days_remaining=0, severity="high")
        assert calculator.score(signals) == "critical"

    @pytest.mark.parametrize("severity", [None, "high", "critical"])
    def test_monotonic_in_days_remaining(self, calculator, severity):
        """남은 일수가 줄어들 때 priority가 낮아지지 않는다"""
        ranks = [
            PRIORITY_RANK[calculator.score(UrgencySignals(days_remaining=d, severity=severity))]
            for d in range(45, -6, -1)
        ]
        assert ranks == sorted(ranks)

    def test_custom_windows(self):
        calculator = PriorityCalculator(
            Settings(priority_high_window_days=5, priority_medium_window_days=20)
        )
        assert calculator.score(UrgencySignals(days_remaining=5)) == "high"
        assert calculator.score(UrgencySignals(days_remaining=15)) == "medium"
