"""Suggestion 생성 서비스

후보 -> 검증 -> 중복 게이트 -> 우선순위 -> pending 삽입.
"""

import logging
from datetime import datetime, timedelta, timezone

from nexus_ops.core.config import Settings, get_settings
from nexus_ops.core.telemetry import record_counter
from nexus_ops.models.suggestion import Suggestion, SuggestionCandidate
from nexus_ops.repositories.document_store import IDocumentStore
from nexus_ops.repositories.suggestion_repository import (
    SuggestionRepository,
    validate_candidate,
)
from nexus_ops.services.dedup_gate import DeduplicationGate
from nexus_ops.services.priority import PriorityCalculator

logger = logging.getLogger(__name__)


class SuggestionService:
    """후보 제안 제출"""

    def __init__(self, store: IDocumentStore, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.repository = SuggestionRepository(store)
        self.gate = DeduplicationGate(self.repository)
        self.calculator = PriorityCalculator(self.settings)

    def expiry_for(self, suggestion_type: str, created_at: datetime) -> datetime:
        days = getattr(self.settings, f"expiry_days_{suggestion_type}")
        return created_at + timedelta(days=days)

    async def submit(
        self, candidate: SuggestionCandidate, now: datetime | None = None
    ) -> Suggestion | None:
        """후보 제안 삽입

        Returns:
            생성된 pending 제안. 같은 원인의 pending 제안이 이미 있으면 None

        Raises:
            ValidationError: 필수값 누락
        """
        validate_candidate(candidate)

        if not await self.gate.admit(candidate):
            return None

        created_at = now or datetime.now(timezone.utc)
        priority = self.calculator.score(candidate.urgency)
        suggestion = await self.repository.insert_if_absent(
            candidate,
            priority=priority,
            created_at=created_at,
            expires_at=self.expiry_for(candidate.type, created_at),
        )
        if suggestion is None:
            # 게이트 통과 후 동시 실행이 먼저 삽입한 경우
            self.gate.discard(candidate)
            return None

        record_counter(
            "suggestions_created", {"type": suggestion.type, "priority": suggestion.priority}
        )
        logger.info(
            f"Suggestion created: tenant={suggestion.tenant_id}, id={suggestion.id}, "
            f"type={suggestion.type}, priority={suggestion.priority}"
        )
        return suggestion
