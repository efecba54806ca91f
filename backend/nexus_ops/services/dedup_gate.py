"""Deduplication Gate

같은 (tenant, type, root_cause_key)의 pending 제안이 있으면 후보를 버린다.
여기서의 확인은 사전 필터이며, 최종 유일성은 SuggestionRepository.insert_if_absent가
잠금 아래에서 다시 확인한다.
"""

import logging

from nexus_ops.core.telemetry import record_counter
from nexus_ops.models.suggestion import SuggestionCandidate
from nexus_ops.repositories.suggestion_repository import SuggestionRepository

logger = logging.getLogger(__name__)


class DeduplicationGate:
    def __init__(self, repository: SuggestionRepository):
        self.repository = repository

    async def admit(self, candidate: SuggestionCandidate) -> bool:
        """신규 원인이면 True, 이미 pending 제안이 있으면 False"""
        existing = await self.repository.find_pending(
            candidate.tenant_id, candidate.type, candidate.root_cause_key
        )
        if existing is None:
            return True

        self.discard(candidate, existing.id)
        return False

    @staticmethod
    def discard(candidate: SuggestionCandidate, existing_id: str | None = None) -> None:
        logger.debug(
            f"Duplicate candidate discarded: tenant={candidate.tenant_id}, "
            f"type={candidate.type}, key={candidate.root_cause_key}, existing={existing_id}"
        )
        record_counter("suggestions_deduplicated", {"type": candidate.type})
