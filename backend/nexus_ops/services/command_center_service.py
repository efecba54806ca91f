"""Command Center Query Layer

UI가 소비하는 읽기 전용 집계. 매 호출마다 저장소 현재 내용으로 계산한다.
"""

from dataclasses import dataclass, field

from nexus_ops.core.errors import NotFound
from nexus_ops.models.suggestion import (
    PRIORITY_RANK,
    SUGGESTION_MODULES,
    SUGGESTION_TYPES,
    Suggestion,
)
from nexus_ops.repositories.document_store import IDocumentStore
from nexus_ops.repositories.suggestion_repository import SuggestionRepository


@dataclass
class SuggestionFilter:
    """목록 필터 (status 기본값 pending)"""

    type: str | None = None
    source_module: str | None = None
    priority: str | None = None
    status: str | None = "pending"


@dataclass
class SuggestionCounts:
    """pending 제안 기준 집계"""

    total: int = 0
    pending: int = 0
    critical: int = 0
    by_type: dict[str, int] = field(default_factory=lambda: dict.fromkeys(SUGGESTION_TYPES, 0))
    by_module: dict[str, int] = field(
        default_factory=lambda: dict.fromkeys(SUGGESTION_MODULES, 0)
    )


def sort_suggestions(suggestions: list[Suggestion]) -> list[Suggestion]:
    """priority 내림차순, created_at 내림차순"""
    return sorted(
        suggestions,
        key=lambda s: (PRIORITY_RANK[s.priority], s.created_at.timestamp()),
        reverse=True,
    )


class CommandCenterService:
    """제안 목록/카운트 조회"""

    def __init__(self, store: IDocumentStore):
        self.repository = SuggestionRepository(store)

    async def list_suggestions(
        self, tenant_id: str, filters: SuggestionFilter | None = None
    ) -> list[Suggestion]:
        filters = filters or SuggestionFilter()
        suggestions = await self.repository.list_suggestions(
            tenant_id,
            status=filters.status,
            suggestion_type=filters.type,
            source_module=filters.source_module,
            priority=filters.priority,
        )
        return sort_suggestions(suggestions)

    async def get_suggestion(self, tenant_id: str, suggestion_id: str) -> Suggestion:
        suggestion = await self.repository.get(tenant_id, suggestion_id)
        if suggestion is None:
            raise NotFound(f"Suggestion {suggestion_id} not found")
        return suggestion

    async def get_counts(self, tenant_id: str) -> SuggestionCounts:
        counts = SuggestionCounts()
        for suggestion in await self.repository.list_suggestions(tenant_id, status="pending"):
            counts.total += 1
            counts.pending += 1
            if suggestion.priority == "critical":
                counts.critical += 1
            counts.by_type[suggestion.type] += 1
            counts.by_module[suggestion.source_module] += 1
        return counts

    async def get_command_center_data(
        self, tenant_id: str, filters: SuggestionFilter | None = None
    ) -> tuple[list[Suggestion], SuggestionCounts]:
        """목록 + 카운트 한 번에"""
        return (
            await self.list_suggestions(tenant_id, filters),
            await self.get_counts(tenant_id),
        )
