"""Suggestion Store

suggestion 문서의 유일한 소유자. pending 유일성
(tenant_id, type, root_cause_key)은 삽입 경로에서 잠금 + 재확인으로 보장한다.
"""

from datetime import datetime

from nexus_ops.core.errors import ValidationError
from nexus_ops.models.suggestion import (
    TYPE_ROUTES,
    Suggestion,
    SuggestionCandidate,
    SuggestionPriority,
)
from nexus_ops.repositories import collections
from nexus_ops.repositories.document_store import IDocumentStore


def dedup_lock_key(tenant_id: str, suggestion_type: str, root_cause_key: str) -> str:
    """삽입 직렬화용 lock 키"""
    return f"suggestion-dedup:{tenant_id}:{suggestion_type}:{root_cause_key}"


def transition_lock_key(suggestion_id: str) -> str:
    """상태 전이 직렬화용 lock 키"""
    return f"suggestion:{suggestion_id}"


def validate_candidate(candidate: SuggestionCandidate) -> None:
    """삽입 전 필수값 검증

    Raises:
        ValidationError: 필수값 누락 또는 type/payload/모듈 불일치
    """
    if not candidate.tenant_id:
        raise ValidationError("tenant_id is required")
    if not candidate.root_cause_key.strip():
        raise ValidationError("root_cause_key is required")
    if not candidate.title.strip():
        raise ValidationError("title is required")
    if candidate.payload.type != candidate.type:
        raise ValidationError(
            f"payload type {candidate.payload.type} does not match {candidate.type}"
        )
    if (candidate.source_module, candidate.target_module) != TYPE_ROUTES[candidate.type]:
        raise ValidationError(
            f"{candidate.type} must route {TYPE_ROUTES[candidate.type][0]} -> "
            f"{TYPE_ROUTES[candidate.type][1]}"
        )


class SuggestionRepository:
    """suggestions 컬렉션 접근 계층"""

    def __init__(self, store: IDocumentStore):
        self.store = store

    async def find_pending(
        self, tenant_id: str, suggestion_type: str, root_cause_key: str
    ) -> Suggestion | None:
        """같은 원인의 pending 제안 조회"""
        docs = await self.store.query(
            collections.SUGGESTIONS,
            tenant_id,
            where={
                "status": "pending",
                "type": suggestion_type,
                "root_cause_key": root_cause_key,
            },
            limit=1,
        )
        return Suggestion.from_document(docs[0]) if docs else None

    async def insert_if_absent(
        self,
        candidate: SuggestionCandidate,
        priority: SuggestionPriority,
        created_at: datetime,
        expires_at: datetime | None = None,
    ) -> Suggestion | None:
        """pending 제안 삽입 (원인 키 중복 시 None)

        중복 확인과 삽입은 같은 lock 아래 하나의 트랜잭션으로 실행된다.
        """
        validate_candidate(candidate)

        lock_key = dedup_lock_key(candidate.tenant_id, candidate.type, candidate.root_cause_key)
        async with self.store.transaction(lock_key=lock_key):
            existing = await self.find_pending(
                candidate.tenant_id, candidate.type, candidate.root_cause_key
            )
            if existing:
                return None

            doc = {
                "tenant_id": candidate.tenant_id,
                "type": candidate.type,
                "source_module": candidate.source_module,
                "target_module": candidate.target_module,
                "priority": priority,
                "status": "pending",
                "root_cause_key": candidate.root_cause_key,
                "title": candidate.title,
                "description": candidate.description,
                "payload": candidate.payload.model_dump(mode="json"),
                "related_ids": candidate.related_ids.model_dump(mode="json"),
                "created_at": created_at.isoformat(),
                "expires_at": expires_at.isoformat() if expires_at else None,
            }
            suggestion_id = await self.store.insert(collections.SUGGESTIONS, doc)

        return Suggestion.from_document({**doc, "id": suggestion_id})

    async def get(self, tenant_id: str, suggestion_id: str) -> Suggestion | None:
        """ID 조회 (타 테넌트 문서는 None)"""
        doc = await self.store.get(collections.SUGGESTIONS, suggestion_id)
        if not doc or doc.get("tenant_id") != tenant_id:
            return None
        return Suggestion.from_document(doc)

    async def list_suggestions(
        self,
        tenant_id: str,
        status: str | None = None,
        suggestion_type: str | None = None,
        source_module: str | None = None,
        priority: str | None = None,
    ) -> list[Suggestion]:
        """테넌트 제안 목록 (생성일 내림차순)"""
        where: dict[str, str] = {}
        if status:
            where["status"] = status
        if suggestion_type:
            where["type"] = suggestion_type
        if source_module:
            where["source_module"] = source_module
        if priority:
            where["priority"] = priority

        docs = await self.store.query(
            collections.SUGGESTIONS,
            tenant_id,
            where=where,
            order_by="created_at",
            descending=True,
        )
        return [Suggestion.from_document(d) for d in docs]

    async def update(self, suggestion: Suggestion, fields: dict) -> Suggestion:
        """필드 갱신 (Lifecycle Manager 전용)"""
        updated = suggestion.model_copy(update=fields)
        partial = {
            key: value
            for key, value in updated.to_document().items()
            if key in fields
        }
        await self.store.patch(collections.SUGGESTIONS, suggestion.id, partial)
        return updated

    async def list_tenants(self) -> list[str]:
        return await self.store.list_tenants(collections.SUGGESTIONS)
