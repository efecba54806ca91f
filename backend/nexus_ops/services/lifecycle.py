"""Lifecycle Manager

suggestion status를 바꾸는 유일한 경로.
- pending -> accepted: Accept Executor 쓰기와 같은 트랜잭션
- pending -> dismissed: 메타데이터만 갱신
- pending -> expired: 만료 스윕
전이는 제안 단위 lock으로 직렬화되어 동시 accept/dismiss 중 하나만 성공한다.
"""

import logging
from datetime import datetime, timezone

from nexus_ops.core.errors import InvalidTransition, NotFound
from nexus_ops.core.telemetry import record_counter, traced_function
from nexus_ops.models.suggestion import Suggestion
from nexus_ops.repositories.document_store import IDocumentStore
from nexus_ops.repositories.suggestion_repository import (
    SuggestionRepository,
    transition_lock_key,
)
from nexus_ops.services.accept_executor import AcceptExecutor

logger = logging.getLogger(__name__)


class LifecycleManager:
    """accept / dismiss / expire"""

    def __init__(self, store: IDocumentStore, executor: AcceptExecutor | None = None):
        self.store = store
        self.repository = SuggestionRepository(store)
        self.executor = executor or AcceptExecutor(store)

    async def _get(self, tenant_id: str, suggestion_id: str) -> Suggestion:
        suggestion = await self.repository.get(tenant_id, suggestion_id)
        if suggestion is None:
            raise NotFound(f"Suggestion {suggestion_id} not found")
        return suggestion

    @traced_function("command_center.accept")
    async def accept(
        self,
        tenant_id: str,
        suggestion_id: str,
        actor: str | None = None,
        now: datetime | None = None,
    ) -> Suggestion:
        """제안 수락

        이미 accepted인 제안은 대상 쓰기 없이 그대로 반환한다.

        Raises:
            NotFound: 제안 미존재 (타 테넌트 포함)
            InvalidTransition: dismissed/expired 제안
            ExecutionFailure: 대상 모듈 쓰기 실패 (제안은 pending 유지)
        """
        async with self.store.transaction(lock_key=transition_lock_key(suggestion_id)):
            suggestion = await self._get(tenant_id, suggestion_id)
            if suggestion.status == "accepted":
                logger.info(f"Accept replay ignored: tenant={tenant_id}, suggestion={suggestion_id}")
                return suggestion
            if not suggestion.is_pending:
                raise InvalidTransition(
                    f"Suggestion {suggestion_id} is {suggestion.status}, cannot accept"
                )

            result_ref = await self.executor.execute(suggestion)

            resolved_at = now or datetime.now(timezone.utc)
            accepted = await self.repository.update(
                suggestion,
                {
                    "status": "accepted",
                    "resolved_at": resolved_at,
                    "accepted_at": resolved_at,
                    "accepted_by": actor,
                    "result_ref": result_ref,
                },
            )

        record_counter("suggestion_transitions", {"type": accepted.type, "status": "accepted"})
        logger.info(
            f"Suggestion accepted: tenant={tenant_id}, suggestion={suggestion_id}, "
            f"type={accepted.type}, result={result_ref}"
        )
        return accepted

    async def dismiss(
        self,
        tenant_id: str,
        suggestion_id: str,
        reason: str | None = None,
        actor: str | None = None,
        now: datetime | None = None,
    ) -> Suggestion:
        """제안 거절

        Raises:
            NotFound: 제안 미존재 (타 테넌트 포함)
            InvalidTransition: pending이 아닌 제안
        """
        async with self.store.transaction(lock_key=transition_lock_key(suggestion_id)):
            suggestion = await self._get(tenant_id, suggestion_id)
            if not suggestion.is_pending:
                raise InvalidTransition(
                    f"Suggestion {suggestion_id} is {suggestion.status}, cannot dismiss"
                )

            resolved_at = now or datetime.now(timezone.utc)
            dismissed = await self.repository.update(
                suggestion,
                {
                    "status": "dismissed",
                    "resolved_at": resolved_at,
                    "dismissed_at": resolved_at,
                    "dismissed_by": actor,
                    "dismiss_reason": reason,
                },
            )

        record_counter("suggestion_transitions", {"type": dismissed.type, "status": "dismissed"})
        logger.info(
            f"Suggestion dismissed: tenant={tenant_id}, suggestion={suggestion_id}, "
            f"reason={reason!r}"
        )
        return dismissed

    async def expire_stale(self, tenant_id: str, now: datetime | None = None) -> list[Suggestion]:
        """expires_at이 지난 pending 제안을 expired로 전환"""
        now = now or datetime.now(timezone.utc)
        expired = []

        for stale in await self.repository.list_suggestions(tenant_id, status="pending"):
            if stale.expires_at is None or stale.expires_at > now:
                continue

            async with self.store.transaction(lock_key=transition_lock_key(stale.id)):
                suggestion = await self.repository.get(tenant_id, stale.id)
                if suggestion is None or not suggestion.is_pending:
                    continue
                expired.append(
                    await self.repository.update(
                        suggestion,
                        {
                            "status": "expired",
                            "resolved_at": now,
                            "expire_reason": (
                                f"Not acted on before {suggestion.expires_at.isoformat()}"
                            ),
                        },
                    )
                )
            record_counter("suggestion_transitions", {"type": suggestion.type, "status": "expired"})

        if expired:
            logger.info(f"Suggestions expired: tenant={tenant_id}, count={len(expired)}")
        return expired

    async def expire_all(self, now: datetime | None = None) -> int:
        """전체 테넌트 만료 스윕 (cron 전용). 테넌트별로 실패를 격리한다."""
        total = 0
        for tenant_id in await self.repository.list_tenants():
            try:
                total += len(await self.expire_stale(tenant_id, now=now))
            except Exception:
                logger.exception(f"Expiry sweep failed: tenant={tenant_id}")
        return total
