"""In-memory 문서 저장소

테스트 및 Redis/PostgreSQL 없는 로컬 실행용.
트랜잭션은 undo 로그로 롤백하며, lock_key 별 asyncio.Lock으로 직렬화한다.
"""

import asyncio
import copy
from collections import defaultdict
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, AsyncIterator, Callable
from uuid import uuid4

from nexus_ops.repositories.document_store.interface import resolve_path

# 현재 태스크의 트랜잭션 상태 (undo 로그, 보유 중인 lock 키)
_undo_log: ContextVar[list[Callable[[], None]] | None] = ContextVar("_undo_log", default=None)
_held_locks: ContextVar[frozenset[str]] = ContextVar("_held_locks", default=frozenset())


class MemoryDocumentStore:
    """dict 기반 문서 저장소"""

    def __init__(self, data: dict[str, dict[str, dict]] | None = None):
        self.data: dict[str, dict[str, dict]] = defaultdict(dict)
        for collection, docs in (data or {}).items():
            self.data[collection] = copy.deepcopy(docs)
        self._locks: dict[str, asyncio.Lock] = {}
        # lock_key 별 보유/대기 중인 트랜잭션 수 (0이 되면 lock 제거)
        self._lock_users: dict[str, int] = {}

    # =========================================================================
    # 쓰기
    # =========================================================================

    async def insert(self, collection: str, doc: dict) -> str:
        if not doc.get("tenant_id"):
            raise ValueError("tenant_id is required")

        doc_id = doc.get("id") or str(uuid4())
        stored = copy.deepcopy(doc)
        stored["id"] = doc_id
        self.data[collection][doc_id] = stored

        self._record_undo(lambda: self.data[collection].pop(doc_id, None))
        return doc_id

    async def patch(self, collection: str, doc_id: str, partial: dict) -> None:
        current = self.data[collection].get(doc_id)
        if current is None:
            raise KeyError(f"{collection}/{doc_id}")

        before = copy.deepcopy(current)
        update = copy.deepcopy(partial)
        update.pop("id", None)
        update.pop("tenant_id", None)
        current.update(update)

        self._record_undo(lambda: self.data[collection].__setitem__(doc_id, before))

    async def delete(self, collection: str, doc_id: str) -> None:
        removed = self.data[collection].pop(doc_id, None)
        if removed is not None:
            self._record_undo(lambda: self.data[collection].__setitem__(doc_id, removed))

    # =========================================================================
    # 읽기
    # =========================================================================

    async def get(self, collection: str, doc_id: str) -> dict | None:
        doc = self.data[collection].get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def query(
        self,
        collection: str,
        tenant_id: str,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        results = [
            doc
            for doc in self.data[collection].values()
            if doc.get("tenant_id") == tenant_id
            and all(resolve_path(doc, k) == v for k, v in (where or {}).items())
        ]

        if order_by:

            def sort_key(doc: dict) -> tuple:
                value = resolve_path(doc, order_by)
                return (value is None, value if value is not None else "")

            results.sort(key=sort_key, reverse=descending)
        if limit is not None:
            results = results[:limit]

        return copy.deepcopy(results)

    async def list_tenants(self, collection: str) -> list[str]:
        return sorted({doc["tenant_id"] for doc in self.data[collection].values()})

    # =========================================================================
    # 트랜잭션
    # =========================================================================

    @asynccontextmanager
    async def transaction(self, lock_key: str | None = None) -> AsyncIterator[None]:
        held = _held_locks.get()
        lock = None
        if lock_key and lock_key not in held:
            lock = await self._acquire_lock(lock_key)

        held_token = _held_locks.set(held | {lock_key} if lock_key else held)
        parent = _undo_log.get()
        entries: list[Callable[[], None]] = []
        undo_token = _undo_log.set(entries)
        try:
            yield
        except BaseException:
            for undo in reversed(entries):
                undo()
            raise
        else:
            # 중첩 트랜잭션은 성공 시 부모 로그에 합류 (savepoint 해제)
            if parent is not None:
                parent.extend(entries)
        finally:
            _undo_log.reset(undo_token)
            _held_locks.reset(held_token)
            if lock is not None:
                self._release_lock(lock_key, lock)

    async def commit(self) -> None:
        """쓰기는 즉시 반영되므로 no-op"""

    async def _acquire_lock(self, lock_key: str) -> asyncio.Lock:
        lock = self._locks.setdefault(lock_key, asyncio.Lock())
        self._lock_users[lock_key] = self._lock_users.get(lock_key, 0) + 1
        try:
            await lock.acquire()
        except BaseException:
            self._forget_lock(lock_key)
            raise
        return lock

    def _release_lock(self, lock_key: str, lock: asyncio.Lock) -> None:
        lock.release()
        self._forget_lock(lock_key)

    def _forget_lock(self, lock_key: str) -> None:
        remaining = self._lock_users[lock_key] - 1
        if remaining:
            self._lock_users[lock_key] = remaining
        else:
            del self._lock_users[lock_key]
            del self._locks[lock_key]

    def _record_undo(self, undo: Callable[[], None]) -> None:
        log = _undo_log.get()
        if log is not None:
            log.append(undo)
