"""PostgreSQL(JSONB) 문서 저장소

요청/태스크 단위 AsyncSession 위에서 동작한다. 커밋은 세션 소유자
(document_store_scope)가 담당하고, 트리거 지점은
디텍터 예약 전에 commit()으로 자기 쓰기를 먼저 확정한다.
"""

import copy
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from uuid import uuid4

from sqlalchemy import delete, distinct, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from nexus_ops.models.document import DocumentRecord


def _nest(path: str, value: Any) -> dict:
    """"a.b" = v -> {"a": {"b": v}} (JSONB @> 조건용)"""
    result: Any = value
    for part in reversed(path.split(".")):
        result = {part: result}
    return result


class SqlDocumentStore:
    """documents 테이블 기반 문서 저장소"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, collection: str, doc: dict) -> str:
        tenant_id = doc.get("tenant_id")
        if not tenant_id:
            raise ValueError("tenant_id is required")

        doc_id = doc.get("id") or str(uuid4())
        data = copy.deepcopy(doc)
        data["id"] = doc_id

        self.session.add(
            DocumentRecord(id=doc_id, collection=collection, tenant_id=tenant_id, data=data)
        )
        await self.session.flush()
        return doc_id

    async def patch(self, collection: str, doc_id: str, partial: dict) -> None:
        record = await self._get_record(collection, doc_id)
        if record is None:
            raise KeyError(f"{collection}/{doc_id}")

        update = copy.deepcopy(partial)
        update.pop("id", None)
        update.pop("tenant_id", None)
        # 새 dict를 할당해야 JSONB 변경이 감지됨
        record.data = {**record.data, **update}
        await self.session.flush()

    async def delete(self, collection: str, doc_id: str) -> None:
        await self.session.execute(
            delete(DocumentRecord).where(
                DocumentRecord.collection == collection,
                DocumentRecord.id == doc_id,
            )
        )

    async def get(self, collection: str, doc_id: str) -> dict | None:
        record = await self._get_record(collection, doc_id)
        return copy.deepcopy(record.data) if record is not None else None

    async def query(
        self,
        collection: str,
        tenant_id: str,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        stmt = select(DocumentRecord).where(
            DocumentRecord.collection == collection,
            DocumentRecord.tenant_id == tenant_id,
        )
        for path, value in (where or {}).items():
            stmt = stmt.where(DocumentRecord.data.contains(_nest(path, value)))

        if order_by:
            column = DocumentRecord.data[tuple(order_by.split("."))].astext
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return [copy.deepcopy(r.data) for r in result.scalars().all()]

    async def list_tenants(self, collection: str) -> list[str]:
        result = await self.session.execute(
            select(distinct(DocumentRecord.tenant_id))
            .where(DocumentRecord.collection == collection)
            .order_by(DocumentRecord.tenant_id)
        )
        return list(result.scalars().all())

    @asynccontextmanager
    async def transaction(self, lock_key: str | None = None) -> AsyncIterator[None]:
        async with self.session.begin_nested():
            if lock_key:
                # 외부 트랜잭션 커밋/롤백 시까지 유지되는 advisory lock
                await self.session.execute(
                    text("SELECT pg_advisory_xact_lock(:key)"),
                    {"key": await self._lock_id(lock_key)},
                )
            yield

    async def commit(self) -> None:
        await self.session.commit()

    async def _lock_id(self, lock_key: str) -> int:
        result = await self.session.execute(select(func.hashtextextended(lock_key, 0)))
        return int(result.scalar_one())

    async def _get_record(self, collection: str, doc_id: str) -> DocumentRecord | None:
        result = await self.session.execute(
            select(DocumentRecord).where(
                DocumentRecord.collection == collection,
                DocumentRecord.id == doc_id,
            )
        )
        return result.scalar_one_or_none()
