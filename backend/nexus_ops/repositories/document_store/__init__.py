# document_store 패키지
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from nexus_ops.core.config import get_settings

from .interface import IDocumentStore, resolve_path
from .memory import MemoryDocumentStore

logger = logging.getLogger(__name__)

# memory 백엔드 싱글톤 (프로세스 로컬)
_memory_store: MemoryDocumentStore | None = None


def get_memory_store() -> MemoryDocumentStore:
    """MemoryDocumentStore 싱글톤 반환"""
    global _memory_store
    if _memory_store is None:
        _memory_store = MemoryDocumentStore()
        logger.info("MemoryDocumentStore 초기화 (store_backend=memory)")
    return _memory_store


@asynccontextmanager
async def document_store_scope() -> AsyncIterator[IDocumentStore]:
    """요청 외부(ARQ 태스크 등)에서 사용하는 저장소 스코프

    sql 백엔드는 세션을 열고 정상 종료 시 커밋, 예외 시 롤백한다.
    """
    settings = get_settings()
    if settings.store_backend == "memory":
        yield get_memory_store()
        return

    from nexus_ops.core.database import async_session_maker

    from .sql import SqlDocumentStore

    async with async_session_maker() as session:
        try:
            yield SqlDocumentStore(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


__all__ = [
    "IDocumentStore",
    "MemoryDocumentStore",
    "document_store_scope",
    "get_memory_store",
    "resolve_path",
]
