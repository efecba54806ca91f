"""SQLAlchemy 비동기 엔진/세션

store_backend=sql 일 때 SqlDocumentStore가 사용하는 세션을 제공한다.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from nexus_ops.core.config import get_settings

settings = get_settings()

# 비동기 엔진 생성 (연결은 첫 사용 시점)
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# 세션 팩토리
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """documents 테이블 모델의 기본 클래스"""


async def dispose_engine() -> None:
    """애플리케이션 종료 시 커넥션 풀 정리"""
    await engine.dispose()
