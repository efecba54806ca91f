from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from nexus_ops.core.database import Base


class DocumentRecord(Base):
    """테넌트 스코프 문서 저장소 레코드

    모든 컬렉션(suggestions, work_orders, ...)이 한 테이블을 공유하며
    (collection, tenant_id) 인덱스로 범위 조회한다.
    """

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
    )
    collection: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    tenant_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    data: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_documents_collection_tenant_id", "collection", "tenant_id"),
    )

    def __repr__(self) -> str:
        return f"<DocumentRecord {self.collection}/{self.id}>"
