"""create documents table

Revision ID: 5e1c0a7d2b91
Revises:
Create Date: 2026-10-19 10:12:41.208311

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "5e1c0a7d2b91"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "documents",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("collection", sa.String(length=64), nullable=False, comment="컬렉션 이름"),
        sa.Column("tenant_id", sa.String(length=64), nullable=False, comment="소유 테넌트"),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=False, comment="문서 본문"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_documents_collection_tenant_id",
        "documents",
        ["collection", "tenant_id"],
        unique=False,
    )
    # where 조건(JSONB @>) 조회용
    op.create_index(
        "ix_documents_data",
        "documents",
        ["data"],
        unique=False,
        postgresql_using="gin",
    )


def downgrade() -> None:
    op.drop_index("ix_documents_data", table_name="documents")
    op.drop_index("ix_documents_collection_tenant_id", table_name="documents")
    op.drop_table("documents")
