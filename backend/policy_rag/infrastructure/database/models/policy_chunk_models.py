"""SQLAlchemy ORM model for policy chunks with pgvector embeddings."""

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)

from pgvector.sqlalchemy import Vector

from policy_rag.infrastructure.database.base import Base

EMBEDDING_DIMENSIONS = 1536


class PolicyChunkModel(Base):
    """A chunk of a policy document, with its vector embedding.

    The table is rebuilt wholesale by every ingestion run.
    """

    __tablename__ = "policy_chunks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=False)
    source_file = Column(String(255), nullable=False)
    category = Column(String(20), nullable=False, index=True)  # faq | policy | operation | reference
    target = Column(String(20), nullable=False, server_default="common")  # common | host | guest
    section_title = Column(String(500), nullable=False, server_default="")
    priority = Column(Integer, nullable=False, server_default="2")  # 0 = most authoritative
    content_type = Column(String(20), nullable=False)  # qa_pair | policy_rule | reference
    token_count = Column(Integer, nullable=False, server_default="0")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_policy_chunks_embedding_hnsw", embedding, postgresql_using="hnsw",
              postgresql_ops={"embedding": "vector_cosine_ops"}),
        Index("idx_policy_chunks_category_priority", "category", "priority"),
    )
