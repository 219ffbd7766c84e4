"""SQLAlchemy ORM model for the property listings a chat session may refer to.

The table belongs to the listing service; this application only reads it.
"""

from sqlalchemy import Column, String, Text

from policy_rag.infrastructure.database.base import Base


class PropertyModel(Base):
    __tablename__ = "properties"

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    address = Column(Text, nullable=False, server_default="")
    status = Column(String(30), nullable=False)
