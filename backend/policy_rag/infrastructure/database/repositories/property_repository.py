"""Read-only property lookups used to give the chatbot listing context."""

from sqlalchemy.ext.asyncio import AsyncSession

from policy_rag.application.interfaces import EntityContextRepository
from policy_rag.domain.entities import EntityContext
from policy_rag.infrastructure.database.models import PropertyModel


class SQLAlchemyPropertyRepository(EntityContextRepository):
    """Implements the EntityContextRepository port over the properties table."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_context(self, entity_id: str) -> EntityContext | None:
        model = await self._session.get(PropertyModel, entity_id)
        if model is None:
            return None
        return EntityContext(
            id=model.id,
            title=model.title,
            address=model.address,
            status=model.status,
        )
