"""Abstract interface for looking up the entity a chat session is about."""

from abc import ABC, abstractmethod

from policy_rag.domain.entities import EntityContext


class EntityContextRepository(ABC):
    """Port — read-only access to property summaries."""

    @abstractmethod
    async def get_context(self, entity_id: str) -> EntityContext | None:
        """Return the entity summary, or None when the entity does not exist."""
        ...
