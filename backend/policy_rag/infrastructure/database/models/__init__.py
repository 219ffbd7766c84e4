from .chat_models import ChatMessageModel, ChatSessionModel
from .policy_chunk_models import PolicyChunkModel
from .property_models import PropertyModel

__all__ = [
    "ChatMessageModel",
    "ChatSessionModel",
    "PolicyChunkModel",
    "PropertyModel",
]
