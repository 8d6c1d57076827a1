"""Core conversation engine."""
from .controller import ConversationController
from .models import ConversationState, ConversationTurn, ReadinessEvent, ReplyEvent, ReplySource

__all__ = [
    "ConversationController",
    "ConversationState",
    "ConversationTurn",
    "ReadinessEvent",
    "ReplyEvent",
    "ReplySource",
]
