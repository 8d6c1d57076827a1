"""Conversation turn and event models."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class ConversationState(str, Enum):
    """Delegation mode of a controller."""
    RULE_BASED = "rule_based"
    BACKEND_REQUESTED = "backend_requested"
    BACKEND_READY = "backend_ready"
    BACKEND_FAILED = "backend_failed"


class ReplySource(str, Enum):
    """Where a displayed reply came from."""
    RULES = "rules"
    BACKEND = "backend"
    SYSTEM = "system"


@dataclass
class ConversationTurn:
    """One submitted message; discarded once its reply is produced."""
    turn_id: int
    user_text: str
    timestamp: datetime


class ReplyEvent(BaseModel):
    turn_id: Optional[int] = None
    timestamp: datetime
    text: str
    source: ReplySource
    delay_ms: float = 0.0


class ReadinessEvent(BaseModel):
    success: bool
    model: str
    timestamp: datetime
