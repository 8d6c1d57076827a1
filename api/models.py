from pydantic import BaseModel
from typing import Optional

from core.models import ConversationState, ReplySource


class ChatRequest(BaseModel):
    message: str

class ChatResponse(BaseModel):
    response: str
    source: ReplySource
    turn_id: Optional[int] = None
    timestamp: str
    processing_time: float

class ModeRequest(BaseModel):
    use_backend: bool

class HealthCheck(BaseModel):
    status: str
    use_backend: bool
    backend_ready: bool
    state: ConversationState
    model: str
