import time
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from config import settings
from utils import setup_logging
from core import ConversationController
from .models import ChatRequest, ChatResponse, HealthCheck, ModeRequest

# Setup logging
setup_logging(settings.logging)
logger = logging.getLogger("api")


def build_controller() -> ConversationController:
    """Create the controller served by this app."""
    return ConversationController(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the conversation controller on startup, close it on shutdown."""
    logger.info("Initializing conversation controller...")
    controller = build_controller()
    app.state.controller = controller
    if controller.settings.conversation.use_backend:
        controller.set_mode(True)
    yield
    logger.info("Shutting down...")
    await controller.aclose()

app = FastAPI(
    title="Desktop Companion Chat API",
    description="Rule-based chat with an optional Ollama backend",
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_controller(request: Request) -> ConversationController:
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Controller not initialized")
    return controller

@app.get("/health", response_model=HealthCheck)
async def health_check(request: Request):
    """Health check endpoint."""
    controller = get_controller(request)
    return HealthCheck(
        status="healthy",
        use_backend=controller.use_backend,
        backend_ready=controller.backend_ready,
        state=controller.state,
        model=controller.client.model_name,
    )

@app.post("/mode", response_model=HealthCheck)
async def set_mode(body: ModeRequest, request: Request):
    """Toggle backend delegation. The probe, if any, runs in the background."""
    controller = get_controller(request)
    controller.set_mode(body.use_backend)
    return await health_check(request)

@app.post("/chat", response_model=ChatResponse)
async def chat(body: ChatRequest, request: Request):
    """Chat with the companion."""
    controller = get_controller(request)
    start_time = time.time()

    event = await controller.ask(body.message)
    if event is None:
        raise HTTPException(status_code=422, detail="Message is empty")

    return ChatResponse(
        response=event.text,
        source=event.source,
        turn_id=event.turn_id,
        timestamp=event.timestamp.strftime(controller.settings.display.timestamp_format),
        processing_time=time.time() - start_time,
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, reload=True)
