"""Async client for the Ollama generation backend."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any
import httpx
from config.settings import BackendConfig

logger = logging.getLogger(__name__)

MODEL_NOT_LOADED = "Error: Model not loaded"
NO_RESPONSE = "Error: No response from AI"

PROMPT_TEMPLATE = "系统设定：{system}\n用户消息：{user}\n请以猫娘喵喵的身份回复："


@dataclass
class BackendState:
    """
    Readiness and in-flight bookkeeping for one backend.

    Owned by the conversation controller and shared by reference with the
    client, which is the only writer.
    """
    ready: bool = False
    pending_request: asyncio.Task | None = None
    in_flight: int = 0

    @property
    def busy(self) -> bool:
        return self.pending_request is not None

    def begin_request(self, handle: asyncio.Task | None) -> None:
        self.in_flight += 1
        self.pending_request = handle

    def end_request(self) -> None:
        self.in_flight = max(0, self.in_flight - 1)
        if self.in_flight == 0:
            self.pending_request = None


def describe_error(error: Exception) -> str:
    """Human readable transport error description."""
    text = str(error).strip()
    return text or error.__class__.__name__


class BackendClient:
    """
    Talks to an Ollama-compatible service.

    Every failure is folded into the result: the probe answers False and
    generate answers with a sentinel string, so callers never see an
    exception from the transport.
    """

    def __init__(
        self,
        config: BackendConfig,
        state: BackendState | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.state = state if state is not None else BackendState()
        self.model_name = config.model
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        await self._client.aclose()

    async def check_availability(self, model_name: str | None = None) -> bool:
        """
        Probe the model listing for the configured model.

        The probe succeeds when any advertised model name contains
        `model_name` as a substring. Transport errors, bad JSON and a
        listing without a `models` field all count as "not found".

        Args:
            model_name: Model to look for (default: configured model)

        Returns:
            The new readiness flag
        """
        self.model_name = model_name or self.config.model
        logger.info(f"Probing {self.config.base_url} for model '{self.model_name}'")

        try:
            response = await self._client.get("/api/tags")
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to connect to Ollama: {describe_error(e)}")
            return self._set_ready(False)
        except ValueError as e:
            logger.warning(f"Unreadable model listing: {e}")
            return self._set_ready(False)

        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            logger.warning("Model listing has no 'models' field")
            return self._set_ready(False)

        names = [str(m.get("name", "")) for m in models if isinstance(m, dict)]
        if any(self.model_name in name for name in names):
            logger.info(f"Model {self.model_name} is available")
            return self._set_ready(True)

        logger.warning(f"Model {self.model_name} not found in Ollama (advertised: {names})")
        return self._set_ready(False)

    def build_prompt(self, user_prompt: str) -> str:
        """Combine the persona block with a single user message."""
        return PROMPT_TEMPLATE.format(system=self.config.system_prompt, user=user_prompt)

    def build_payload(self, user_prompt: str) -> dict[str, Any]:
        """Request body for a non-streaming generation."""
        return {
            "model": self.model_name,
            "prompt": self.build_prompt(user_prompt),
            "stream": False,
            "temperature": self.config.temperature,
            "top_p": self.config.top_p,
            "max_tokens": self.config.max_tokens,
        }

    async def generate(self, user_prompt: str) -> str:
        """
        Ask the backend for a reply to one message.

        Returns:
            The generated text, or a sentinel error string
        """
        if not self.state.ready:
            logger.warning("Model not loaded, run the availability probe first")
            return MODEL_NOT_LOADED

        payload = self.build_payload(user_prompt)
        self.state.begin_request(asyncio.current_task())
        try:
            response = await self._client.post("/api/generate", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            description = describe_error(e)
            logger.warning(f"API request failed: {description}")
            return f"Error: {description}"
        except ValueError as e:
            logger.warning(f"Unreadable generation body: {e}")
            data = None
        finally:
            self.state.end_request()

        if isinstance(data, dict) and "response" in data:
            text = data["response"]
            text = text if isinstance(text, str) else ""
            logger.debug(f"AI Response: {text}")
            return text

        logger.warning(NO_RESPONSE)
        return NO_RESPONSE

    def _set_ready(self, ready: bool) -> bool:
        self.state.ready = ready
        return ready
