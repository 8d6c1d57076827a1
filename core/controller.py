"""Conversation controller: mode switching, dispatch and the display channel."""
import asyncio
import itertools
import logging
import random
from datetime import datetime
from typing import Any, Awaitable, Callable
import httpx
from config.settings import Settings, settings as default_settings
from modules import BackendClient, BackendState, IntentClassifier, ResponseSelector
from .models import ConversationState, ConversationTurn, ReadinessEvent, ReplyEvent, ReplySource

logger = logging.getLogger(__name__)

MODE_ON_NOTICE = "AI猫娘模式已开启！现在我可以更智能地和你聊天了喵～🌟"
MODE_OFF_NOTICE = "AI模式已关闭，切换回普通猫猫对话模式～"
CONNECTING_NOTICE = "正在连接Ollama服务，请确保Ollama已运行... ⏳"
READY_NOTICE = "AI模型加载成功！现在可以使用智能对话啦～🚀"
FAILED_NOTICE = "AI模型加载失败，将使用普通对话模式 😢"
BUSY_NOTICE = "正在思考中喵～"
WELCOME_NOTICE = "你好！我是你的桌面宠物，来和我聊天吧！(=^･ω･^=)"

ReplyListener = Callable[[ReplyEvent], Any]
ReadinessListener = Callable[[ReadinessEvent], Any]


class ConversationController:
    """
    Public surface of the conversational engine.

    Decides per message whether the rule-based path or the backend answers,
    and routes every reply through a randomized "thinking" delay before
    handing it to reply listeners. All public methods must be called from
    inside a running asyncio event loop.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        classifier: IntentClassifier | None = None,
        selector: ResponseSelector | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.settings = settings or default_settings
        self.backend_state = BackendState()
        self.classifier = classifier or IntentClassifier()
        self.selector = selector or ResponseSelector(rng=rng)
        self.client = BackendClient(self.settings.backend, self.backend_state, transport=transport)

        self.classifier.initialize()
        self.selector.initialize()

        self._rng = rng or random
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or datetime.now

        self._use_backend = False
        self._state = ConversationState.RULE_BASED
        self._probe_task: asyncio.Task | None = None
        self._generate_lock = asyncio.Lock()
        self._backend_turns = 0
        self._turn_ids = itertools.count(1)
        self._tasks: set[asyncio.Task] = set()
        self._reply_listeners: list[ReplyListener] = []
        self._readiness_listeners: list[ReadinessListener] = []

    # -- accessors ---------------------------------------------------------

    @property
    def use_backend(self) -> bool:
        return self._use_backend

    @property
    def backend_ready(self) -> bool:
        return self.backend_state.ready

    @property
    def state(self) -> ConversationState:
        return self._state

    def on_reply(self, listener: ReplyListener) -> None:
        """Register a callback receiving every displayed reply."""
        self._reply_listeners.append(listener)

    def on_readiness(self, listener: ReadinessListener) -> None:
        """Register a callback receiving every probe outcome."""
        self._readiness_listeners.append(listener)

    # -- mode ----------------------------------------------------------------

    def set_mode(self, use_backend: bool) -> None:
        """
        Switch between rule-based and backend-delegated replies.

        Turning backend mode on while the backend is not ready starts an
        availability probe unless one is already running.
        """
        self._use_backend = use_backend
        logger.info(f"Backend mode {'on' if use_backend else 'off'}")

        if not use_backend:
            self._state = ConversationState.RULE_BASED
            self._display(MODE_OFF_NOTICE, ReplySource.SYSTEM)
            return

        self._display(MODE_ON_NOTICE, ReplySource.SYSTEM)
        if self.backend_state.ready:
            self._state = ConversationState.BACKEND_READY
        elif self._probe_task is None or self._probe_task.done():
            self._state = ConversationState.BACKEND_REQUESTED
            self._display(CONNECTING_NOTICE, ReplySource.SYSTEM)
            self._probe_task = self._spawn(self._probe())
        else:
            self._state = ConversationState.BACKEND_REQUESTED

    async def _probe(self) -> bool:
        success = await self.client.check_availability(self.settings.backend.model)

        if success:
            self._state = (
                ConversationState.BACKEND_READY if self._use_backend else ConversationState.RULE_BASED
            )
            self._display(READY_NOTICE, ReplySource.SYSTEM)
        else:
            self._use_backend = False
            self._state = ConversationState.BACKEND_FAILED
            self._display(FAILED_NOTICE, ReplySource.SYSTEM)

        event = ReadinessEvent(success=success, model=self.client.model_name, timestamp=self._clock())
        self._emit(self._readiness_listeners, event)
        return success

    # -- messages ------------------------------------------------------------

    def greet(self) -> None:
        """Show the welcome line a freshly opened chat starts with."""
        self._display(WELCOME_NOTICE, ReplySource.SYSTEM)

    def submit(self, message: str) -> None:
        """Fire-and-forget: the reply arrives through the reply listeners."""
        self._dispatch(message)

    async def ask(self, message: str) -> ReplyEvent | None:
        """Submit a message and wait for the reply it produces."""
        task = self._dispatch(message)
        if task is None:
            return None
        return await task

    def _dispatch(self, message: str) -> asyncio.Task | None:
        text = message.strip()
        if not text:
            return None

        turn = ConversationTurn(turn_id=next(self._turn_ids), user_text=text, timestamp=self._clock())

        if self._use_backend and self.backend_state.ready:
            policy = self.settings.conversation.concurrency
            if policy == "reject" and self._backend_turns > 0:
                logger.info(f"Turn {turn.turn_id} rejected, a generation is already in flight")
                return self._display(BUSY_NOTICE, ReplySource.SYSTEM, turn.turn_id)
            self._backend_turns += 1
            return self._spawn(self._generate_reply(turn))

        category = self.classifier.classify(turn.user_text)
        reply = self.selector.select(category)
        return self._display(reply, ReplySource.RULES, turn.turn_id)

    async def _generate_reply(self, turn: ConversationTurn) -> ReplyEvent:
        try:
            if self.settings.conversation.concurrency == "queue":
                async with self._generate_lock:
                    text = await self.client.generate(turn.user_text)
            else:
                text = await self.client.generate(turn.user_text)
        finally:
            self._backend_turns -= 1
        return await self._deliver(text, ReplySource.BACKEND, turn.turn_id)

    # -- display channel -----------------------------------------------------

    def _display(self, text: str, source: ReplySource, turn_id: int | None = None) -> asyncio.Task:
        return self._spawn(self._deliver(text, source, turn_id))

    async def _deliver(self, text: str, source: ReplySource, turn_id: int | None) -> ReplyEvent:
        display = self.settings.display
        delay_ms = self._rng.uniform(display.min_delay_ms, display.max_delay_ms)
        logger.debug(f"Thinking for {delay_ms:.0f} ms before showing turn {turn_id}")
        await self._sleep(delay_ms / 1000)

        event = ReplyEvent(
            turn_id=turn_id,
            timestamp=self._clock(),
            text=text,
            source=source,
            delay_ms=delay_ms,
        )
        self._emit(self._reply_listeners, event)
        return event

    def format_event(self, event: ReplyEvent) -> str:
        """Render a reply the way the chat window shows it."""
        display = self.settings.display
        return f"[{event.timestamp.strftime(display.timestamp_format)}] {display.pet_name}: {event.text}"

    # -- lifecycle -----------------------------------------------------------

    async def drain(self) -> None:
        """Wait until every scheduled reply has been delivered."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Deliver outstanding replies, then release the backend client."""
        await self.drain()
        await self.client.aclose()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Conversation task failed: {task.exception()!r}")

    def _emit(self, listeners: list, event: Any) -> None:
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Listener {listener!r} failed: {e}")
