"""Main CLI entry point."""
import asyncio
import logging
import sys
import threading
from datetime import datetime
from typing import Callable
from config import settings, load_config
from utils import setup_logging
from core import ConversationController, ReadinessEvent, ReplyEvent

logger = logging.getLogger(__name__)


def print_reply(controller: ConversationController, event: ReplyEvent) -> None:
    print(f"\n{controller.format_event(event)}")


def print_readiness(event: ReadinessEvent) -> None:
    status = "✅ ready" if event.success else "❌ unavailable"
    print(f"\n🧠 Backend {event.model}: {status}")


def start_line_reader(queue: asyncio.Queue, readline: Callable[[], str] = input) -> threading.Thread:
    """
    Feed stdin lines into `queue` from a daemon thread.

    A daemon thread blocked in `input()` does not keep the process alive,
    so Ctrl-C exits without waiting for Enter. None marks end of input.
    """
    loop = asyncio.get_running_loop()

    def pump() -> None:
        while True:
            try:
                line = readline()
            except (EOFError, OSError):
                loop.call_soon_threadsafe(queue.put_nowait, None)
                return
            loop.call_soon_threadsafe(queue.put_nowait, line)

    reader = threading.Thread(target=pump, name="stdin-reader", daemon=True)
    reader.start()
    return reader


async def chat_loop(controller: ConversationController, lines: asyncio.Queue) -> None:
    """Hand queued input lines to the controller until quit or end of input."""
    display = controller.settings.display
    while True:
        print("\n> ", end="", flush=True)
        line = await lines.get()
        if line is None:
            break
        message = line.strip()
        if not message:
            continue
        if message.lower() in ['exit', 'quit', 'q']:
            break
        if message == "/ai on":
            controller.set_mode(True)
            continue
        if message == "/ai off":
            controller.set_mode(False)
            continue
        if message == "/status":
            print(f"mode={'backend' if controller.use_backend else 'rules'} "
                  f"state={controller.state.value} ready={controller.backend_ready}")
            continue

        timestamp = datetime.now().strftime(display.timestamp_format)
        print(f"[{timestamp}] {display.user_name}: {message}")
        try:
            controller.submit(message)
        except Exception as e:
            logger.exception("Failed to handle message")
            print(f"\n❌ Error: {e}")


async def run(config) -> None:
    controller = ConversationController(config)
    controller.on_reply(lambda event: print_reply(controller, event))
    controller.on_readiness(print_readiness)
    controller.greet()
    if config.conversation.use_backend:
        controller.set_mode(True)

    lines: asyncio.Queue = asyncio.Queue()
    start_line_reader(lines)
    try:
        await chat_loop(controller, lines)
    finally:
        await controller.aclose()


def main():
    """Run interactive CLI."""
    config = settings
    if len(sys.argv) > 1:
        try:
            config = load_config(sys.argv[1])
        except (FileNotFoundError, ValueError) as e:
            print(f"❌ Configuration error: {e}")
            sys.exit(1)

    setup_logging(config.logging)

    print("🐱 Desktop companion ready!")
    print(f"📦 Backend: {config.backend.base_url} ({config.backend.model})")
    print("💡 Commands: /ai on, /ai off, /status, quit")
    print("\n" + "="*60)

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        pass
    print("\n👋 拜拜喵～")


if __name__ == "__main__":
    main()
