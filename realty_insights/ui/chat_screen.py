"""Terminal chat panel for asking analytics questions by text or voice."""

import asyncio
import logging
import sys
import threading
from typing import Optional

from pubsub import pub
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

from ..chat import ChatOrchestrator
from ..models.analytics import ResponseKind
from ..models.chat import ChatMessage, MessageRole

logger = logging.getLogger(__name__)

VOICE_COMMANDS = ("/voice", "v")
QUIT_COMMANDS = ("/quit", "q")
HELP_COMMANDS = ("/help", "?")


class ChatScreen:
    """Renders the conversation with rich and feeds user input to the orchestrator."""

    def __init__(self, orchestrator: ChatOrchestrator, console: Optional[Console] = None,
                 max_duration_seconds: float = 15.0):
        self.orchestrator = orchestrator
        self.console = console or Console()
        self.max_duration_seconds = max_duration_seconds
        self._pending_line: Optional[asyncio.Future] = None
        self._subscribed = False

    def render_message(self, message: ChatMessage) -> None:
        """Print one message as a panel."""
        if message.role is MessageRole.USER:
            self.console.print(Panel(message.content, title="You", title_align="right",
                                     border_style="blue"))
            return

        body = Markdown(message.content) if message.kind is ResponseKind.INSIGHT else message.content
        self.console.print(Panel(body, title="Assistant", title_align="left", border_style="green"))

    def _on_message(self, message: ChatMessage) -> None:
        self.render_message(message)

    def show_header(self) -> None:
        self.console.print("🏠 Realty Insights - Analytics Assistant", style="bold blue")
        self.console.print("=" * 50)
        self.show_commands()

    def show_commands(self) -> None:
        self.console.print("Commands:")
        self.console.print("  [bold green]/voice[/bold green] (v) - Ask by voice, Enter stops recording")
        self.console.print("  [bold blue]/help[/bold blue] (?) - Show commands")
        self.console.print("  [bold red]/quit[/bold red] (q) - Quit")
        self.console.print("Anything else is sent as a question. "
                           "An empty line sends the transcribed question.")
        self.console.print("=" * 50)

    async def run(self) -> None:
        """Read commands and questions until the user quits or stdin closes."""
        self.show_header()
        for message in self.orchestrator.messages:
            self.render_message(message)

        self._subscribe()
        try:
            while True:
                try:
                    line = await self._next_line("\n> ")
                except EOFError:
                    break

                command = line.strip().lower()
                if command in QUIT_COMMANDS:
                    break
                if command in HELP_COMMANDS:
                    self.show_commands()
                elif command in VOICE_COMMANDS:
                    await self._voice_question()
                elif line.strip():
                    await self._ask(line)
                elif self.orchestrator.input_text:
                    await self._ask(None)
        finally:
            await self.orchestrator.close()
            self._unsubscribe()
            self.console.print("\n👋 Goodbye!")

    async def ask_by_voice(self, submit: bool = False) -> str:
        """Record one voice question and return its transcript.

        Args:
            submit: Also ask the transcribed question
        """
        self._subscribe()
        try:
            await self._voice_question()
            transcript = self.orchestrator.input_text
            if submit and transcript:
                await self._ask(None)
            return transcript
        finally:
            await self.orchestrator.close()
            self._unsubscribe()

    def _subscribe(self) -> None:
        if not self._subscribed:
            pub.subscribe(self._on_message, self.orchestrator.publisher.message_topic)
            self._subscribed = True

    def _unsubscribe(self) -> None:
        if self._subscribed:
            pub.unsubscribe(self._on_message, self.orchestrator.publisher.message_topic)
            self._subscribed = False

    async def _ask(self, text: Optional[str]) -> None:
        with self.console.status("Analyzing your data..."):
            await self.orchestrator.submit(text)

    async def _voice_question(self) -> None:
        if not await self.orchestrator.start_recording():
            return

        self.console.print(f"🔴 Recording... press Enter to stop "
                           f"(stops automatically after {self.max_duration_seconds:g}s)",
                           style="bold red")
        line_future = self._line_future()
        idle_task = asyncio.ensure_future(self.orchestrator.wait_until_idle())

        done, _ = await asyncio.wait({line_future, idle_task}, return_when=asyncio.FIRST_COMPLETED)
        if line_future in done:
            self._pending_line = None
            self.orchestrator.stop_recording()

        with self.console.status("Transcribing audio..."):
            await idle_task

    def _line_future(self) -> asyncio.Future:
        """Future for the next stdin line, shared until someone consumes it.

        Read on a daemon thread so an unanswered prompt never blocks exit.
        """
        if self._pending_line is None:
            loop = asyncio.get_running_loop()
            future = loop.create_future()

            def deliver(line: str) -> None:
                if not future.done():
                    future.set_result(line)

            def read() -> None:
                line = sys.stdin.readline()
                try:
                    loop.call_soon_threadsafe(deliver, line)
                except RuntimeError:
                    logger.debug("Event loop closed before stdin line was delivered")

            threading.Thread(target=read, name="stdin-reader", daemon=True).start()
            self._pending_line = future
        return self._pending_line

    async def _next_line(self, prompt: str = "") -> str:
        if self._pending_line is None and prompt:
            self.console.print(prompt, end="")
        future = self._line_future()
        try:
            line = await future
        finally:
            self._pending_line = None
        if line == "":
            raise EOFError
        return line.rstrip("\n")
