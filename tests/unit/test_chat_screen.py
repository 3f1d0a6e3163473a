"""Unit tests for the terminal chat panel."""

import asyncio
import io
import uuid
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from rich.console import Console

from realty_insights.audio.assembler import AudioAssembler
from realty_insights.chat import ChatOrchestrator, ChatPublisher
from realty_insights.exceptions import DeviceUnavailable
from realty_insights.insights.client import InsightClient
from realty_insights.models.analytics import ResponseKind
from realty_insights.models.audio import AudioChunk, PcmFormat
from realty_insights.models.chat import ChatMessage, MessageRole
from realty_insights.storage.transient import LocalTransientStorage
from realty_insights.transcription.client import TranscriptionClient
from realty_insights.ui import ChatScreen


class ScriptedCapture:
    """Yields one chunk, then waits until stopped."""

    pcm_format = PcmFormat()
    stop_reason = None

    def __init__(self, start_error=None):
        self.start_error = start_error
        self._stopped = asyncio.Event()

    async def start(self, constraints=None):
        if self.start_error is not None:
            raise self.start_error

    async def chunks(self):
        yield AudioChunk(sequence=0, data=b"\x01" * 8192, offset_seconds=0.0)
        await self._stopped.wait()

    def stop(self):
        self._stopped.set()

    def close(self):
        self._stopped.set()


@pytest.fixture
def screen_parts(temp_data_dir, make_provider, make_engine, gemini_reply, sample_snapshot, recording_sleep):
    def _build(capture_error=None, answers=None):
        suffix = uuid.uuid4().hex
        engine = make_engine(answers or [gemini_reply("**Olive Heights** is your best property.")])
        orchestrator = ChatOrchestrator(
            capture_factory=lambda: ScriptedCapture(capture_error),
            assembler=AudioAssembler(min_recording_bytes=1024),
            transcription_client=TranscriptionClient(
                make_provider(text="Which property is performing best?"),
                LocalTransientStorage(Path(temp_data_dir) / "temp"),
            ),
            insight_client=InsightClient(engine, sleep=recording_sleep),
            snapshot_provider=lambda: sample_snapshot,
            publisher=ChatPublisher(f"screen_{suffix}.message", f"screen_{suffix}.status"),
        )
        output = io.StringIO()
        screen = ChatScreen(orchestrator, console=Console(file=output, width=100, color_system=None))
        return screen, orchestrator, output, engine

    return _build


def _stdin_returning(line):
    async def _line():
        return line

    def _future():
        return asyncio.ensure_future(_line())

    return _future


@pytest.mark.unit
class TestChatScreen:

    def test_renders_insight_as_markdown(self, screen_parts):
        screen, _, output, _ = screen_parts()

        screen.render_message(ChatMessage(role=MessageRole.ASSISTANT, content="**Bold** answer",
                                          kind=ResponseKind.INSIGHT))
        screen.render_message(ChatMessage(role=MessageRole.USER, content="my question"))

        text = output.getvalue()
        assert "Bold answer" in text
        assert "**Bold**" not in text
        assert "You" in text and "my question" in text

    async def test_run_answers_typed_questions_until_quit(self, screen_parts):
        screen, orchestrator, output, engine = screen_parts()
        screen._next_line = AsyncMock(side_effect=["Which property is best?", "/help", "q"])

        await screen.run()

        text = output.getvalue()
        assert "Hello! I'm your AI analytics assistant." in text
        assert "Which property is best?" in text
        assert "Olive Heights is your best property." in text
        assert text.count("Commands:") == 2
        assert "Goodbye!" in text
        assert len(engine.prompts) == 1
        assert orchestrator.messages[-1].role is MessageRole.ASSISTANT

    async def test_run_stops_at_end_of_input(self, screen_parts):
        screen, orchestrator, _, _ = screen_parts()
        screen._next_line = AsyncMock(side_effect=EOFError)

        await screen.run()

        assert len(orchestrator.messages) == 1

    async def test_voice_question_then_enter_submits_transcript(self, screen_parts):
        screen, orchestrator, output, engine = screen_parts()
        screen._line_future = _stdin_returning("\n")
        screen._next_line = AsyncMock(side_effect=["/voice", "", "/quit"])

        await screen.run()

        text = output.getvalue()
        assert 'Audio transcribed: "Which property is performing best?"' in text
        assert engine.prompts[0].endswith("User question: Which property is performing best?")
        assert orchestrator.input_text == ""

    async def test_ask_by_voice_returns_transcript(self, screen_parts):
        screen, orchestrator, _, engine = screen_parts()
        screen._line_future = _stdin_returning("\n")

        transcript = await screen.ask_by_voice(submit=False)

        assert transcript == "Which property is performing best?"
        assert engine.prompts == []

    async def test_ask_by_voice_without_microphone(self, screen_parts):
        screen, orchestrator, output, _ = screen_parts(capture_error=DeviceUnavailable("denied"))

        transcript = await screen.ask_by_voice(submit=True)

        assert transcript == ""
        assert "couldn't access your microphone" in output.getvalue()
