"""Chat orchestrator: drives voice capture, transcription and insight requests.

Only one activity runs at a time. A voice question moves the conversation
IDLE -> CAPTURING -> TRANSCRIBING -> IDLE; a typed question moves it
IDLE -> AWAITING_INSIGHT -> IDLE. Requests made outside IDLE are ignored.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from ..audio.assembler import AudioAssembler
from ..audio.capture import AudioCapture
from ..exceptions import DeviceUnavailable, EmptyInput, RealtyInsightsError, TooShort
from ..insights.client import InsightClient
from ..models.analytics import AnalyticsSnapshot, ResponseKind
from ..models.audio import AudioChunk, CaptureConstraints
from ..models.chat import ChatMessage, ChatStatus, ConversationState, MessageRole
from ..transcription.client import TranscriptionClient
from .publisher import ChatPublisher

logger = logging.getLogger(__name__)

RECORDING_MIME_TYPE = "audio/wav"

GREETING = (
    "Hello! I'm your AI analytics assistant. I can help you understand your data better. "
    "Ask me questions like:\n\n"
    '- "What\'s our conversion rate?"\n'
    '- "Which property is performing best?"\n'
    '- "Show me lead source insights"\n'
    '- "What\'s the trend in monthly leads?"\n\n'
    "You can also ask by voice: start a recording, then stop it or wait for the 15 second limit."
)

MICROPHONE_MESSAGE = (
    "I'm sorry, I couldn't access your microphone. Please check microphone permissions "
    "and try again. You can still type your questions!"
)
NOT_CONFIGURED_MESSAGE = (
    "Voice transcription is not configured. Please type your question instead."
)
TOO_SHORT_MESSAGE = "The recording was too short, please try again."
NO_SPEECH_MESSAGE = "I couldn't hear any speech in that recording, please try again."
UNSUPPORTED_FORMAT_MESSAGE = "That audio format isn't supported, please try again or type your question."
TRANSCRIPTION_FAILED_MESSAGE = (
    "I'm sorry, I had trouble transcribing your audio. Please try again or type your question."
)

_ERROR_MESSAGES = {
    "DeviceUnavailable": MICROPHONE_MESSAGE,
    "InvalidCredentials": NOT_CONFIGURED_MESSAGE,
    "TooShort": TOO_SHORT_MESSAGE,
    "EmptyInput": TOO_SHORT_MESSAGE,
    "InvalidFormat": UNSUPPORTED_FORMAT_MESSAGE,
}


def user_message_for(error: RealtyInsightsError) -> str:
    """User-facing wording for a pipeline error. Never includes provider text."""
    return _ERROR_MESSAGES.get(error.kind, TRANSCRIPTION_FAILED_MESSAGE)


class ChatOrchestrator:
    """Owns one conversation and the voice/insight activities feeding it."""

    def __init__(self,
                 capture_factory: Callable[[], AudioCapture],
                 assembler: AudioAssembler,
                 transcription_client: TranscriptionClient,
                 insight_client: InsightClient,
                 snapshot_provider: Callable[[], AnalyticsSnapshot],
                 publisher: Optional[ChatPublisher] = None,
                 constraints: Optional[CaptureConstraints] = None,
                 auto_submit: bool = False):
        """Initialize chat orchestrator.

        Args:
            capture_factory: Creates a fresh AudioCapture for each recording
            assembler: Joins captured chunks
            transcription_client: Turns recordings into text
            insight_client: Answers analytics questions
            snapshot_provider: Returns the analytics data current at question time
            publisher: Receives every appended message and status change
            constraints: Microphone constraints for each capture
            auto_submit: Submit a successful transcript without waiting for the user
        """
        self.capture_factory = capture_factory
        self.assembler = assembler
        self.transcription_client = transcription_client
        self.insight_client = insight_client
        self.snapshot_provider = snapshot_provider
        self.publisher = publisher or ChatPublisher()
        self.constraints = constraints or CaptureConstraints()
        self.auto_submit = auto_submit

        self.state = ConversationState()
        self._capture: Optional[AudioCapture] = None
        self._voice_task: Optional[asyncio.Task] = None

        self._append(MessageRole.ASSISTANT, GREETING)

    @property
    def status(self) -> ChatStatus:
        return self.state.status

    @property
    def messages(self):
        return self.state.messages

    @property
    def input_text(self) -> str:
        return self.state.input_text

    @property
    def input_enabled(self) -> bool:
        return self.state.input_enabled

    def set_input(self, text: str) -> None:
        """Replace the pending input text. Ignored while busy."""
        if self.state.input_enabled:
            self.state.input_text = text

    async def start_recording(self) -> bool:
        """Begin a voice question.

        Returns:
            True if capture started
        """
        if self.state.status is not ChatStatus.IDLE:
            logger.debug(f"start_recording ignored in state {self.state.status.value}")
            return False

        # Claim the state before awaiting so a second call is gated out
        self._set_status(ChatStatus.CAPTURING)
        capture = self.capture_factory()
        try:
            await capture.start(self.constraints)
        except DeviceUnavailable as e:
            logger.warning(f"Microphone unavailable: {e.provider_message or e}")
            capture.close()
            self._append(MessageRole.ASSISTANT, user_message_for(e))
            self._set_status(ChatStatus.IDLE)
            return False
        except Exception as e:
            logger.error(f"Failed to start capture: {e}", exc_info=True)
            capture.close()
            self._append(MessageRole.ASSISTANT, MICROPHONE_MESSAGE)
            self._set_status(ChatStatus.IDLE)
            return False

        self._capture = capture
        self._voice_task = asyncio.create_task(self._run_voice_pipeline(capture))
        logger.info("Voice recording started")
        return True

    def stop_recording(self) -> None:
        """Stop the running capture. No-op in any state other than CAPTURING."""
        if self.state.status is not ChatStatus.CAPTURING or self._capture is None:
            logger.debug(f"stop_recording ignored in state {self.state.status.value}")
            return
        self._capture.stop()

    async def wait_until_idle(self) -> None:
        """Wait for the background voice pipeline, if any, to finish."""
        task = self._voice_task
        if task is not None:
            await task

    async def _run_voice_pipeline(self, capture: AudioCapture) -> None:
        transcript = ""
        try:
            transcript = await self._capture_and_transcribe(capture)
        except Exception as e:
            logger.error(f"Unexpected error in voice pipeline: {e}", exc_info=True)
            self._append(MessageRole.ASSISTANT, TRANSCRIPTION_FAILED_MESSAGE)
        finally:
            capture.close()
            self._capture = None
            self._set_status(ChatStatus.IDLE)

        if transcript and self.auto_submit:
            await self.submit(transcript)

    async def _capture_and_transcribe(self, capture: AudioCapture) -> str:
        chunks: List[AudioChunk] = []
        try:
            async for chunk in capture.chunks():
                chunks.append(chunk)
        except DeviceUnavailable as e:
            logger.error(f"Capture failed: {e.provider_message or e}")
            self._append(MessageRole.ASSISTANT, user_message_for(e))
            return ""

        logger.info(f"Capture finished ({capture.stop_reason}) with {len(chunks)} chunks")

        try:
            recording = self.assembler.require_submittable(
                self.assembler.assemble(chunks, RECORDING_MIME_TYPE, capture.pcm_format)
            )
        except (EmptyInput, TooShort) as e:
            logger.info(f"Recording not submitted: {e}")
            self._append(MessageRole.ASSISTANT, user_message_for(e))
            return ""

        self._set_status(ChatStatus.TRANSCRIBING)
        result = await self.transcription_client.transcribe(recording)
        if not result.ok:
            self._append(MessageRole.ASSISTANT, user_message_for(result.error))
            return ""

        if not result.text:
            self._append(MessageRole.ASSISTANT, NO_SPEECH_MESSAGE)
            return ""

        self.state.input_text = result.text
        confirmation = f'Audio transcribed: "{result.text}"'
        if not self.auto_submit:
            confirmation += "\n\nPress Enter to ask this question!"
        self._append(MessageRole.ASSISTANT, confirmation)
        return result.text

    async def submit(self, text: Optional[str] = None) -> Optional[ChatMessage]:
        """Ask a question.

        Args:
            text: Question text; the pending input is used when omitted

        Returns:
            The assistant's answer message, or None if nothing was submitted
        """
        if self.state.status is not ChatStatus.IDLE:
            logger.debug(f"submit ignored in state {self.state.status.value}")
            return None

        question = (self.state.input_text if text is None else text).strip()
        if not question:
            return None

        self.state.input_text = ""
        self._append(MessageRole.USER, question)
        self._set_status(ChatStatus.AWAITING_INSIGHT)
        try:
            snapshot = self.snapshot_provider()
            result = await self.insight_client.generate_insight(question, snapshot)
            if not result.text.strip():
                logger.info("Insight provider returned an empty answer, using fallback")
                result = self.insight_client.fallback_answer(question, snapshot)
            return self._append(MessageRole.ASSISTANT, result.text, kind=result.kind)
        finally:
            self._set_status(ChatStatus.IDLE)

    async def close(self) -> None:
        """Stop any capture and wait for the pipeline to drain."""
        self.stop_recording()
        await self.wait_until_idle()

    def _append(self, role: MessageRole, content: str,
                kind: ResponseKind = ResponseKind.TEXT) -> ChatMessage:
        message = ChatMessage(role=role, content=content, kind=kind)
        self.state.append(message)
        self.publisher.publish_message(message)
        return message

    def _set_status(self, status: ChatStatus) -> None:
        if self.state.status is status:
            return
        logger.debug(f"Chat status {self.state.status.value} -> {status.value}")
        self.state.status = status
        self.publisher.publish_status(status)
