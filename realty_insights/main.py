"""Main application entry point for Realty Insights."""

import sys
import asyncio
import argparse
import logging
import mimetypes
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from . import __version__
from .config import RealtyInsightsConfig
from .exceptions import RealtyInsightsError
from .models.audio import AudioRecording
from .models.formats import MAX_UPLOAD_BYTES, SUPPORTED_FORMATS
from .services import (
    FileSnapshotProvider,
    create_chat_orchestrator,
    create_insight_client,
    create_transcription_client,
)

logger = logging.getLogger(__name__)


class Application:
    """Loads configuration once and runs one CLI command."""

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        self.config = RealtyInsightsConfig(config_path)
        # Command line level wins over the config file
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.console = Console()

    async def ask(self, question: str, snapshot_path: Optional[str] = None) -> None:
        snapshot = FileSnapshotProvider(snapshot_path or self.config.get_snapshot_path())()
        client = create_insight_client(self.config)
        with self.console.status("Analyzing your data..."):
            result = await client.generate_insight(question.strip(), snapshot)

        if not result.text.strip():
            result = client.fallback_answer(question.strip(), snapshot)
        if result.error:
            self.console.print(f"⚠️  Insight provider unavailable ({result.error.kind}), "
                               f"showing offline analysis", style="yellow")
        self.console.print(Markdown(result.text))

    async def transcribe(self, audio_path: str) -> int:
        path = Path(audio_path)
        data = path.read_bytes()
        if len(data) > MAX_UPLOAD_BYTES:
            self.console.print(f"❌ {path.name} exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit",
                               style="bold red")
            return 1

        mime_type = mimetypes.guess_type(path.name)[0] or ""
        client = create_transcription_client(self.config)
        with self.console.status(f"Transcribing {path.name}..."):
            result = await client.transcribe(AudioRecording(data=data, mime_type=mime_type), path.name)

        if not result.ok:
            self.console.print(f"❌ {result.error.kind}: {result.error}", style="bold red")
            return 1

        self.console.print(result.text)
        logger.info(f"Transcribed {path.name} in {result.processing_time:.2f}s")
        return 0

    async def voice(self, submit: bool) -> int:
        from .ui import ChatScreen

        screen = ChatScreen(create_chat_orchestrator(self.config), console=self.console,
                            max_duration_seconds=float(self.config.get('audio.max_duration_seconds', 15)))
        transcript = await screen.ask_by_voice(submit=submit)
        return 0 if transcript else 1

    async def chat(self) -> None:
        from .ui import ChatScreen

        screen = ChatScreen(create_chat_orchestrator(self.config), console=self.console,
                            max_duration_seconds=float(self.config.get('audio.max_duration_seconds', 15)))
        await screen.run()

    def serve(self, host: Optional[str], port: Optional[int]) -> None:
        import uvicorn
        from .server import RateLimiter, create_app

        app = create_app(
            transcription_client=create_transcription_client(self.config),
            insight_client=create_insight_client(self.config),
            rate_limiter=RateLimiter(
                window_seconds=float(self.config.get('server.rate_limit_window_seconds', 60)),
                max_requests=int(self.config.get('server.rate_limit_max_requests', 3)),
            ),
        )
        host = host or self.config.get('server.host', '127.0.0.1')
        port = port or int(self.config.get('server.port', 8000))
        logger.info(f"Serving API on {host}:{port}")
        uvicorn.run(app, host=host, port=port, log_config=None)

    def formats(self) -> None:
        table = Table(title="Supported audio formats")
        table.add_column("MIME type")
        table.add_column("Extension")
        table.add_column("Description")
        for audio_format in SUPPORTED_FORMATS:
            table.add_row(audio_format.mime_type, audio_format.extension, audio_format.description)
        self.console.print(table)
        self.console.print(f"Maximum upload size: {MAX_UPLOAD_BYTES // (1024 * 1024)}MB")


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    # Get log file path from config
    log_file_path = config.get('logging.file_path', 'data/logs/realty_insights.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    # Set up handlers
    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    # Log startup
    logger = logging.getLogger(__name__)
    logger.info("=" * 50)
    logger.info("Realty Insights starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Realty Insights - voice and text analytics assistant for a real-estate CRM",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in defaults)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Realty Insights v{__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    ask_parser = subparsers.add_parser("ask", help="Ask one analytics question")
    ask_parser.add_argument("question", help="Question text")
    ask_parser.add_argument("--snapshot", help="Analytics snapshot JSON (overrides config)")

    transcribe_parser = subparsers.add_parser("transcribe", help="Transcribe an audio file")
    transcribe_parser.add_argument("audio_file", help="Audio file to transcribe")

    voice_parser = subparsers.add_parser("voice", help="Record one voice question and transcribe it")
    voice_parser.add_argument("--ask", action="store_true", help="Also ask the transcribed question")

    subparsers.add_parser("chat", help="Interactive chat panel")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind host (overrides config)")
    serve_parser.add_argument("--port", type=int, help="Bind port (overrides config)")

    subparsers.add_parser("formats", help="List supported audio formats")

    return parser


def main(argv: Optional[list] = None) -> None:
    """Main entry point for Realty Insights."""
    args = build_parser().parse_args(argv)

    exit_code = 0
    try:
        app = Application(args.config, args.log_level)
        if args.command == "ask":
            asyncio.run(app.ask(args.question, args.snapshot))
        elif args.command == "transcribe":
            exit_code = asyncio.run(app.transcribe(args.audio_file))
        elif args.command == "voice":
            exit_code = asyncio.run(app.voice(args.ask))
        elif args.command == "chat":
            asyncio.run(app.chat())
        elif args.command == "serve":
            app.serve(args.host, args.port)
        elif args.command == "formats":
            app.formats()
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except (RealtyInsightsError, FileNotFoundError) as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
