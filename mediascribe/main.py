"""Main application entry point for MediaScribe."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from .config import MediaScribeConfig
from .exceptions import MediaScribeError
from .services.session_manager import SessionManager
from .ui.progress_screen import ProgressScreen

logger = logging.getLogger(__name__)

VERSION = "MediaScribe v0.1.0"


def setup_logging(config: MediaScribeConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get_log_file_path()
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

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

    logger.info("=" * 50)
    logger.info("MediaScribe starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


async def transcribe_source(config: MediaScribeConfig, source: str, screen: ProgressScreen) -> int:
    """Run one transcription and render it; returns the process exit code."""
    manager = SessionManager(config)
    screen.start()
    try:
        result = await manager.transcribe_source(source)
    except (MediaScribeError, FileNotFoundError, ValueError) as e:
        logger.error(f"Transcription failed: {e}")
        screen.show_error(str(e))
        return 1
    finally:
        screen.stop()
        await manager.close()

    screen.show_result(result)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="MediaScribe - transcribe local or remote media with Whisper",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=VERSION
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    transcribe_parser = subparsers.add_parser("transcribe", help="Transcribe a file path or a LinkedIn/Google Drive URL")
    transcribe_parser.add_argument("source", help="Local media path or URL")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", type=str, help="Bind address (overrides config)")
    serve_parser.add_argument("--port", type=int, help="Port (overrides config)")

    return parser


def main(argv: Optional[list] = None) -> None:
    """Main entry point for MediaScribe."""
    args = build_parser().parse_args(argv)

    config = MediaScribeConfig(args.config)
    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))

    if args.command == "serve":
        from .web.app import run_server
        if args.host:
            config.set('server.host', args.host)
        if args.port:
            config.set('server.port', args.port)
        run_server(config)
        return

    screen = ProgressScreen()
    try:
        exit_code = asyncio.run(transcribe_source(config, args.source, screen))
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
