"""Main application entry point for Transcriber."""

import sys
import argparse
import logging
import threading
from pathlib import Path
from typing import Optional

from . import __version__
from .config import TranscriberConfig, DEFAULT_CONFIG_PATH
from .errors import AudioCaptureError, StartError
from .models.session import SessionSnapshot, SessionState
from .services.session_factory import create_session
from .ui.transcription_screen import TranscriptionScreen

logger = logging.getLogger(__name__)

SETTLED_STATES = (SessionState.AUTHORIZED, SessionState.DENIED)


class Server:

    def __init__(self, config_path: str, log_level: Optional[str] = None):
        self.config = TranscriberConfig(config_path)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.session = None
        self.screen = None
        self.authorization_settled = threading.Event()
        self.session_stopped = threading.Event()

    def init(self, input_path: Optional[str] = None):
        logger.info("Initializing session...")
        self.session = create_session(self.config, input_path)
        self.session.subscribe(self.on_state)
        self.screen = TranscriptionScreen(self.session)

    def on_state(self, state: SessionSnapshot) -> None:
        if state.status.state in SETTLED_STATES:
            self.authorization_settled.set()
        elif state.status.state is SessionState.STOPPED:
            self.session_stopped.set()

    def authorize(self) -> bool:
        timeout = self.config.get('session.authorization_timeout_seconds')
        self.session.request_authorization()
        # The session settles to DENIED on its own timeout; this wait is a backstop
        if not self.authorization_settled.wait(timeout + 1.0 if timeout else None):
            return False
        return self.session.authorization.authorized

    def run(self, duration: Optional[float], show_screen: bool = True) -> int:
        try:
            if not self.authorize():
                print(f"Not authorized: {self.session.authorization.reason}")
                return 1

            self.session.start()
            if show_screen:
                self.screen.run(self.session_stopped, duration)
            else:
                self.session_stopped.wait(duration)
        except StartError as e:
            print(f"Unable to start recording: {e.reason}")
            return 1
        finally:
            self.cleanup()

        self.screen.print_summary(self.session.state)
        return 0

    def cleanup(self):
        if self.session is None:
            return
        if self.session.is_recording:
            self.session.stop("Stopped by user.")
        self.session.close()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/transcriber.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - warnings only, the live screen owns the terminal
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Transcriber starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def parse_args(argv):
    parser = argparse.ArgumentParser(
        description="Transcriber - live transcription with lexical analysis",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH})"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )
    parser.add_argument(
        "--duration",
        type=float,
        help="Stop recording after this many seconds (default: until Ctrl-C or the service finishes)"
    )
    parser.add_argument(
        "--input",
        type=str,
        help="Replay a 16-bit wav file instead of recording the microphone"
    )
    parser.add_argument(
        "--no-screen",
        action="store_true",
        help="Do not show the live screen, only print the final result"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Transcriber v{__version__}"
    )
    return parser.parse_args(argv)


def main() -> None:
    """Main entry point for Transcriber."""
    args = parse_args(sys.argv[1:])

    try:
        server = Server(args.config, args.log_level)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    try:
        server.init(args.input)
    except AudioCaptureError as e:
        print(f"Error: {e}")
        sys.exit(1)

    try:
        exit_code = server.run(args.duration, show_screen=not args.no_screen)
    except KeyboardInterrupt:
        server.cleanup()
        print("\nGoodbye!")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
