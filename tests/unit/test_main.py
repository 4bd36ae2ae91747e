"""Unit tests for the command line entry point."""

import io
import logging
import threading
from pathlib import Path
from unittest.mock import Mock

import pytest
from rich.console import Console

from transcriber.main import Server, parse_args, setup_logging
from transcriber.models.annotation import Annotation, TagKind
from transcriber.models.session import SessionSnapshot, SessionStatus
from transcriber.ui.transcription_screen import TranscriptionScreen


@pytest.mark.unit
class TestParseArgs:

    def test_defaults(self):
        args = parse_args([])

        assert args.config == "transcriber.yaml"
        assert args.log_level is None
        assert args.duration is None
        assert args.input is None
        assert args.no_screen is False

    def test_options(self):
        args = parse_args(["--config", "other.yaml", "--log-level", "DEBUG",
                           "--duration", "12.5", "--input", "talk.wav", "--no-screen"])

        assert args.config == "other.yaml"
        assert args.log_level == "DEBUG"
        assert args.duration == 12.5
        assert args.input == "talk.wav"
        assert args.no_screen is True

    def test_invalid_log_level(self):
        with pytest.raises(SystemExit):
            parse_args(["--log-level", "LOUD"])


@pytest.mark.unit
class TestSetupLogging:

    def test_file_and_console_handlers(self, temp_data_dir):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        log_path = Path(temp_data_dir) / "logs" / "transcriber.log"
        config = Mock()
        config.get.side_effect = lambda key, default=None: {
            'logging.file_path': str(log_path),
            'logging.console_output': True,
        }.get(key, default)

        try:
            setup_logging(config, "debug")

            assert log_path.exists()
            assert root.level == logging.DEBUG
            levels = sorted(h.level for h in root.handlers)
            assert levels == [logging.DEBUG, logging.WARNING]
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


@pytest.mark.unit
class TestServer:

    def test_on_state_sets_events(self):
        server = Server.__new__(Server)
        server.authorization_settled = threading.Event()
        server.session_stopped = threading.Event()

        server.on_state(SessionSnapshot(status=SessionStatus.authorizing()))
        assert not server.authorization_settled.is_set()

        server.on_state(SessionSnapshot(status=SessionStatus.denied("Denied.")))
        assert server.authorization_settled.is_set()

        server.on_state(SessionSnapshot(status=SessionStatus.stopped("Finished.")))
        assert server.session_stopped.is_set()


@pytest.mark.unit
class TestTranscriptionScreen:

    def test_summary(self):
        output = io.StringIO()
        screen = TranscriptionScreen(Mock(), console=Console(file=output, width=100))
        state = SessionSnapshot(
            transcript="Paris is nice",
            annotations=(Annotation(TagKind.PLACE, "Paris"), Annotation(TagKind.ADJECTIVE, "nice")),
            status=SessionStatus.stopped("Finished."),
        )

        screen.print_summary(state)

        text = output.getvalue()
        assert "Paris is nice" in text
        assert "Place" in text
        assert "Adjective" in text

    def test_run_until_stopped(self):
        output = io.StringIO()
        session = Mock()
        session.state = SessionSnapshot(transcript="hello", status=SessionStatus.recording())
        screen = TranscriptionScreen(session, console=Console(file=output, width=100),
                                     refresh_per_second=50)
        stop_event = threading.Event()
        stop_event.set()

        screen.run(stop_event)

        assert "hello" in output.getvalue()

    def test_run_for_duration(self):
        session = Mock()
        session.state = SessionSnapshot()
        screen = TranscriptionScreen(session, console=Console(file=io.StringIO(), width=100),
                                     refresh_per_second=50)

        screen.run(threading.Event(), duration=0.05)
