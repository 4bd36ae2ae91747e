"""Pytest configuration and fixtures for Transcriber tests."""

import re
import time
import uuid
import wave
import logging
import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

import numpy as np
import pytest

from transcriber.annotation.base import AbstractLexicalAnnotator
from transcriber.audio.base import AbstractAudioSource
from transcriber.errors import AnnotationError, AudioCaptureError, BackendError
from transcriber.models.annotation import Annotation, TagKind
from transcriber.models.audio import AudioFrame
from transcriber.models.session import AuthorizationStatus
from transcriber.models.transcription import TranscriptUpdate
from transcriber.permissions.base import AbstractPermissionProvider
from transcriber.services.transcription_session import TranscriptionSession
from transcriber.transcription.base import AbstractTranscriptionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with fake collaborators")
    config.addinivalue_line("markers", "integration: tests wiring real threads and files together")


class FakePermissionProvider(AbstractPermissionProvider):
    """Answers immediately with a fixed status, or never when ``respond`` is off."""

    def __init__(self, status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
                 respond: bool = True):
        self.status = status
        self.respond = respond
        self.callbacks = []

    def request_authorization(self, callback):
        self.callbacks.append(callback)
        if self.respond:
            callback(self.status)


class FakeAudioSource(AbstractAudioSource):
    """Audio source driven by the test through ``push`` and ``end``."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.is_open = False
        self.open_count = 0
        self.close_count = 0
        self.on_frame = None
        self.on_closed = None
        self.sequence_number = 0

    def open(self, on_frame, on_closed=None):
        if self.fail:
            raise AudioCaptureError("No input device")
        self.open_count += 1
        self.is_open = True
        self.on_frame = on_frame
        self.on_closed = on_closed

    def close(self):
        self.close_count += 1
        self.is_open = False

    def push(self, data: bytes = b'\x00\x00' * 160) -> None:
        self.sequence_number += 1
        self.on_frame(AudioFrame(data=data, timestamp=time.time(),
                                 sequence_number=self.sequence_number))

    def end(self, reason=None) -> None:
        self.on_closed(reason)


class FakeBackend(AbstractTranscriptionBackend):
    """Backend whose updates are emitted by the test."""

    def __init__(self, fail: bool = False):
        super().__init__()
        self.fail = fail
        self.frames = []
        self.started = False
        self.finished = False
        self.cancelled = False
        self.on_update = None
        self.on_availability_changed = None

    def start(self, on_update, on_availability_changed=None):
        if self.fail:
            raise BackendError("Speech service unreachable")
        self.started = True
        self.on_update = on_update
        self.on_availability_changed = on_availability_changed

    def submit_frame(self, frame):
        self.frames.append(frame)

    def finish(self):
        self.finished = True

    def cancel(self):
        self.cancelled = True

    def emit(self, text=None, is_final=False, error=None) -> None:
        self.on_update(TranscriptUpdate(text=text, is_final=is_final, error=error))


class FakeBackendFactory:
    """Backend factory remembering every backend it built."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.backends = []

    def __call__(self):
        backend = FakeBackend(fail=self.fail)
        self.backends.append(backend)
        return backend

    @property
    def latest(self) -> FakeBackend:
        return self.backends[-1]


class LexiconAnnotator(AbstractLexicalAnnotator):
    """Tags words found in a small fixed lexicon."""

    LEXICON = {
        "paris": TagKind.PLACE,
        "london": TagKind.PLACE,
        "alice": TagKind.PERSON,
        "acme": TagKind.ORGANIZATION,
        "nice": TagKind.ADJECTIVE,
        "quickly": TagKind.ADVERB,
        "three": TagKind.NUMBER,
        "dog": TagKind.NOUN,
        "weather": TagKind.NOUN,
    }

    def __init__(self):
        self.calls = []
        self.fail = False

    def annotate(self, text):
        self.calls.append(text)
        if self.fail:
            raise AnnotationError("Tagger offline")
        annotations = []
        for match in re.finditer(r"\w+", text):
            kind = self.LEXICON.get(match.group().lower())
            if kind is not None:
                annotations.append(Annotation(kind, match.group()))
        return annotations


class ManualTimer:
    """Timer that only ticks when the test calls ``fire``."""

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    @property
    def is_active(self):
        return self.started and not self.cancelled

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.is_active:
            self.callback()


class ManualTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, callback):
        timer = ManualTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def latest(self) -> ManualTimer:
        return self.timers[-1]


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StateRecorder:
    """Keeps every snapshot published by a session."""

    def __init__(self):
        self.states = []

    def on_state(self, state):
        self.states.append(state)

    @property
    def statuses(self):
        return [state.status for state in self.states]


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def topic():
    """A pub/sub topic no other test publishes on."""
    return f"test_session_{uuid.uuid4().hex}"


@pytest.fixture
def permission_provider():
    return FakePermissionProvider()


@pytest.fixture
def audio_source():
    return FakeAudioSource()


@pytest.fixture
def backend_factory():
    return FakeBackendFactory()


@pytest.fixture
def annotator():
    return LexiconAnnotator()


@pytest.fixture
def timer_factory():
    return ManualTimerFactory()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_session(topic, permission_provider, audio_source, backend_factory,
                 annotator, timer_factory, clock):
    """Build sessions wired to the fake collaborators; closes them afterwards."""
    sessions = []

    def factory(**overrides):
        kwargs = dict(
            permission_provider=permission_provider,
            audio_source=audio_source,
            backend_factory=backend_factory,
            annotator=annotator,
            topic=topic,
            timer_factory=timer_factory,
            clock=clock,
        )
        kwargs.update(overrides)
        session = TranscriptionSession(**kwargs)
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        session.close()


@pytest.fixture
def session(make_session):
    return make_session()


@pytest.fixture
def authorized_session(session):
    session.request_authorization()
    session.drain()
    return session


@pytest.fixture
def recorder(session):
    recorder = StateRecorder()
    session.subscribe(recorder.on_state)
    yield recorder
    session.unsubscribe(recorder.on_state)


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2
        mock_pyaudio_instance.get_default_input_device_info.return_value = {
            'name': 'Fake microphone', 'maxInputChannels': 1,
        }

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


def write_wave(path: Path, audio: bytes, channels: int = 1, sample_rate: int = 16000) -> str:
    with wave.open(str(path), 'wb') as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)  # 16-bit
        wf.setframerate(sample_rate)
        wf.writeframes(audio)
    return str(path)


@pytest.fixture
def wave_writer():
    """Write 16-bit PCM bytes to a wav file and return its path."""
    return write_wave


@pytest.fixture
def sample_audio_file(temp_data_dir, sample_audio_chunk):
    """Create a mono 16kHz WAV file of ten chunks."""
    return write_wave(Path(temp_data_dir) / "test_audio.wav", sample_audio_chunk * 10)


@pytest.fixture
def stereo_audio_file(temp_data_dir):
    """Create a stereo WAV file whose channels average to a known value."""
    left = np.full(1024, 1000, dtype=np.int16)
    right = np.full(1024, 3000, dtype=np.int16)
    interleaved = np.column_stack((left, right)).astype(np.int16).tobytes()
    return write_wave(Path(temp_data_dir) / "stereo.wav", interleaved, channels=2)


@pytest.fixture
def credentials_file(temp_data_dir):
    """A file standing in for a service account key; loading it is patched."""
    path = Path(temp_data_dir) / "service-account.json"
    path.write_text('{"type": "service_account"}', encoding='utf-8')
    return str(path)
