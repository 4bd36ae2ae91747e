"""Microphone capture pushing audio frames from a background thread."""

import time
import logging
from threading import Thread, Event
from typing import Optional
from datetime import datetime

import numpy as np
import pyaudio

from .base import AbstractAudioSource, FrameCallback, ClosedCallback
from ..errors import AudioCaptureError
from ..models.audio import AudioFrame, AudioStats

logger = logging.getLogger(__name__)


def microphone_available(device_index: Optional[int] = None) -> bool:
    """Return True if PyAudio can see a usable input device."""
    instance = pyaudio.PyAudio()
    try:
        if device_index is None:
            info = instance.get_default_input_device_info()
        else:
            info = instance.get_device_info_by_index(device_index)
        return int(info.get('maxInputChannels', 0)) > 0
    except OSError as e:
        logger.debug(f"No input device available: {e}")
        return False
    finally:
        instance.terminate()


class MicrophoneSource(AbstractAudioSource):
    """Continuous microphone capture."""

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        device_index: Optional[int] = None,
        format: int = pyaudio.paInt16,
    ):
        """Initialize microphone capture with specified parameters.

        Args:
            sample_rate: Audio sample rate (16kHz is what speech services expect)
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            device_index: PyAudio input device, None for the default one
            format: Audio format (16-bit signed int)
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.device_index = device_index
        self.format = format

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0
        self.peak_level = 0.0

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None
        self._on_frame: Optional[FrameCallback] = None
        self._on_closed: Optional[ClosedCallback] = None

    def open(self, on_frame: FrameCallback, on_closed: Optional[ClosedCallback] = None) -> None:
        """Open the input stream and start the capture thread."""
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        logger.info("Starting audio recording")
        try:
            self.stream = self.__open_audio_stream()
        except OSError as e:
            self.__release_audio()
            raise AudioCaptureError(f"Unable to open microphone: {e}") from e

        self._on_frame = on_frame
        self._on_closed = on_closed
        self.stop_event.clear()
        self.start_time = datetime.now()
        self.total_chunks = 0
        self.peak_level = 0.0

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.is_recording = True
        self.recording_thread.start()

    def close(self) -> None:
        """Stop recording and clean up resources."""
        if not self.is_recording:
            logger.debug("No recording in progress")
            return

        logger.info("Stopping audio recording")
        self.stop_event.set()

        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")

        self.is_recording = False
        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}")

    def __open_audio_stream(self):
        self.pyaudio_instance = pyaudio.PyAudio()
        stream = self.pyaudio_instance.open(
            format=self.format,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            input_device_index=self.device_index,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def __release_audio(self) -> None:
        if self.stream is not None:
            try:
                self.stream.stop_stream()
                self.stream.close()
            except OSError as e:
                logger.warning(f"Error closing audio stream: {e}")
            self.stream = None
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None

    def __read_audio_chunk(self) -> bytes:
        audio_chunk = self.stream.read(
            self.chunk_size,
            exception_on_overflow=False
        )
        self.total_chunks += 1
        return audio_chunk

    def __publish_frame(self, audio_chunk: bytes) -> None:
        samples = np.frombuffer(audio_chunk, dtype=np.int16)
        if samples.size:
            peak = np.abs(samples.astype(np.int32)).max() / 32768.0
            self.peak_level = float(peak)

        self._on_frame(AudioFrame(
            data=audio_chunk,
            timestamp=time.time(),
            sequence_number=self.total_chunks,
            sample_rate=self.sample_rate,
            channels=self.channels,
        ))

    def _record_continuously(self) -> None:
        """Internal method: continuous recording loop in background thread."""
        failure = None
        try:
            while not self.stop_event.is_set():
                audio_chunk = self.__read_audio_chunk()
                self.__publish_frame(audio_chunk)
        except OSError as e:
            logger.error(f"Audio input failed: {e}")
            failure = f"Audio input failed: {e}"
        finally:
            self.__release_audio()

        if failure is not None and self._on_closed is not None:
            self._on_closed(failure)

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            peak_level=self.peak_level,
        )
