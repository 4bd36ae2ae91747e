"""Replay a wav file as if it were a live input."""

import time
import wave
import logging
from pathlib import Path
from threading import Thread, Event
from typing import Optional

import numpy as np

from .base import AbstractAudioSource, FrameCallback, ClosedCallback
from ..errors import AudioCaptureError
from ..models.audio import AudioFrame

logger = logging.getLogger(__name__)


class WaveFileSource(AbstractAudioSource):
    """Audio source reading 16-bit PCM from a wav file.

    Stereo files are downmixed to mono. With ``realtime`` set, frames are
    paced at the file's own rate so the backend sees a live-like stream.
    """

    def __init__(self, wave_path: str, chunk_size: int = 1024, realtime: bool = True):
        self.wave_path = Path(wave_path)
        self.chunk_size = chunk_size
        self.realtime = realtime

        try:
            with wave.open(str(self.wave_path), 'rb') as wf:
                self.sample_width = wf.getsampwidth()
                self.sample_rate = wf.getframerate()
                self.file_channels = wf.getnchannels()
        except (OSError, wave.Error) as e:
            raise AudioCaptureError(f"Unable to read wav file {self.wave_path}: {e}") from e

        if self.sample_width != 2:
            raise AudioCaptureError(
                f"Only 16-bit wav files are supported, got {self.sample_width * 8}-bit")
        self.channels = 1

        self.stop_event = Event()
        self.replay_thread: Optional[Thread] = None
        self.is_recording = False
        self.total_chunks = 0

    def open(self, on_frame: FrameCallback, on_closed: Optional[ClosedCallback] = None) -> None:
        if self.is_recording:
            logger.warning("Replay already in progress")
            return

        try:
            wave_file = wave.open(str(self.wave_path), 'rb')
        except (OSError, wave.Error) as e:
            raise AudioCaptureError(f"Unable to open wav file {self.wave_path}: {e}") from e

        logger.info(f"Replaying {self.wave_path} ({self.sample_rate}Hz, "
                    f"{self.file_channels} channel(s))")
        self.stop_event.clear()
        self.total_chunks = 0
        self.replay_thread = Thread(target=self._replay,
                                    args=(wave_file, on_frame, on_closed),
                                    daemon=True)
        self.replay_thread.name = "WaveReplayThread"
        self.is_recording = True
        self.replay_thread.start()

    def close(self) -> None:
        if not self.is_recording:
            return

        self.stop_event.set()
        if self.replay_thread and self.replay_thread.is_alive():
            self.replay_thread.join(timeout=2.0)
            if self.replay_thread.is_alive():
                logger.warning("Replay thread did not stop cleanly")
        self.is_recording = False

    def _to_mono(self, frames: bytes) -> bytes:
        if self.file_channels == 1:
            return frames
        samples = np.frombuffer(frames, dtype=np.int16).reshape(-1, self.file_channels)
        return samples.mean(axis=1).astype(np.int16).tobytes()

    def _replay(self, wave_file, on_frame: FrameCallback,
                on_closed: Optional[ClosedCallback]) -> None:
        chunk_seconds = self.chunk_size / self.sample_rate
        try:
            while not self.stop_event.is_set():
                frames = wave_file.readframes(self.chunk_size)
                if not frames:
                    break
                self.total_chunks += 1
                on_frame(AudioFrame(
                    data=self._to_mono(frames),
                    timestamp=time.time(),
                    sequence_number=self.total_chunks,
                    sample_rate=self.sample_rate,
                    channels=1,
                ))
                if self.realtime:
                    self.stop_event.wait(chunk_seconds)
        finally:
            wave_file.close()

        logger.info(f"Replay finished after {self.total_chunks} chunks")
        if not self.stop_event.is_set() and on_closed is not None:
            on_closed("Audio input ended.")
