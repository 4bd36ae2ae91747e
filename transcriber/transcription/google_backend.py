"""Google Speech-to-Text streaming transcription backend."""

import queue
import logging
import threading
from typing import Iterator, List, Optional

from .base import AbstractTranscriptionBackend, UpdateCallback, AvailabilityCallback
from ..errors import BackendError
from ..models.audio import AudioFrame
from ..models.transcription import TranscriptUpdate

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleStreamingSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text streaming API backend with interim results."""

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 channels: int = 1,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 model: str = "latest_long"):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            sample_rate: Sample rate of the submitted LINEAR16 audio
            channels: Channel count of the submitted audio
            language: Language code (e.g., 'en-US', 'es-ES')
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            model: Recognition model name
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise BackendError("Google credentials path is required - cannot initialize without credentials")
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.client = None
        self.service_name = "Google Speech-to-Text"
        self.streaming_config = speech.StreamingRecognitionConfig(
            config=speech.RecognitionConfig(
                encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
                sample_rate_hertz=sample_rate,
                audio_channel_count=channels,
                language_code=self.language,
                use_enhanced=self.use_enhanced,
                enable_automatic_punctuation=self.enable_automatic_punctuation,
                model=model,
            ),
            interim_results=True,
        )

        self._frames: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self._cancelled = threading.Event()
        self._stream_thread: Optional[threading.Thread] = None
        self._final_segments: List[str] = []
        self._on_update: Optional[UpdateCallback] = None
        self._on_availability_changed: Optional[AvailabilityCallback] = None

    def start(self,
              on_update: UpdateCallback,
              on_availability_changed: Optional[AvailabilityCallback] = None) -> None:
        """Create the Speech client and open the recognition stream."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        try:
            credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        except (OSError, ValueError) as e:
            raise BackendError(f"Unable to load Google credentials: {e}") from e

        self.client = speech.SpeechClient(credentials=credentials)
        logger.info(f"Using Google Cloud project: {credentials.project_id}")

        self._on_update = on_update
        self._on_availability_changed = on_availability_changed
        self._stream_thread = threading.Thread(target=self._stream_loop, daemon=True)
        self._stream_thread.name = "GoogleSpeechStreamThread"
        self._stream_thread.start()

    def submit_frame(self, frame: AudioFrame) -> None:
        if not self._cancelled.is_set():
            self._frames.put(frame.data)

    def finish(self) -> None:
        """Close the request stream so the service finalizes what it has."""
        logger.debug("Audio finished, closing request stream")
        self._frames.put(None)

    def cancel(self) -> None:
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        self._frames.put(None)

        if self._stream_thread and self._stream_thread.is_alive() \
                and self._stream_thread is not threading.current_thread():
            self._stream_thread.join(timeout=2.0)
            if self._stream_thread.is_alive():
                logger.warning("Speech stream thread did not stop cleanly")

    def _requests(self) -> Iterator[speech.StreamingRecognizeRequest]:
        while True:
            chunk = self._frames.get()
            if chunk is None:
                return
            yield speech.StreamingRecognizeRequest(audio_content=chunk)

    def _emit(self, update: TranscriptUpdate) -> None:
        if not self._cancelled.is_set():
            self._on_update(update)

    def _stream_loop(self) -> None:
        try:
            responses = self.client.streaming_recognize(
                config=self.streaming_config, requests=self._requests())
            for response in responses:
                if self._cancelled.is_set():
                    return
                transcript = self._accumulate(response)
                if transcript is not None:
                    self._emit(TranscriptUpdate(text=transcript))
        except gax_exceptions.ServiceUnavailable as e:
            logger.error(f"Google STT service unavailable: {e}")
            if self._on_availability_changed is not None and not self._cancelled.is_set():
                self._on_availability_changed(False)
            self._emit(TranscriptUpdate(error=f"Google Speech service unavailable: {e.message}"))
            return
        except gax_exceptions.GoogleAPICallError as e:
            logger.error(f"Google STT API call error: {e}")
            self._emit(TranscriptUpdate(error=f"Google Speech API error: {e.message}"))
            return

        logger.debug("Recognition stream completed")
        self._emit(TranscriptUpdate(text=self.transcript, is_final=True))

    @property
    def transcript(self) -> str:
        """Everything finalized so far."""
        return " ".join(self._final_segments)

    def _accumulate(self, response: speech.StreamingRecognizeResponse) -> Optional[str]:
        """Fold a streaming response into the full transcript.

        Final results are appended to the finalized segments; interim results
        only ride along with the text returned for this response.
        """
        if not response.results:
            return None

        interim = []
        for result in response.results:
            if not result.alternatives:
                continue
            text = result.alternatives[0].transcript.strip()
            if not text:
                continue
            if result.is_final:
                self._final_segments.append(text)
            else:
                interim.append(text)

        logger.debug(f"Transcript: finalized={len(self._final_segments)} segments, "
                     f"interim='{' '.join(interim)}'")
        return " ".join(self._final_segments + interim)
