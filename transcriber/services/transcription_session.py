"""Continuous transcription session with periodic lexical annotation."""

import time
import logging
import threading
from dataclasses import replace
from typing import Callable, Optional, Tuple

from .actor import SessionActor
from .publisher import SessionStatePublisher, StateListener
from .timer import RepeatingTimer
from ..annotation.base import AbstractLexicalAnnotator
from ..audio.base import AbstractAudioSource
from ..errors import (
    AnnotationError,
    AudioCaptureError,
    AudioUnavailableError,
    AlreadyRecordingError,
    BackendError,
    BackendUnavailableError,
    NotAuthorizedError,
)
from ..models.annotation import Annotation
from ..models.session import (
    AUTHORIZATION_REASONS,
    AuthorizationState,
    AuthorizationStatus,
    SessionSnapshot,
    SessionState,
    SessionStatus,
)
from ..models.transcription import TranscriptUpdate
from ..permissions.base import AbstractPermissionProvider
from ..transcription.base import AbstractTranscriptionBackend

logger = logging.getLogger(__name__)

FINISHED = "Finished."
UNAVAILABLE = "Unavailable."
AUDIO_ENDED = "Audio input ended."
AUTHORIZATION_TIMED_OUT = "Authorization timed out."
UPDATE_TIMED_OUT = "Timed out waiting for transcription."
BACKEND_START_FAILED = "Unable to start speech recognition."
AUDIO_START_FAILED = "Unable to begin mic capture."


class TranscriptionSession:
    """Streams audio to a transcription backend and annotates the transcript.

    The session owns the transcript, the annotation list, the session status
    and the authorization state. All of them are only ever touched on the
    session's actor thread: public calls, permission answers, backend
    updates, audio-ended signals and timer ticks are all marshalled into its
    inbox. Every recording gets a new generation number and callbacks carry
    the generation they were created for, so anything still in flight from
    an earlier recording is dropped.

    Observers receive a ``SessionSnapshot`` after every change through
    ``subscribe``; the latest snapshot is also available as ``state``.

    :param permission_provider: Answers whether recording is allowed.
    :param audio_source: Live audio input, opened on start and closed on stop.
    :param backend_factory: Returns a fresh backend for each recording.
    :param annotator: Tags the transcript on every annotation tick.
    :param topic: Pub/sub topic snapshots are published on.
    :param annotation_interval: Seconds between annotation passes.
    :param authorization_timeout: Seconds to wait for a permission answer,
        None to wait forever.
    :param update_timeout: Seconds without backend updates after which a
        recording stops, None to wait forever.
    :param audio_end_grace: Seconds the backend gets to finalize after the
        audio source ended on its own.
    """

    def __init__(self,
                 permission_provider: AbstractPermissionProvider,
                 audio_source: AbstractAudioSource,
                 backend_factory: Callable[[], AbstractTranscriptionBackend],
                 annotator: AbstractLexicalAnnotator,
                 topic: str = "session.state",
                 annotation_interval: float = 1.0,
                 authorization_timeout: Optional[float] = None,
                 update_timeout: Optional[float] = None,
                 audio_end_grace: float = 5.0,
                 timer_factory: Callable[..., RepeatingTimer] = RepeatingTimer,
                 clock: Callable[[], float] = time.monotonic):
        self.permission_provider = permission_provider
        self.audio_source = audio_source
        self.backend_factory = backend_factory
        self.annotator = annotator
        self.annotation_interval = annotation_interval
        self.authorization_timeout = authorization_timeout
        self.update_timeout = update_timeout
        self.audio_end_grace = audio_end_grace
        self._timer_factory = timer_factory
        self._clock = clock

        self._state = SessionSnapshot()
        self._publisher = SessionStatePublisher(topic)
        self._actor = SessionActor()

        # Everything below is owned by the actor thread
        self._generation = 0
        self._pending_authorization: Optional[int] = None
        self._authorization_requests = 0
        self._authorization_timer: Optional[threading.Timer] = None
        self._timer = None
        self._backend: Optional[AbstractTranscriptionBackend] = None
        self._audio_open = False
        self._last_update_at: Optional[float] = None
        self._audio_ended_at: Optional[float] = None
        self._audio_ended_reason: Optional[str] = None

    # Observable state

    @property
    def state(self) -> SessionSnapshot:
        return self._state

    @property
    def transcript(self) -> str:
        return self._state.transcript

    @property
    def annotations(self) -> Tuple[Annotation, ...]:
        return self._state.annotations

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def authorization(self) -> AuthorizationState:
        return self._state.authorization

    @property
    def status_message(self) -> str:
        return self._state.status_message

    @property
    def is_recording(self) -> bool:
        return self._state.status.state is SessionState.RECORDING

    def subscribe(self, listener: StateListener) -> None:
        self._publisher.subscribe(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        self._publisher.unsubscribe(listener)

    # Caller operations

    def request_authorization(self) -> None:
        """Ask the permission provider for consent; the answer arrives later."""
        self._actor.call(self._request_authorization)

    def start(self) -> None:
        """Start recording.

        Raises:
            NotAuthorizedError: authorization has not been granted.
            AlreadyRecordingError: a recording is already running.
            BackendUnavailableError: the backend could not be started.
            AudioUnavailableError: the audio source could not be opened.
        """
        self._actor.call(self._start)

    def stop(self, reason: str = "Stopped.") -> None:
        """Stop recording; returns once capture and recognition are released.

        Does nothing when not recording, including after ``close()``.
        """
        if not self._actor.is_running:
            logger.debug(f"stop('{reason}') ignored: session closed")
            return
        self._actor.call(self._stop, reason)

    def drain(self) -> None:
        """Wait until everything queued on the session so far has been handled."""
        if self._actor.is_running:
            self._actor.call(lambda: None)

    def close(self) -> None:
        """Stop any live recording and shut the session thread down."""
        if not self._actor.is_running:
            return
        self._actor.call(self._close)
        self._actor.shutdown()
        self._publisher.close()

    def __enter__(self) -> "TranscriptionSession":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # Actor-side handlers

    def _commit(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        self._publisher.publish(self._state)

    def _request_authorization(self) -> None:
        self._authorization_requests += 1
        request_id = self._authorization_requests
        self._pending_authorization = request_id
        logger.info(f"Requesting authorization (request {request_id})")

        if not self.is_recording:
            self._commit(status=SessionStatus.authorizing())

        self._cancel_authorization_timeout()
        if self.authorization_timeout is not None:
            self._authorization_timer = threading.Timer(
                self.authorization_timeout,
                self._actor.post,
                args=(self._on_authorization_timeout, request_id),
            )
            self._authorization_timer.daemon = True
            self._authorization_timer.start()

        self.permission_provider.request_authorization(
            lambda status: self._actor.post(self._on_authorization, request_id, status))

    def _cancel_authorization_timeout(self) -> None:
        if self._authorization_timer is not None:
            self._authorization_timer.cancel()
            self._authorization_timer = None

    def _on_authorization(self, request_id: int, status: AuthorizationStatus) -> None:
        if request_id != self._pending_authorization:
            logger.debug(f"Ignoring answer to superseded authorization request {request_id}")
            return
        self._pending_authorization = None
        self._cancel_authorization_timeout()

        authorized = status is AuthorizationStatus.AUTHORIZED
        reason = AUTHORIZATION_REASONS[status]
        self._settle_authorization(AuthorizationState(authorized, reason))

    def _on_authorization_timeout(self, request_id: int) -> None:
        if request_id != self._pending_authorization:
            return
        self._pending_authorization = None
        self._authorization_timer = None
        logger.warning(f"Authorization request {request_id} timed out "
                       f"after {self.authorization_timeout}s")
        self._settle_authorization(AuthorizationState(False, AUTHORIZATION_TIMED_OUT))

    def _settle_authorization(self, authorization: AuthorizationState) -> None:
        logger.info(f"Authorization: {authorization.reason}")
        if self.is_recording:
            self._commit(authorization=authorization, status_message=authorization.reason)
        elif authorization.authorized:
            self._commit(authorization=authorization,
                         status=SessionStatus.authorized(),
                         status_message=authorization.reason)
        else:
            self._commit(authorization=authorization,
                         status=SessionStatus.denied(authorization.reason),
                         status_message=authorization.reason)

    def _start(self) -> None:
        authorization = self._state.authorization
        if not authorization.authorized:
            raise NotAuthorizedError(authorization.reason)
        if self.is_recording:
            raise AlreadyRecordingError()

        self._generation += 1
        generation = self._generation
        logger.info(f"Starting recording (generation {generation})")

        try:
            backend = self.backend_factory()
            self._backend = backend
            backend.start(
                on_update=lambda update: self._actor.post(self._on_update, generation, update),
                on_availability_changed=lambda available: self._actor.post(
                    self._on_availability_changed, generation, available),
            )
        except BackendError as e:
            logger.error(f"Transcription backend unavailable: {e}")
            self._tear_down(BACKEND_START_FAILED)
            raise BackendUnavailableError(str(e)) from e

        try:
            self.audio_source.open(
                on_frame=backend.submit_frame,
                on_closed=lambda reason: self._actor.post(self._on_audio_closed, generation, reason),
            )
            self._audio_open = True
        except AudioCaptureError as e:
            logger.error(f"Audio input unavailable: {e}")
            self._tear_down(AUDIO_START_FAILED)
            raise AudioUnavailableError(str(e)) from e

        self._last_update_at = self._clock()
        self._audio_ended_at = None
        self._audio_ended_reason = None
        # Must exist before listeners see RECORDING
        self._timer = self._timer_factory(
            self.annotation_interval,
            lambda: self._actor.post(self._on_tick, generation))
        self._timer.start()

        self._commit(transcript="", annotations=(),
                     status=SessionStatus.recording(), status_message="Recording.")

    def _stop(self, reason: str) -> None:
        if not self.is_recording:
            logger.warning(f"stop('{reason}') ignored: not recording ({self._state.status})")
            return
        self._tear_down(reason)

    def _tear_down(self, reason: str) -> None:
        """Release timer, audio and backend, then settle on STOPPED(reason)."""
        self._generation += 1

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._audio_open:
            self.audio_source.close()
            self._audio_open = False
        if self._backend is not None:
            self._backend.cancel()
            self._backend = None

        logger.info(f"Recording stopped: {reason}")
        self._commit(status=SessionStatus.stopped(reason), status_message=reason)

    def _close(self) -> None:
        self._pending_authorization = None
        self._cancel_authorization_timeout()
        if self.is_recording:
            self._tear_down("Session closed.")

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self.is_recording

    def _on_update(self, generation: int, update: TranscriptUpdate) -> None:
        if not self._is_current(generation):
            logger.debug(f"Dropping update from stale recording {generation}")
            return

        self._last_update_at = self._clock()
        if update.text is not None:
            self._commit(transcript=update.text)
            if not self._is_current(generation):
                # A listener stopped the recording
                return

        if update.error is not None:
            self._tear_down(update.error)
        elif update.is_final:
            self._tear_down(FINISHED)

    def _on_availability_changed(self, generation: int, available: bool) -> None:
        if available:
            logger.info("Transcription service available again")
            return

        if not self._is_current(generation):
            logger.debug(f"Ignoring availability change from stale recording {generation}")
            return

        logger.warning("Transcription service became unavailable")
        self._state = replace(self._state, authorization=AuthorizationState(False, UNAVAILABLE))
        self._tear_down(UNAVAILABLE)

    def _on_audio_closed(self, generation: int, reason: Optional[str]) -> None:
        if not self._is_current(generation):
            return

        reason = reason or AUDIO_ENDED
        logger.info(f"Audio source closed on its own: {reason}")
        self._audio_ended_at = self._clock()
        self._audio_ended_reason = reason
        self._backend.finish()

    def _on_tick(self, generation: int) -> None:
        if not self._is_current(generation):
            return

        now = self._clock()
        if self._audio_ended_at is not None \
                and now - self._audio_ended_at >= self.audio_end_grace:
            self._tear_down(self._audio_ended_reason)
            return
        if self.update_timeout is not None \
                and now - self._last_update_at >= self.update_timeout:
            self._tear_down(UPDATE_TIMED_OUT)
            return

        self._annotate()

    def _annotate(self) -> None:
        transcript = self._state.transcript
        try:
            annotations = tuple(self.annotator.annotate(transcript))
        except AnnotationError as e:
            logger.warning(f"Annotation pass failed: {e}")
            return
        self._commit(annotations=annotations)
