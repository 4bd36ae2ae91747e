"""Builds a fully wired transcription session from configuration."""

import logging
from functools import partial
from typing import Optional

from .transcription_session import TranscriptionSession
from ..annotation import GoogleLanguageAnnotator
from ..audio import AbstractAudioSource, MicrophoneSource, WaveFileSource
from ..config import TranscriberConfig
from ..permissions import CredentialsPermissionProvider
from ..transcription import GoogleStreamingSpeechBackend

logger = logging.getLogger(__name__)


def create_session(config: TranscriberConfig,
                   input_path: Optional[str] = None) -> TranscriptionSession:
    """Create a session using Google services and the configured audio input.

    Args:
        config: Application configuration
        input_path: Optional wav file replayed instead of the microphone

    Returns:
        A session ready for ``request_authorization()``
    """
    credentials_path = config.get('google_cloud.credentials_path')
    language = config.get('google_cloud.language', 'en-US')
    device_index = config.get('audio.device_index')

    audio_source = _create_audio_source(config, input_path)
    permission_provider = CredentialsPermissionProvider(
        credentials_path,
        check_microphone=input_path is None,
        device_index=device_index,
    )
    annotator = GoogleLanguageAnnotator(credentials_path, language=language)

    session = TranscriptionSession(
        permission_provider=permission_provider,
        audio_source=audio_source,
        backend_factory=partial(_create_google_speech_backend, config, audio_source),
        annotator=annotator,
        topic=config.get('session.topic', 'session.state'),
        annotation_interval=config.get('session.annotation_interval_seconds', 1.0),
        authorization_timeout=config.get('session.authorization_timeout_seconds'),
        update_timeout=config.get('session.update_timeout_seconds'),
        audio_end_grace=config.get('session.audio_end_grace_seconds', 5.0),
    )
    logger.info(f"Session created (input: {input_path or 'microphone'}, language: {language})")
    return session


def _create_audio_source(config: TranscriberConfig,
                         input_path: Optional[str]) -> AbstractAudioSource:
    chunk_size = config.get('audio.chunk_size', 1024)
    if input_path:
        return WaveFileSource(input_path, chunk_size=chunk_size)

    sample_rate = config.get('audio.sample_rate', 16000)
    channels = config.get('audio.channels', 1)
    logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/chunk, {channels} channels")
    return MicrophoneSource(
        sample_rate=sample_rate,
        chunk_size=chunk_size,
        channels=channels,
        device_index=config.get('audio.device_index'),
    )


def _create_google_speech_backend(config: TranscriberConfig,
                                  audio_source: AbstractAudioSource) -> GoogleStreamingSpeechBackend:
    """Create a streaming backend matching the audio source format."""
    language = config.get('google_cloud.language', 'en-US')
    use_enhanced = config.get('google_cloud.use_enhanced_model', True)
    enable_punctuation = config.get('google_cloud.enable_automatic_punctuation', True)

    logger.info("Initializing Google Speech backend...")
    logger.debug(f"Config: language={language}, enhanced={use_enhanced}, punctuation={enable_punctuation}")

    return GoogleStreamingSpeechBackend(
        credentials_path=config.get('google_cloud.credentials_path'),
        sample_rate=audio_source.sample_rate,
        channels=audio_source.channels,
        language=language,
        use_enhanced=use_enhanced,
        enable_automatic_punctuation=enable_punctuation,
        model=config.get('google_cloud.model', 'latest_long'),
    )
