"""Google Cloud Natural Language lexical annotator."""

import logging
from typing import List, Optional, Tuple

from .base import AbstractLexicalAnnotator
from ..errors import AnnotationError
from ..models.annotation import Annotation, TagKind

from google.cloud import language_v1
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

ENTITY_KINDS = {
    language_v1.Entity.Type.PERSON: TagKind.PERSON,
    language_v1.Entity.Type.LOCATION: TagKind.PLACE,
    language_v1.Entity.Type.ORGANIZATION: TagKind.ORGANIZATION,
}

LEXICAL_KINDS = {
    language_v1.PartOfSpeech.Tag.ADJ: TagKind.ADJECTIVE,
    language_v1.PartOfSpeech.Tag.ADV: TagKind.ADVERB,
    language_v1.PartOfSpeech.Tag.NUM: TagKind.NUMBER,
    language_v1.PartOfSpeech.Tag.NOUN: TagKind.NOUN,
}


class GoogleLanguageAnnotator(AbstractLexicalAnnotator):
    """Annotate text with one ``annotate_text`` call (syntax + entities).

    Words inside a proper-name person, location or organization mention
    take the entity kind; every other word takes its part-of-speech kind
    when it has one.
    """

    def __init__(self, credentials_path: Optional[str] = None,
                 language: Optional[str] = "en-US", timeout: float = 5.0):
        self.credentials_path = credentials_path
        self.language = language.split('-')[0] if language else None
        self.timeout = timeout
        self.client = None

    def _get_client(self) -> language_v1.LanguageServiceClient:
        if self.client is None:
            if not self.credentials_path:
                raise AnnotationError("Google credentials path is required for annotation")
            try:
                credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
            except (OSError, ValueError) as e:
                raise AnnotationError(f"Unable to load Google credentials: {e}") from e
            self.client = language_v1.LanguageServiceClient(credentials=credentials)
        return self.client

    def annotate(self, text: str) -> List[Annotation]:
        if not text.strip():
            return []

        document = language_v1.Document(
            content=text,
            type_=language_v1.Document.Type.PLAIN_TEXT,
            language=self.language or "",
        )
        features = language_v1.AnnotateTextRequest.Features(
            extract_syntax=True,
            extract_entities=True,
        )
        try:
            response = self._get_client().annotate_text(
                request={
                    "document": document,
                    "features": features,
                    # UTF32 offsets are code point offsets, same as str indices
                    "encoding_type": language_v1.EncodingType.UTF32,
                },
                timeout=self.timeout,
            )
        except gax_exceptions.GoogleAPICallError as e:
            raise AnnotationError(f"Google Natural Language API error: {e.message}") from e

        annotations = annotations_from_response(text, response)
        logger.debug(f"Annotated {len(response.tokens)} tokens into {len(annotations)} annotations")
        return annotations


def _entity_spans(response) -> List[Tuple[int, int, TagKind]]:
    spans = []
    for entity in response.entities:
        kind = ENTITY_KINDS.get(entity.type_)
        if kind is None:
            continue
        for mention in entity.mentions:
            if mention.type_ != language_v1.EntityMention.Type.PROPER:
                continue
            begin = mention.text.begin_offset
            spans.append((begin, begin + len(mention.text.content), kind))
    return spans


def annotations_from_response(text: str, response) -> List[Annotation]:
    """Turn an ``AnnotateTextResponse`` into word-level annotations."""
    spans = _entity_spans(response)
    annotations = []
    for token in response.tokens:
        begin = token.text.begin_offset
        end = begin + len(token.text.content)

        kind = None
        for span_begin, span_end, span_kind in spans:
            if span_begin <= begin and end <= span_end:
                kind = span_kind
                break
        if kind is None:
            kind = LEXICAL_KINDS.get(token.part_of_speech.tag)
        if kind is None:
            continue

        annotations.append(Annotation(kind, text[begin:end]))
    return annotations
