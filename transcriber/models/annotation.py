"""Lexical annotation models."""

from dataclasses import dataclass
from enum import Enum


class TagKind(Enum):
    """Word classes kept by an annotation pass."""
    PERSON = "Person"
    PLACE = "Place"
    ORGANIZATION = "Organization"
    ADJECTIVE = "Adjective"
    ADVERB = "Adverb"
    NUMBER = "Number"
    NOUN = "Noun"


@dataclass(frozen=True)
class Annotation:
    """A tagged span of the transcript."""
    kind: TagKind
    text: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.text}"
