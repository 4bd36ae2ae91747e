"""Abstract base class for lexical annotators."""

from abc import ABC, abstractmethod
from typing import List

from ..models.annotation import Annotation


class AbstractLexicalAnnotator(ABC):
    """Tags the words of a text with entity or part-of-speech classes."""

    @abstractmethod
    def annotate(self, text: str) -> List[Annotation]:
        """Annotate the whole text from scratch.

        Only words whose class maps to a ``TagKind`` are returned, in the
        order they appear in ``text``.

        Raises:
            AnnotationError: if the text cannot be analyzed.
        """
