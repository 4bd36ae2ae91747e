"""Lexical annotators tagging the transcript."""

from .base import AbstractLexicalAnnotator
from .google_annotator import GoogleLanguageAnnotator

__all__ = [
    "AbstractLexicalAnnotator",
    "GoogleLanguageAnnotator",
]
