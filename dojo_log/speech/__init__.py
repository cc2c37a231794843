"""Speech engine port and adapters."""

from .base import SpeechEngine, SpeechEvent, SpeechEventKind, SpeechListener
from .recognizer import RecognizerEngine, extract_transcripts

__all__ = [
    "SpeechEngine",
    "SpeechEvent",
    "SpeechEventKind",
    "SpeechListener",
    "RecognizerEngine",
    "extract_transcripts",
]
