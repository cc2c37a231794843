"""
SpeechRecognition-backed engine.

Captures microphone audio with ``speech_recognition.Microphone`` (PyAudio)
in a background listener and transcribes each phrase with the Google Web
Speech API. The API returns only finished phrases, so this engine never
emits partial results.
"""

from __future__ import annotations

import asyncio
import importlib.util
import logging
from typing import Any, Callable, Optional

from .base import SpeechEngine, SpeechEventKind

logger = logging.getLogger(__name__)


def extract_transcripts(result: Any) -> list[str]:
    """Return candidate transcripts from a ``recognize_google(show_all=True)`` payload."""
    if not isinstance(result, dict):
        return []
    transcripts = []
    for alternative in result.get("alternative") or []:
        text = (alternative.get("transcript") or "").strip() if isinstance(alternative, dict) else ""
        if text:
            transcripts.append(text)
    return transcripts


class RecognizerEngine(SpeechEngine):
    """Speech engine over the ``speech_recognition`` package."""

    def __init__(self, *, ambient_noise_seconds: float = 0.2,
                 phrase_time_limit: Optional[float] = None):
        super().__init__()
        self.ambient_noise_seconds = ambient_noise_seconds
        self.phrase_time_limit = phrase_time_limit
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stopper: Optional[Callable[..., None]] = None
        self._finished_generation: Optional[int] = None
        self._stopped_generation: Optional[int] = None

    @property
    def available(self) -> bool:
        return (
            importlib.util.find_spec("speech_recognition") is not None
            and importlib.util.find_spec("pyaudio") is not None
        )

    async def _start(self, locale: str, options: dict) -> None:
        import speech_recognition as sr

        self._loop = asyncio.get_running_loop()
        generation = self.generation
        recognizer = sr.Recognizer()
        microphone = sr.Microphone()

        def _calibrate() -> None:
            with microphone as source:
                recognizer.adjust_for_ambient_noise(source, duration=self.ambient_noise_seconds)

        await asyncio.to_thread(_calibrate)
        if generation != self.generation or generation == self._stopped_generation:
            # Stopped or restarted while calibrating.
            self._post(generation, SpeechEventKind.END)
            return

        def _on_phrase(rec, audio) -> None:
            # Runs on the listener thread.
            try:
                result = rec.recognize_google(audio, language=locale, show_all=True)
            except sr.RequestError as e:
                self._post(generation, SpeechEventKind.ERROR, error=str(e))
            except sr.UnknownValueError:
                self._post(generation, SpeechEventKind.END)
            else:
                transcripts = extract_transcripts(result)
                if transcripts:
                    self._post(generation, SpeechEventKind.FINAL, values=transcripts)
                else:
                    self._post(generation, SpeechEventKind.END)
            stopper = self._stopper
            if stopper is not None:
                stopper(wait_for_stop=False)

        self._stopper = recognizer.listen_in_background(
            microphone, _on_phrase,
            phrase_time_limit=options.get("phrase_time_limit", self.phrase_time_limit),
        )
        self.emit_kind(SpeechEventKind.START)

    async def _stop(self) -> None:
        self._stopped_generation = self.generation
        stopper, self._stopper = self._stopper, None
        if stopper is None:
            return
        generation = self.generation
        # Joins the listener thread; a phrase in flight is still transcribed.
        await asyncio.to_thread(stopper, wait_for_stop=True)
        self._post(generation, SpeechEventKind.END)

    async def _destroy(self) -> None:
        await self._stop()
        self._finished_generation = None

    def _post(self, generation: int, kind: SpeechEventKind,
              values: Optional[list[str]] = None, error: Optional[str] = None) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._deliver, generation, kind, values or [], error)

    def _deliver(self, generation: int, kind: SpeechEventKind,
                 values: list[str], error: Optional[str]) -> None:
        # One terminal event per generation: an end queued after a final is dropped.
        if generation != self.generation or generation == self._finished_generation:
            return
        self._finished_generation = generation
        self.emit_kind(kind, values, error)
