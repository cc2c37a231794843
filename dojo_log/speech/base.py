"""
Abstract base class and event types for the speech engine layer.

Every concrete engine must implement the ``SpeechEngine`` interface. The
engine is a process-wide resource: it has one listener slot, owned by at
most one dictation controller at a time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from dojo_log.errors import EngineUnavailable

logger = logging.getLogger(__name__)


class SpeechEventKind(str, Enum):
    START = "start"
    PARTIAL = "partial_result"
    FINAL = "final_result"
    ERROR = "error"
    END = "end"


@dataclass(frozen=True)
class SpeechEvent:
    """One event delivered by a speech engine.

    Attributes:
        kind:       Which of the five engine hooks fired.
        values:     Candidate transcripts, best first (result events only).
        error:      Engine-supplied failure description (error events only).
        generation: The ``start()`` call this event belongs to.
    """

    kind: SpeechEventKind
    values: tuple[str, ...] = ()
    error: Optional[str] = None
    generation: int = 0

    @property
    def transcript(self) -> str:
        """The best candidate. Only index 0 is ever read."""
        return self.values[0] if self.values else ""


SpeechListener = Callable[[SpeechEvent], None]


class SpeechEngine(ABC):
    """Provider-agnostic async speech-to-text engine.

    Subclasses implement the three control coroutines (``_start``, ``_stop``,
    ``_destroy``) and report progress through :meth:`emit_kind`. The base
    class stamps every event with the generation of the ``start()`` call
    that produced it and drops events from superseded generations.
    """

    def __init__(self) -> None:
        self._listener: Optional[SpeechListener] = None
        self._owner: Any = None
        self._generation = 0

    @property
    def available(self) -> bool:
        """Whether the engine can run on this device/build."""
        return True

    @property
    def generation(self) -> int:
        return self._generation

    # ------------------------------------------------------------------
    # Listener binding
    # ------------------------------------------------------------------

    def subscribe(self, listener: SpeechListener, *, owner: Any) -> Callable[[], None]:
        """Bind *listener* to the engine's events on behalf of *owner*.

        Raises:
            EngineUnavailable: another owner still holds the engine.
        """
        if self._owner is not None and self._owner is not owner:
            raise EngineUnavailable("Speech engine is in use by another form")
        self._owner = owner
        self._listener = listener

        def unsubscribe() -> None:
            if self._listener is listener:
                self._listener = None

        return unsubscribe

    def emit(self, event: SpeechEvent) -> None:
        """Deliver *event* to the bound listener, if it is current."""
        if event.generation != self._generation:
            logger.debug(
                "Dropping %s event from generation %d (current %d)",
                event.kind.value, event.generation, self._generation,
            )
            return
        listener = self._listener
        if listener is None:
            return
        try:
            listener(event)
        except Exception:
            logger.exception("Speech listener failed handling %s event", event.kind.value)

    def emit_kind(
        self,
        kind: SpeechEventKind,
        values: tuple[str, ...] | list[str] = (),
        error: Optional[str] = None,
    ) -> None:
        """Emit an event stamped with the current generation."""
        self.emit(SpeechEvent(kind, tuple(values), error, self._generation))

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    async def start(self, locale: str, options: Optional[dict] = None) -> None:
        """Begin recognition in *locale*. Starts a new event generation."""
        self._generation += 1
        await self._start(locale, dict(options or {}))

    async def stop(self) -> None:
        """Ask the engine to finish the current recognition.

        The engine may still deliver a final result or an end event.
        """
        await self._stop()

    async def destroy(self) -> None:
        """Release native resources and every event binding."""
        self._listener = None
        self._owner = None
        await self._destroy()

    @abstractmethod
    async def _start(self, locale: str, options: dict) -> None:
        ...

    @abstractmethod
    async def _stop(self) -> None:
        ...

    @abstractmethod
    async def _destroy(self) -> None:
        ...
