"""Dictation session controller.

Arbitrates which form field is bound to the microphone, drives the speech
engine, and translates engine events into form updates. One controller is
created per form and torn down with it.

State machine::

    IDLE --start_dictation--> REQUESTING --start event--> LISTENING
      ^                            |                          |
      +---- final / end / error / restart / abandoned stop ---+

    any state --teardown--> DESTROYED

The safety timer only requests a stop; a result delivered after it is
still applied. A gesture whose stop goes unanswered is abandoned.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable, Optional

from dojo_log.config import DEFAULT_LOCALE, DICTATION_STOP_GRACE_SECONDS, DICTATION_TIMEOUT_SECONDS
from dojo_log.errors import ControllerDestroyed, DictationError, EngineUnavailable
from dojo_log.models import DictationSession, DictationState, Source
from dojo_log.speech import SpeechEngine, SpeechEvent, SpeechEventKind

logger = logging.getLogger(__name__)

LISTENING_TEXT = "Listening..."

FieldUpdateCallback = Callable[[str, str], None]
StatusCallback = Callable[[DictationState], None]
ErrorCallback = Callable[[str], None]
ProvenanceCallback = Callable[[Source], None]


def _register(callbacks: list, callback) -> Callable[[], None]:
    callbacks.append(callback)

    def unregister() -> None:
        if callback in callbacks:
            callbacks.remove(callback)

    return unregister


class DictationController:
    """Mediates at most one in-flight dictation gesture for one form.

    Args:
        engine:          The shared speech engine, or None when the build
                         has none.
        fields:          Identifiers of the form fields that accept dictation.
        locale:          Recognition locale passed to the engine.
        timeout_seconds: Safety timer after which the engine is asked to stop.
        stop_grace_seconds: How long a timed-out gesture waits for the
                         engine's final or end event before it is abandoned.
        read_field:      Optional accessor for a field's current text. When
                         given, a failed gesture restores the text the field
                         held before its partial previews.
    """

    def __init__(
        self,
        engine: Optional[SpeechEngine],
        fields: Iterable[str],
        *,
        locale: str = DEFAULT_LOCALE,
        timeout_seconds: float = DICTATION_TIMEOUT_SECONDS,
        stop_grace_seconds: float = DICTATION_STOP_GRACE_SECONDS,
        read_field: Optional[Callable[[str], str]] = None,
    ):
        self._engine = engine
        self._fields = frozenset(fields)
        self.locale = locale
        self.timeout_seconds = timeout_seconds
        self.stop_grace_seconds = stop_grace_seconds
        self._read_field = read_field

        self._state = DictationState.IDLE
        self._session: Optional[DictationSession] = None
        self._token = 0
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: set[asyncio.Task] = set()
        self.error_message = ""

        self._field_callbacks: list[FieldUpdateCallback] = []
        self._status_callbacks: list[StatusCallback] = []
        self._error_callbacks: list[ErrorCallback] = []
        self._provenance_callbacks: list[ProvenanceCallback] = []

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> DictationState:
        return self._state

    @property
    def target_field(self) -> Optional[str]:
        return self._session.target_field if self._session else None

    @property
    def session(self) -> Optional[DictationSession]:
        return self._session

    @property
    def status_text(self) -> str:
        if self._state in (DictationState.REQUESTING, DictationState.LISTENING):
            return LISTENING_TEXT
        return ""

    @property
    def available(self) -> bool:
        return self._engine is not None and self._engine.available

    def on_field_update(self, callback: FieldUpdateCallback) -> Callable[[], None]:
        return _register(self._field_callbacks, callback)

    def on_status_change(self, callback: StatusCallback) -> Callable[[], None]:
        return _register(self._status_callbacks, callback)

    def on_error(self, callback: ErrorCallback) -> Callable[[], None]:
        return _register(self._error_callbacks, callback)

    def on_provenance(self, callback: ProvenanceCallback) -> Callable[[], None]:
        return _register(self._provenance_callbacks, callback)

    # ------------------------------------------------------------------
    # Gesture control
    # ------------------------------------------------------------------

    async def start_dictation(self, field_id: str) -> None:
        """Bind *field_id* to the microphone and start the engine.

        A gesture already in flight for another field is stopped first.
        When calls overlap, the most recent one owns the microphone.

        Raises:
            EngineUnavailable: no usable engine; state is left unchanged.
            ControllerDestroyed: the controller was torn down.
            ValueError: *field_id* is not one of this form's fields.
        """
        if self._state is DictationState.DESTROYED:
            raise ControllerDestroyed("Dictation controller has been torn down")
        if field_id not in self._fields:
            raise ValueError(f"Unknown dictation field: {field_id!r}")
        if not self.available:
            logger.info("Dictation requested for %s but no speech engine is available", field_id)
            raise EngineUnavailable("Speech recognition is not available on this device")

        engine = self._engine
        token = self._token + 1
        unsubscribe = engine.subscribe(
            lambda event: self._handle_event(token, event), owner=self,
        )

        previous = self._session
        self._close_session()
        self._token = token
        self._unsubscribe = unsubscribe

        if previous is not None:
            logger.info("Dictation for %s superseded by %s", previous.target_field, field_id)
            await self._stop_engine()
            if self._superseded(token):
                unsubscribe()
                return

        self._session = DictationSession(
            token=token,
            target_field=field_id,
            original_text=self._read_field(field_id) if self._read_field else None,
        )
        self.error_message = ""
        self._set_state(DictationState.REQUESTING)
        self._arm_timer(token, self.timeout_seconds, self._on_timeout)

        logger.info("Starting dictation for %s (%s)", field_id, self.locale)
        try:
            await engine.start(self.locale, {"partial_results": True})
        except Exception as e:
            self._fail(token, DictationError(f"Microphone error: {e}", cause=e))
            return
        if self._state is DictationState.DESTROYED:
            # Torn down while the engine was starting up.
            await self._stop_engine()

    async def stop_dictation(self) -> None:
        """Release the trigger.

        Only requests an engine stop; the engine's final or end event
        completes the gesture.
        """
        session = self._session
        if session is None or self._state not in (DictationState.REQUESTING, DictationState.LISTENING):
            return
        session.stop_requested = True
        logger.info("Stopping dictation for %s", session.target_field)
        await self._request_stop(session.token)

    async def teardown(self) -> None:
        """Stop and release the engine. Runs once; never raises."""
        if self._state is DictationState.DESTROYED:
            return
        self._token += 1
        self._close_session()
        self._state = DictationState.DESTROYED
        for callbacks in (self._field_callbacks, self._status_callbacks,
                          self._error_callbacks, self._provenance_callbacks):
            callbacks.clear()
        for task in list(self._tasks):
            task.cancel()

        if self._engine is None:
            return
        try:
            await self._engine.stop()
        except Exception as e:
            logger.warning("Speech engine stop failed during teardown: %s", e)
        try:
            await self._engine.destroy()
        except Exception as e:
            logger.warning("Speech engine destroy failed during teardown: %s", e)
        logger.info("Dictation controller torn down")

    async def __aenter__(self) -> "DictationController":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.teardown()

    # ------------------------------------------------------------------
    # Engine events
    # ------------------------------------------------------------------

    def _handle_event(self, token: int, event: SpeechEvent) -> None:
        session = self._session
        if session is None or token != self._token or session.token != token:
            logger.debug("Ignoring stale %s event", event.kind.value)
            return

        if event.kind is SpeechEventKind.START:
            if self._state is DictationState.REQUESTING:
                self._set_state(DictationState.LISTENING)

        elif event.kind is SpeechEventKind.PARTIAL:
            text = event.transcript
            if self._state is DictationState.LISTENING and text:
                session.last_partial_text = text
                session.partial_applied = True
                self._emit_field(session.target_field, text)

        elif event.kind is SpeechEventKind.FINAL:
            text = event.transcript
            field_id = session.target_field
            self._close_session()
            if text:
                self._emit_field(field_id, text)
                for callback in list(self._provenance_callbacks):
                    callback(Source.VOICE)
                logger.info("Dictation for %s finished", field_id)
            self._set_state(DictationState.IDLE)

        elif event.kind is SpeechEventKind.END:
            logger.info("Dictation for %s ended without a result", session.target_field)
            self._close_session()
            self._set_state(DictationState.IDLE)

        elif event.kind is SpeechEventKind.ERROR:
            cause = event.error or "unknown error"
            self._fail(token, DictationError(f"Microphone error: {cause}", cause=cause))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fail(self, token: int, error: DictationError) -> None:
        session = self._session
        if session is None or session.token != token:
            return
        logger.warning("Dictation for %s failed: %s", session.target_field, error)
        self._close_session()
        if session.partial_applied and session.original_text is not None:
            self._emit_field(session.target_field, session.original_text)
        self.error_message = str(error)
        self._set_state(DictationState.IDLE)
        for callback in list(self._error_callbacks):
            callback(self.error_message)

    def _close_session(self) -> None:
        """Detach the current gesture: timer, listener and session slot."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._session = None

    def _superseded(self, token: int) -> bool:
        return self._state is DictationState.DESTROYED or self._token != token

    def _arm_timer(self, token: int, delay: float, callback: Callable[[int], None]) -> None:
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, callback, token)

    def _on_timeout(self, token: int) -> None:
        """Safety timer: ask the engine to finish, as a trigger release would."""
        session = self._session
        if session is None or session.token != token:
            return
        logger.warning(
            "Dictation for %s timed out after %.1fs; stopping", session.target_field, self.timeout_seconds,
        )
        session.stop_requested = True
        self._arm_timer(token, self.stop_grace_seconds, self._on_stop_unanswered)
        task = asyncio.get_running_loop().create_task(self._request_stop(token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_stop_unanswered(self, token: int) -> None:
        session = self._session
        if session is None or session.token != token:
            return
        logger.warning(
            "Speech engine gave no result for %s within %.1fs of stopping; abandoning",
            session.target_field, self.stop_grace_seconds,
        )
        self._close_session()
        self._set_state(DictationState.IDLE)

    async def _request_stop(self, token: int) -> None:
        try:
            await self._engine.stop()
        except Exception as e:
            self._fail(token, DictationError(f"Microphone error: {e}", cause=e))

    async def _stop_engine(self) -> None:
        try:
            await self._engine.stop()
        except Exception as e:
            logger.warning("Speech engine stop failed: %s", e)

    def _set_state(self, state: DictationState) -> None:
        if state is self._state:
            return
        self._state = state
        for callback in list(self._status_callbacks):
            callback(state)

    def _emit_field(self, field_id: str, text: str) -> None:
        for callback in list(self._field_callbacks):
            callback(field_id, text)


__all__ = ["DictationController", "LISTENING_TEXT"]
