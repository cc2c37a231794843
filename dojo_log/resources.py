"""Process-wide resources shared by the log form and history views."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from .config import FORM_FIELDS, Settings, load_settings
from .dictation import DictationController
from .form import LogForm
from .persistence import LogStore
from .speech import RecognizerEngine, SpeechEngine


@dataclass
class AppResources:
    """Owns the storage handle and the speech engine for one process.

    Built once at startup and passed to every screen, so no component opens
    its own handle.
    """

    store: LogStore
    speech_engine: Optional[SpeechEngine] = None
    settings: Optional[Settings] = field(default=None, repr=False)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AppResources":
        settings = settings or load_settings()
        engine = RecognizerEngine()
        return cls(
            store=LogStore(settings.db_path),
            speech_engine=engine if engine.available else None,
            settings=settings,
        )

    def log_form(self, *, on_records_changed: Optional[Callable[[], None]] = None) -> LogForm:
        return LogForm(self.store, on_records_changed=on_records_changed)

    def dictation_controller(
        self,
        fields: Iterable[str] = FORM_FIELDS,
        *,
        form: Optional[LogForm] = None,
    ) -> DictationController:
        """Create a controller for one form; binds it to *form* when given."""
        kwargs = {}
        if self.settings is not None:
            kwargs["locale"] = self.settings.locale
            kwargs["timeout_seconds"] = self.settings.dictation_timeout_seconds
        controller = DictationController(
            self.speech_engine,
            fields,
            read_field=form.read_field if form is not None else None,
            **kwargs,
        )
        if form is not None:
            form.bind(controller)
        return controller

    async def close(self) -> None:
        await self.store.close()
