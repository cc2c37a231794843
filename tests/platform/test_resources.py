"""Tests for the shared application resources."""

import pytest

from dojo_log.config import Settings
from dojo_log.models import Source
from dojo_log.resources import AppResources


@pytest.mark.asyncio
async def test_from_settings_shares_one_store(db_path):
    resources = AppResources.from_settings(Settings(db_path=db_path))
    try:
        form = resources.log_form()
        assert form.store is resources.store
        assert resources.store.db_path == db_path
    finally:
        await resources.close()


@pytest.mark.asyncio
async def test_controller_uses_settings_and_binds_form(store, speech_engine, db_path):
    settings = Settings(db_path=db_path, locale="ja-JP", dictation_timeout_seconds=1.5)
    resources = AppResources(store=store, speech_engine=speech_engine, settings=settings)
    form = resources.log_form()
    controller = resources.dictation_controller(form=form)

    assert controller.locale == "ja-JP"
    assert controller.timeout_seconds == 1.5

    await controller.start_dictation("partner")
    speech_engine.speech_start()
    speech_engine.final("Aiko")
    assert form.values["partner"] == "Aiko"
    assert form.source is Source.VOICE
    await controller.teardown()


@pytest.mark.asyncio
async def test_controllers_from_one_resource_share_engine(store, speech_engine):
    resources = AppResources(store=store, speech_engine=speech_engine)
    log_screen = resources.dictation_controller()
    await log_screen.start_dictation("notes")
    await log_screen.teardown()

    next_screen = resources.dictation_controller()
    await next_screen.start_dictation("notes")
    assert next_screen.target_field == "notes"
    await next_screen.teardown()
