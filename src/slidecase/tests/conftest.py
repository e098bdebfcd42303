"""Shared fixtures."""

from __future__ import annotations

import pytest

from slidecase.foundation.config import clear_settings_cache
from slidecase.operations import SlidesServices
from slidecase.runtime.observability import configure_logging

from .fakes import FakeDocumentService, FakeTranslator


@pytest.fixture(autouse=True)
def _quiet_logging():
    configure_logging("none")
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def documents() -> FakeDocumentService:
    return FakeDocumentService()


@pytest.fixture
def translator() -> FakeTranslator:
    return FakeTranslator({"Hello world": "Hola mundo", "Second slide": "Segunda diapositiva"})


@pytest.fixture
def services(documents: FakeDocumentService, translator: FakeTranslator) -> SlidesServices:
    return SlidesServices(documents=documents, translator=translator)
