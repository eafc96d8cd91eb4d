"""
Tests for the adapters used when no model backend is configured.
"""

import pytest
from unittest.mock import MagicMock

from reelforge.adapters.unconfigured import unconfigured_adapters
from reelforge.core.exceptions import AdapterFailureError
from reelforge.services.research.documents import DocumentReader


@pytest.fixture
def adapters():
    return unconfigured_adapters()


class TestUnconfiguredAdapters:

    def test_bundle_has_document_reader(self, adapters):
        assert isinstance(adapters.document_reader, DocumentReader)
        assert adapters.extra == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,call", [
        ("image", lambda a: a.image.generate("action", MagicMock(), "16:9", "yt_1")),
        ("text", lambda a: a.text.generate_structured("prompt", {})),
        ("knowledge", lambda a: a.knowledge.search("tides", "en", "web")),
        ("tts", lambda a: a.tts.synthesize(MagicMock(), MagicMock())),
    ])
    async def test_every_call_fails_clearly(self, adapters, name, call):
        with pytest.raises(AdapterFailureError) as exc_info:
            await call(adapters)

        assert exc_info.value.adapter == name
        assert str(exc_info.value) == f"{name} adapter not configured"
