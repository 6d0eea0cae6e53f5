import pytest

from app.narrative_engine import FableFactory
from settings import StorybookConfig
from tests.fakes import FakeProvider, story_json


@pytest.fixture
def config():
    return StorybookConfig(google_api_key="test-key")


@pytest.fixture
def provider():
    return FakeProvider(reply=story_json(2))


@pytest.fixture
def factory_builder(provider):
    def build(config):
        return FableFactory(config, text_provider=provider, image_provider=provider, audio_provider=provider)

    return build
