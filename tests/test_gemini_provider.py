import asyncio
from types import SimpleNamespace
from unittest import mock

import pytest

from app.exceptions import AssetGenerationFailure, GeminiSafetyException, UpstreamCallError
from app.model_providers_gemini import GeminiProvider
from tests.fakes import PCM_SAMPLES, story_json


def candidate(parts=None, finish_reason="STOP", safety_ratings=None):
    return SimpleNamespace(
        content=SimpleNamespace(parts=parts or []),
        finish_reason=SimpleNamespace(name=finish_reason),
        safety_ratings=safety_ratings,
    )


@pytest.fixture
def client():
    with mock.patch("app.model_providers_gemini.genai.Client") as client_cls:
        yield client_cls.return_value


@pytest.fixture
def gemini(config, client):
    return GeminiProvider(config)


def test_requires_api_key(config):
    with pytest.raises(UpstreamCallError):
        GeminiProvider(config.model_copy(update={"google_api_key": None}))


def test_generate_text_returns_raw_reply(gemini, client, config):
    client.models.generate_content.return_value = SimpleNamespace(
        candidates=[candidate()], text=story_json(2), prompt_feedback=None
    )

    text = asyncio.run(gemini.generate_text("system rules", "a dragon", config.text_model.value))

    assert text == story_json(2)
    kwargs = client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-2.5-flash"
    assert kwargs["contents"] == "a dragon"
    assert kwargs["config"].system_instruction == "system rules"
    assert kwargs["config"].response_mime_type == "application/json"


def test_generate_text_joins_parts_when_text_empty(gemini, client):
    parts = [SimpleNamespace(text='{"title": '), SimpleNamespace(text='"T"}')]
    client.models.generate_content.return_value = SimpleNamespace(
        candidates=[candidate(parts)], text=None, prompt_feedback=None
    )
    assert asyncio.run(gemini.generate_text("s", "p", "gemini-2.5-flash")) == '{"title": "T"}'


def test_blocked_prompt(gemini, client):
    client.models.generate_content.return_value = SimpleNamespace(
        candidates=[], text=None, prompt_feedback=SimpleNamespace(block_reason="SAFETY")
    )
    with pytest.raises(GeminiSafetyException):
        asyncio.run(gemini.generate_text("s", "p", "gemini-2.5-flash"))


def test_blocked_candidate_reports_categories(gemini, client):
    rating = SimpleNamespace(
        blocked=True,
        category=SimpleNamespace(name="HARM_CATEGORY_DANGEROUS_CONTENT"),
        probability=SimpleNamespace(name="HIGH"),
    )
    client.models.generate_content.return_value = SimpleNamespace(
        candidates=[candidate(finish_reason="SAFETY", safety_ratings=[rating])], text=None, prompt_feedback=None
    )
    with pytest.raises(GeminiSafetyException) as exc:
        asyncio.run(gemini.generate_text("s", "p", "gemini-2.5-flash"))
    assert exc.value.blocked_categories == ["HARM_CATEGORY_DANGEROUS_CONTENT: HIGH"]


def test_generate_image(gemini, client):
    image = SimpleNamespace(image_bytes=b"png-bytes", mime_type="image/png")
    client.models.generate_images.return_value = SimpleNamespace(generated_images=[SimpleNamespace(image=image)])

    payload = asyncio.run(gemini.generate_image("a castle", "imagen-3.0-generate-002"))

    assert payload.data == b"png-bytes"
    assert client.models.generate_images.call_args.kwargs["config"].number_of_images == 1


def test_generate_image_empty_predictions(gemini, client):
    client.models.generate_images.return_value = SimpleNamespace(generated_images=[])
    with pytest.raises(AssetGenerationFailure):
        asyncio.run(gemini.generate_image("a castle", "imagen-3.0-generate-002"))


def test_generate_audio_uses_voice_preset(gemini, client):
    inline = SimpleNamespace(data=PCM_SAMPLES, mime_type="audio/L16;codec=pcm;rate=24000")
    client.models.generate_content.return_value = SimpleNamespace(
        candidates=[candidate([SimpleNamespace(inline_data=None, text=None), SimpleNamespace(inline_data=inline)])]
    )

    speech = asyncio.run(gemini.generate_audio("Hello", "gemini-2.5-flash-preview-tts"))

    assert speech.data == PCM_SAMPLES
    assert speech.mime_type.endswith("rate=24000")
    config = client.models.generate_content.call_args.kwargs["config"]
    assert config.response_modalities == ["AUDIO"]
    assert config.speech_config.voice_config.prebuilt_voice_config.voice_name == "Puck"


def test_generate_audio_without_inline_data(gemini, client):
    client.models.generate_content.return_value = SimpleNamespace(
        candidates=[candidate([SimpleNamespace(inline_data=None)])]
    )
    with pytest.raises(AssetGenerationFailure):
        asyncio.run(gemini.generate_audio("Hello", "gemini-2.5-flash-preview-tts"))
