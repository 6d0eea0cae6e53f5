"""
Storybook pipeline: story request -> normalization -> per-page assets -> assembly.

Only the story request and normalization can fail the whole book. Illustration
and narration failures are recorded per page as AssetFailed.
"""

import asyncio
import logging
from typing import Dict, Optional

from app.audio import pcm_to_wav_data_url, to_data_url
from app.exceptions import UpstreamCallError
from app.model_providers import ModelProvider, ModelProviderFactory
from app.models import (
    Asset,
    AssetFailed,
    AssetReady,
    PageAsset,
    PageDraft,
    StoryDocument,
    StoryRequest,
    StoryResult,
)
from app.story_assembler import assemble
from app.story_normalizer import normalize
from utils.monitoring import StoryRunTracker

logger = logging.getLogger("storybook-app")

STORY_SCHEMA_EXAMPLE = """{
  "title": "a short story title",
  "pages": [
    {
      "page_number": 1,
      "text": "2-3 sentences of story text for this page",
      "imagePrompt": "a highly descriptive illustration prompt suitable for a 3D/illustration model"
    },
    ...
  ]
}"""


class FableFactory:
    """Orchestrates the generation of children's story elements using AI"""

    def __init__(
        self,
        config,
        text_provider: Optional[ModelProvider] = None,
        image_provider: Optional[ModelProvider] = None,
        audio_provider: Optional[ModelProvider] = None,
    ):
        self.config = config
        if text_provider is None or image_provider is None or audio_provider is None:
            defaults = ModelProviderFactory.providers_for(config)
            text_provider = text_provider or defaults["text"]
            image_provider = image_provider or defaults["image"]
            audio_provider = audio_provider or defaults["audio"]
        self.text_provider = text_provider
        self.image_provider = image_provider
        self.audio_provider = audio_provider

    def _build_story_generation_prompt(self, page_count: int) -> str:
        return (
            "You are a helpful children's storybook author. Produce a JSON object only, "
            "with no explanatory text, no markdown, and no extra fields. The JSON schema:\n\n"
            f"{STORY_SCHEMA_EXAMPLE}\n\n"
            f"Produce exactly {page_count} pages. Each page needs 2-3 sentences of text and a "
            "detailed image prompt for a colorful, whimsical illustration of that page."
        )

    async def request_story(self, prompt: str, page_count: int) -> str:
        """Ask the text model for the story once; any failure is fatal"""
        system_instruction = self._build_story_generation_prompt(page_count)
        user_message = f"Write a {page_count}-page children's story based on: {prompt}"

        try:
            return await self.text_provider.generate_text(
                system_instruction=system_instruction,
                prompt=user_message,
                model=self.config.text_model.value,
                temperature=self.config.text_temperature,
            )
        except UpstreamCallError:
            raise
        except Exception as e:
            logger.error(f"request_story failed with {self.config.text_model.value}: {e}")
            raise UpstreamCallError(f"Story generation failed: {e}") from e

    async def weave_narrative(self, prompt: str, page_count: int) -> StoryDocument:
        raw = await self.request_story(prompt, page_count)
        document = normalize(raw)
        if len(document.pages) != page_count:
            logger.warning(f"Requested {page_count} pages, model returned {len(document.pages)}")
        return document

    async def generate_illustration(self, image_prompt: str, page_number: int) -> Asset:
        if not self.config.illustrations_enabled:
            return AssetFailed(reason="disabled")

        prompt = (
            f"Colorful, whimsical 3D children's book illustration with no text or lettering: {image_prompt}"
        )
        try:
            image = await self.image_provider.generate_image(
                prompt=prompt, model=self.config.image_model.value
            )
            return AssetReady(url=to_data_url(image.data, image.mime_type))
        except Exception as e:
            logger.error(f"Failed to generate image for page {page_number}: {e}")
            return AssetFailed(reason=str(e) or type(e).__name__)

    async def generate_narration(self, text: str, page_number: int) -> Asset:
        if not self.config.narration_enabled:
            return AssetFailed(reason="disabled")

        try:
            speech = await self.audio_provider.generate_audio(
                text=text,
                model=self.config.audio_model.value,
                voice=self.config.narrator_voice,
            )
            return AssetReady(url=pcm_to_wav_data_url(speech.data, speech.mime_type))
        except Exception as e:
            logger.error(f"Failed to generate audio for page {page_number}: {e}")
            return AssetFailed(reason=str(e) or type(e).__name__)

    async def generate_page_assets(self, page: PageDraft) -> PageAsset:
        image, audio = await asyncio.gather(
            self.generate_illustration(page.image_prompt, page.page_number),
            self.generate_narration(page.text, page.page_number),
        )
        return PageAsset(page_number=page.page_number, image=image, audio=audio)

    async def generate_media_for_story(self, document: StoryDocument) -> Dict[int, PageAsset]:
        results = await asyncio.gather(
            *[self.generate_page_assets(page) for page in document.pages]
        )
        return {asset.page_number: asset for asset in results}

    async def generate_story_package(self, request: StoryRequest) -> StoryResult:
        tracker = StoryRunTracker(request.prompt, request.page_count)

        async with tracker.stage("story_text"):
            document = await self.weave_narrative(request.prompt, request.page_count)

        async with tracker.stage("media"):
            assets = await self.generate_media_for_story(document)
        tracker.record_assets(assets.values())

        result = assemble(document, assets)
        logger.info(f"Story generation complete: {tracker.report(result.title)}")
        return result
