"""
Gemini provider implementation for the model provider system
"""

import asyncio
import functools
import time
from typing import Optional

from google import genai
from google.genai import types

from app.exceptions import AssetGenerationFailure, GeminiSafetyException, UpstreamCallError
from app.model_providers import ImagePayload, ModelProvider, SpeechPayload

BLOCKING_FINISH_REASONS = ("SAFETY", "RECITATION", "PROHIBITED_CONTENT")


class GeminiProvider(ModelProvider):
    """Gemini provider for text, image, and audio generation"""

    def __init__(self, config):
        super().__init__("gemini")
        self.config = config
        if not config.google_api_key:
            raise UpstreamCallError("Google API key not found in environment variables or config")
        self.client = genai.Client(api_key=config.google_api_key)
        self.logger.info("Gemini client initialized with google-genai package")

    async def _run_in_executor(self, func, *args, **kwargs):
        """Run a blocking SDK call off the event loop"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    def _safety_settings(self):
        return [
            types.SafetySetting(category=category, threshold="BLOCK_ONLY_HIGH")
            for category in (
                "HARM_CATEGORY_HARASSMENT",
                "HARM_CATEGORY_HATE_SPEECH",
                "HARM_CATEGORY_SEXUALLY_EXPLICIT",
                "HARM_CATEGORY_DANGEROUS_CONTENT",
            )
        ]

    def _check_blocked(self, response) -> None:
        """Raise GeminiSafetyException when the prompt or the first candidate was blocked"""
        if not response.candidates:
            feedback = getattr(response, "prompt_feedback", None)
            block_reason = getattr(feedback, "block_reason", None)
            if block_reason:
                self.logger.warning(f"Prompt blocked by safety filters: {block_reason}")
                raise GeminiSafetyException(
                    f"Prompt blocked by safety filters: {block_reason}", finish_reason=str(block_reason)
                )
            raise GeminiSafetyException("No content generated - response blocked or no candidates returned")

        candidate = response.candidates[0]
        finish_reason = getattr(candidate, "finish_reason", None)
        finish_reason_name = getattr(finish_reason, "name", str(finish_reason))
        if finish_reason_name not in BLOCKING_FINISH_REASONS:
            return

        blocked_categories = []
        for rating in getattr(candidate, "safety_ratings", None) or []:
            if getattr(rating, "blocked", False):
                category_name = getattr(rating.category, "name", str(rating.category))
                probability_name = getattr(rating.probability, "name", str(rating.probability))
                blocked_categories.append(f"{category_name}: {probability_name}")
        safety_info = f" (Blocked categories: {', '.join(blocked_categories)})" if blocked_categories else ""
        self.logger.warning(f"Response blocked with finish_reason: {finish_reason_name}")
        raise GeminiSafetyException(
            f"Content blocked by safety filters: {finish_reason_name}{safety_info}",
            finish_reason=finish_reason_name,
            blocked_categories=blocked_categories,
        )

    def _generate_text_sync(self, system_instruction: str, prompt: str, model: str, **kwargs) -> str:
        start_time = time.time()
        self._log_request("text_generation", model, prompt_length=len(prompt))

        try:
            generation_config = types.GenerateContentConfig(
                system_instruction=system_instruction,
                temperature=kwargs.get("temperature", self.config.text_temperature),
                safety_settings=self._safety_settings(),
                response_mime_type="application/json" if self.config.request_json_mime else None,
            )

            response = self.client.models.generate_content(
                model=model,
                contents=prompt,
                config=generation_config,
            )
            self._check_blocked(response)

            content = response.text or ""
            if not content:
                # Fall back to joining the text parts of the first candidate
                parts = response.candidates[0].content.parts if response.candidates[0].content else None
                content = "".join(part.text for part in parts or [] if getattr(part, "text", None))

            self._log_response("text_generation", model, time.time() - start_time, len(content))
            return content

        except Exception as e:
            self._log_response("text_generation", model, time.time() - start_time, 0, error=str(e))
            raise

    async def generate_text(self, system_instruction: str, prompt: str, model: str, **kwargs) -> str:
        """Async wrapper for text generation"""
        return await self._run_in_executor(self._generate_text_sync, system_instruction, prompt, model, **kwargs)

    def _generate_image_sync(self, prompt: str, model: str, **kwargs) -> ImagePayload:
        start_time = time.time()
        self._log_request("image_generation", model, prompt_length=len(prompt))

        try:
            response = self.client.models.generate_images(
                model=model,
                prompt=prompt,
                config=types.GenerateImagesConfig(number_of_images=1),
            )
            generated = response.generated_images or []
            if not generated or not generated[0].image or not generated[0].image.image_bytes:
                raise AssetGenerationFailure("Image model returned no predictions")

            image = generated[0].image
            payload = ImagePayload(data=image.image_bytes, mime_type=image.mime_type or "image/png")
            self._log_response("image_generation", model, time.time() - start_time, len(payload.data))
            return payload

        except Exception as e:
            self._log_response("image_generation", model, time.time() - start_time, 0, error=str(e))
            raise

    async def generate_image(self, prompt: str, model: str, **kwargs) -> ImagePayload:
        """Async wrapper for image generation"""
        return await self._run_in_executor(self._generate_image_sync, prompt, model, **kwargs)

    def _generate_audio_sync(self, text: str, model: str, voice: Optional[str] = None, **kwargs) -> SpeechPayload:
        start_time = time.time()
        self._log_request("audio_generation", model, prompt_length=len(text))

        try:
            voice_name = voice or self.config.narrator_voice
            speech_config = types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice_name)
                )
            )
            response = self.client.models.generate_content(
                model=model,
                contents=text,
                config=types.GenerateContentConfig(
                    response_modalities=["AUDIO"],
                    speech_config=speech_config,
                ),
            )

            if not response.candidates or not response.candidates[0].content:
                raise AssetGenerationFailure("No audio data returned from Gemini TTS")

            audio_part = next(
                (p for p in response.candidates[0].content.parts or [] if getattr(p, "inline_data", None)),
                None,
            )
            if audio_part is None:
                raise AssetGenerationFailure("TTS response missing audio data")

            inline = audio_part.inline_data
            payload = SpeechPayload(data=inline.data, mime_type=inline.mime_type or "")
            self._log_response("audio_generation", model, time.time() - start_time, len(payload.data))
            return payload

        except Exception as e:
            self._log_response("audio_generation", model, time.time() - start_time, 0, error=str(e))
            raise

    async def generate_audio(self, text: str, model: str, voice: Optional[str] = None, **kwargs) -> SpeechPayload:
        """Async wrapper for audio generation"""
        return await self._run_in_executor(self._generate_audio_sync, text, model, voice, **kwargs)
