"""
Model provider system for the storybook pipeline.
Text, image and audio calls go through a ModelProvider so the pipeline can be
exercised against fake providers and the model can be picked per deployment.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel


class TextModel(str, Enum):
    """Available text generation models"""
    GEMINI_2_5_FLASH = "gemini-2.5-flash"
    GEMINI_2_5_FLASH_LITE = "gemini-2.5-flash-lite"
    GEMINI_2_5_PRO = "gemini-2.5-pro"


class ImageModel(str, Enum):
    """Available image generation models"""
    IMAGEN_3 = "imagen-3.0-generate-002"
    IMAGEN_4 = "imagen-4.0-generate-001"


class AudioModel(str, Enum):
    """Available audio generation models"""
    GEMINI_2_5_FLASH_TTS = "gemini-2.5-flash-preview-tts"
    GEMINI_2_5_PRO_TTS = "gemini-2.5-pro-preview-tts"


class ModelConfig:
    """Provider mappings and defaults"""

    TEXT_PROVIDERS = {model: "gemini" for model in TextModel}
    IMAGE_PROVIDERS = {model: "gemini" for model in ImageModel}
    AUDIO_PROVIDERS = {model: "gemini" for model in AudioModel}

    DEFAULT_TEXT_MODEL = TextModel.GEMINI_2_5_FLASH
    DEFAULT_IMAGE_MODEL = ImageModel.IMAGEN_3
    DEFAULT_AUDIO_MODEL = AudioModel.GEMINI_2_5_FLASH_TTS


class ImagePayload(BaseModel):
    data: bytes
    mime_type: str = "image/png"


class SpeechPayload(BaseModel):
    """Raw TTS output: PCM (bytes or base64 text) plus its MIME type"""
    data: Union[bytes, str]
    mime_type: str = ""


class ModelProvider(ABC):
    """Abstract base class for AI model providers"""

    def __init__(self, provider_name: str):
        self.provider_name = provider_name
        self.logger = logging.getLogger(f"storybook-app.{provider_name}")

    @abstractmethod
    async def generate_text(
        self, system_instruction: str, prompt: str, model: str, **kwargs
    ) -> str:
        """Return the model's raw text reply"""

    @abstractmethod
    async def generate_image(self, prompt: str, model: str, **kwargs) -> ImagePayload:
        """Return one generated image"""

    @abstractmethod
    async def generate_audio(
        self, text: str, model: str, voice: Optional[str] = None, **kwargs
    ) -> SpeechPayload:
        """Return raw speech audio for the text"""

    def _log_request(self, operation: str, model: str, **kwargs):
        """Log provider request for monitoring"""
        self.logger.info(f"{operation} request: provider={self.provider_name}, model={model}, kwargs={kwargs}")

    def _log_response(self, operation: str, model: str, duration: float, output_size: int = 0, error: str = None):
        """Log provider response for monitoring"""
        if error:
            self.logger.error(f"{operation} error: provider={self.provider_name}, model={model}, duration={duration:.2f}s, error={error}")
        else:
            self.logger.info(f"{operation} success: provider={self.provider_name}, model={model}, duration={duration:.2f}s, output_size={output_size}")


class ModelProviderFactory:
    """Creates provider instances for a given config; no process-wide cache"""

    @classmethod
    def get_provider(cls, provider_name: str, config) -> ModelProvider:
        if provider_name == "gemini":
            from app.model_providers_gemini import GeminiProvider
            return GeminiProvider(config)
        raise ValueError(f"Unknown provider: {provider_name}")

    @classmethod
    def providers_for(cls, config) -> Dict[str, ModelProvider]:
        """Text/image/audio providers for the configured models, sharing instances by name"""
        names = {
            "text": ModelConfig.TEXT_PROVIDERS[config.text_model],
            "image": ModelConfig.IMAGE_PROVIDERS[config.image_model],
            "audio": ModelConfig.AUDIO_PROVIDERS[config.audio_model],
        }
        instances: Dict[str, ModelProvider] = {}
        for name in set(names.values()):
            instances[name] = cls.get_provider(name, config)
        return {role: instances[name] for role, name in names.items()}
