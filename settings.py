import os
import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.model_providers import AudioModel, ImageModel, ModelConfig, TextModel

logger = logging.getLogger("storybook-app")


class StorybookConfig(BaseModel):
    """Resolved, validated configuration handed to the story pipeline."""

    model_config = ConfigDict(frozen=True)

    google_api_key: Optional[str] = None
    text_model: TextModel = ModelConfig.DEFAULT_TEXT_MODEL
    image_model: ImageModel = ModelConfig.DEFAULT_IMAGE_MODEL
    audio_model: AudioModel = ModelConfig.DEFAULT_AUDIO_MODEL
    narrator_voice: str = "Puck"
    default_page_count: int = Field(default=3, ge=1)
    max_page_count: int = Field(default=10, ge=1)
    text_temperature: float = 0.7
    request_json_mime: bool = True
    illustrations_enabled: bool = True
    narration_enabled: bool = True


class AppConfig:
    """Application configuration management"""

    # Default configuration values
    _defaults = {
        "google_api_key": None,  # Should be set via environment variable
        "text_model": ModelConfig.DEFAULT_TEXT_MODEL.value,
        "image_model": ModelConfig.DEFAULT_IMAGE_MODEL.value,
        "audio_model": ModelConfig.DEFAULT_AUDIO_MODEL.value,
        "narrator_voice": "Puck",  # Upbeat voice
        "default_page_count": 3,
        "max_page_count": 10,
        "text_temperature": 0.7,
        "request_json_mime": True,
        "illustrations_enabled": True,
        "narration_enabled": True,
    }

    # Cache for config file values
    _config_cache = None

    @classmethod
    def get_value(cls, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.
        Checks environment variables first, then config file, then defaults.
        """
        # Check environment variables (with STORYBOOK_ prefix)
        env_key = f"STORYBOOK_{key.upper()}"
        if env_key in os.environ:
            return os.environ[env_key]

        # Load config if not already loaded
        if cls._config_cache is None:
            cls._load_config()

        if key in cls._config_cache:
            return cls._config_cache[key]

        if key in cls._defaults:
            return cls._defaults[key]

        return default

    @classmethod
    def get_google_api_key(cls) -> Optional[str]:
        """The Gemini key may also come from the variable names Google's tooling uses."""
        return (
            cls.get_value("google_api_key")
            or os.environ.get("GEMINI_API_KEY")
            or os.environ.get("GOOGLE_API_KEY")
        )

    @classmethod
    def load(cls) -> StorybookConfig:
        """Build the process-wide config once; callers pass it down explicitly."""
        values = {key: cls.get_value(key) for key in cls._defaults}
        values["google_api_key"] = cls.get_google_api_key()
        config = StorybookConfig(**values)
        logger.info(
            f"Configuration loaded: text_model={config.text_model.value}, "
            f"image_model={config.image_model.value}, audio_model={config.audio_model.value}, "
            f"api_key_set={bool(config.google_api_key)}"
        )
        return config

    @classmethod
    def reset(cls) -> None:
        """Forget the cached config file contents."""
        cls._config_cache = None

    @classmethod
    def _load_config(cls) -> None:
        """Load configuration from file"""
        cls._config_cache = {}

        config_path = os.environ.get("STORYBOOK_CONFIG_PATH", "./config.json")

        try:
            if os.path.exists(config_path):
                with open(config_path, "r") as f:
                    cls._config_cache = json.load(f)
                logger.info(f"Loaded configuration from {config_path}")
            else:
                logger.info("No configuration file found, using defaults")
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading configuration: {str(e)}")
            # Continue with empty config and defaults
