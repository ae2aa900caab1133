"""
AI Service Module

This module handles AI operations using Google's Gemini API.
It provides text generation for the writer, editor and visual director
passes, and direct multimodal image generation for the visualizer.
"""

import base64
from typing import Any, Optional

from google import genai
from google.genai import types

from config import settings
from utils.exceptions import ConfigurationError, GenerationError, ImageGenerationError
from utils.logger import get_logger

logger = get_logger(__name__)


class AIService:
    """Service for AI operations with Google's Gemini API."""

    def __init__(self, api_key: Optional[str] = None, client: Optional[Any] = None,
                 default_model: str = settings.DEFAULT_TEXT_MODEL):
        """
        Initialize the AI service.

        Args:
            api_key: Gemini API key, required unless a client is injected.
            client: Pre-built genai.Client (tests inject a mock here).
            default_model: Model used when a call does not name one.

        Raises:
            ConfigurationError: If neither a client nor an API key is given.
        """
        if client is None:
            if not api_key:
                raise ConfigurationError("Missing required GOOGLE_API_KEY", missing=["GOOGLE_API_KEY"])
            client = genai.Client(api_key=api_key)

        self.client = client
        self.default_model = default_model

    def generate_text(self, prompt: str, model: Optional[str] = None) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: The full prompt.
            model: Model identifier, defaults to the service default.

        Returns:
            str: The generated text, stripped.

        Raises:
            GenerationError: If the call fails or returns no text.
        """
        model_name = model or self.default_model
        try:
            response = self.client.models.generate_content(model=model_name, contents=prompt)
            text = response.text
        except Exception as e:
            raise GenerationError(f"Text generation with {model_name} failed: {e}") from e

        if not text or not text.strip():
            raise GenerationError(f"Text generation with {model_name} returned no text")

        logger.debug(f"Generated {len(text)} chars with {model_name}")
        return text.strip()

    def generate_image(self, prompt: str, model: str = settings.INLINE_IMAGE_MODEL) -> bytes:
        """
        Generate an image in a single multimodal call (no retry).

        Args:
            prompt: Image prompt.
            model: Image-capable Gemini model.

        Returns:
            bytes: The decoded image data.

        Raises:
            ImageGenerationError: If the call fails or no inline image is returned.
        """
        try:
            response = self.client.models.generate_content(
                model=model,
                contents=prompt,
                config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
            )
        except Exception as e:
            raise ImageGenerationError(f"Inline image generation with {model} failed: {e}") from e

        for candidate in response.candidates or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                inline_data = getattr(part, "inline_data", None)
                if inline_data is not None and inline_data.data:
                    data = inline_data.data
                    # The SDK returns bytes; raw REST payloads carry base64 text
                    if isinstance(data, str):
                        data = base64.b64decode(data)
                    logger.info(f"Inline image received from {model}: {len(data)} bytes")
                    return data

        raise ImageGenerationError(f"{model} returned no inline image data")
