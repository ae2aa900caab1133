"""
Image Service Module

This module obtains image bytes for the visualizer, either from the
pollinations HTTP endpoint with a multi-backend retry policy, or from a
single Gemini multimodal call.
"""

import random
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Tuple
from urllib.parse import quote

import requests

from config import settings
from services.ai_service import AIService
from utils.exceptions import ImageGenerationError
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImageBackend:
    """One image model served by the HTTP endpoint."""
    model: str
    endpoint: str = settings.IMAGE_ENDPOINT


@dataclass(frozen=True)
class RetryPolicy:
    """
    Ordered backends, attempts per backend and the backoff formula.

    After failed attempt n (1-based) of a backend the caller waits
    backoff_base ** n seconds, unless that was the backend's last attempt,
    in which case it moves straight on to the next backend.
    """
    backends: Tuple[ImageBackend, ...]
    max_attempts: int = settings.IMAGE_MAX_ATTEMPTS
    backoff_base: float = settings.IMAGE_BACKOFF_BASE

    def delay_for(self, attempt: int) -> float:
        return self.backoff_base ** attempt

    def plan(self) -> List[Tuple[ImageBackend, int]]:
        """Every (backend, attempt) step in the order it is tried."""
        return [(backend, attempt)
                for backend in self.backends
                for attempt in range(1, self.max_attempts + 1)]


DEFAULT_RETRY_POLICY = RetryPolicy(
    backends=tuple(ImageBackend(model=m) for m in settings.IMAGE_BACKEND_MODELS),
)


class ImageGenerator(Protocol):
    """Anything that turns a prompt into image bytes."""

    def generate(self, prompt: str) -> bytes:
        ...


class ImageService:
    """Fetches generated images over HTTP, retrying across backends."""

    def __init__(self, policy: RetryPolicy = DEFAULT_RETRY_POLICY,
                 session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 timeout: int = settings.IMAGE_REQUEST_TIMEOUT,
                 width: int = settings.IMAGE_WIDTH,
                 height: int = settings.IMAGE_HEIGHT):
        self.policy = policy
        self.session = session or requests.Session()
        self.sleep = sleep
        self.timeout = timeout
        self.width = width
        self.height = height

    def build_url(self, prompt: str, backend: ImageBackend, seed: int) -> str:
        return (
            f"{backend.endpoint}{quote(prompt)}"
            f"?width={self.width}&height={self.height}"
            f"&model={quote(backend.model)}&seed={seed}&nologo=true"
        )

    def _fetch(self, prompt: str, backend: ImageBackend) -> bytes:
        url = self.build_url(prompt, backend, seed=random.randint(1, 999999))
        response = self.session.get(url, timeout=self.timeout)
        if not response.ok:
            raise ImageGenerationError(f"HTTP {response.status_code} from {backend.model}")
        if not response.content:
            raise ImageGenerationError(f"Empty image body from {backend.model}")
        return response.content

    def generate(self, prompt: str) -> bytes:
        """
        Generate an image, walking the retry plan until one attempt succeeds.

        Args:
            prompt: Image prompt.

        Returns:
            bytes: Image data.

        Raises:
            ImageGenerationError: If every backend is exhausted.
        """
        last_error: Optional[Exception] = None

        for backend, attempt in self.policy.plan():
            logger.info(f"Requesting image from {backend.model} (attempt {attempt}/{self.policy.max_attempts})")
            try:
                data = self._fetch(prompt, backend)
                logger.info(f"Asset retrieved from {backend.model}. Size: {len(data)} bytes")
                return data
            except (requests.RequestException, ImageGenerationError) as e:
                last_error = e
                logger.warning(f"Image backend {backend.model} failed on attempt {attempt}: {e}")

            if attempt < self.policy.max_attempts:
                delay = self.policy.delay_for(attempt)
                logger.info(f"Backing off {delay}s before retrying {backend.model}")
                self.sleep(delay)
            else:
                logger.warning(f"Backend {backend.model} exhausted, moving to next backend")

        raise ImageGenerationError(f"All image backends exhausted. Last error: {last_error}")


@dataclass
class InlineImageService:
    """Generates images directly with a Gemini image model (single attempt)."""
    ai_service: AIService
    model: str = field(default=settings.INLINE_IMAGE_MODEL)

    def generate(self, prompt: str) -> bytes:
        return self.ai_service.generate_image(prompt, model=self.model)
