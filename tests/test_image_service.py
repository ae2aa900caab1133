"""
Tests for Image Service

Tests the retry plan, backoff timing, backend fallover and the inline
Gemini generator.
"""

import pytest
from unittest.mock import MagicMock
import sys
import os

import requests

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.image_service import (
    DEFAULT_RETRY_POLICY, ImageBackend, ImageService, InlineImageService, RetryPolicy
)
from utils.exceptions import ImageGenerationError


@pytest.fixture
def sleeps():
    """Records every delay instead of sleeping."""
    return []


def _service(session, sleeps, policy=DEFAULT_RETRY_POLICY):
    return ImageService(policy=policy, session=session, sleep=sleeps.append)


class TestRetryPolicy:
    """Tests for the retry plan."""

    def test_default_plan_order(self):
        plan = [(backend.model, attempt) for backend, attempt in DEFAULT_RETRY_POLICY.plan()]
        assert plan == [("flux", 1), ("flux", 2), ("flux", 3),
                        ("turbo", 1), ("turbo", 2), ("turbo", 3)]

    def test_exponential_delays(self):
        assert [DEFAULT_RETRY_POLICY.delay_for(n) for n in (1, 2)] == [2, 4]

    def test_custom_policy(self):
        policy = RetryPolicy(backends=(ImageBackend("a"),), max_attempts=1)
        assert len(policy.plan()) == 1


class TestImageService:
    """Tests for HTTP generation."""

    def test_first_attempt_success(self, mock_http_response, sleeps):
        session = MagicMock()
        session.get.return_value = mock_http_response(content=b"\x89PNG")

        assert _service(session, sleeps).generate("neon rain") == b"\x89PNG"
        assert session.get.call_count == 1
        assert sleeps == []

    def test_request_url(self, mock_http_response, sleeps):
        session = MagicMock()
        session.get.return_value = mock_http_response(content=b"x")

        _service(session, sleeps).generate("neon rain")

        url = session.get.call_args.args[0]
        assert url.startswith("https://image.pollinations.ai/prompt/neon%20rain?")
        assert "width=1200" in url and "height=630" in url
        assert "model=flux" in url
        assert "nologo=true" in url

    def test_retry_then_success(self, mock_http_response, sleeps):
        session = MagicMock()
        session.get.side_effect = [
            mock_http_response(status_code=502),
            requests.Timeout("slow"),
            mock_http_response(content=b"ok"),
        ]

        assert _service(session, sleeps).generate("p") == b"ok"
        assert sleeps == [2, 4]

    def test_falls_over_to_next_backend(self, mock_http_response, sleeps):
        """The third flux failure moves to turbo without sleeping."""
        session = MagicMock()
        session.get.side_effect = [mock_http_response(status_code=500)] * 3 + [
            mock_http_response(content=b"turbo")
        ]

        assert _service(session, sleeps).generate("p") == b"turbo"
        assert sleeps == [2, 4]
        assert "model=turbo" in session.get.call_args.args[0]

    def test_all_backends_exhausted(self, mock_http_response, sleeps):
        session = MagicMock()
        session.get.return_value = mock_http_response(status_code=503)

        with pytest.raises(ImageGenerationError, match="exhausted"):
            _service(session, sleeps).generate("p")

        assert session.get.call_count == 6
        assert sleeps == [2, 4, 2, 4]

    def test_empty_body_is_a_failure(self, mock_http_response, sleeps):
        session = MagicMock()
        session.get.side_effect = [mock_http_response(content=b""), mock_http_response(content=b"x")]

        assert _service(session, sleeps).generate("p") == b"x"
        assert sleeps == [2]


class TestInlineImageService:
    """Tests for the Gemini inline generator."""

    def test_single_attempt(self, mock_ai_service):
        mock_ai_service.generate_image.return_value = b"img"

        assert InlineImageService(mock_ai_service, model="m").generate("p") == b"img"
        mock_ai_service.generate_image.assert_called_once_with("p", model="m")

    def test_failure_propagates(self, mock_ai_service):
        mock_ai_service.generate_image.side_effect = ImageGenerationError("none")

        with pytest.raises(ImageGenerationError):
            InlineImageService(mock_ai_service).generate("p")
        assert mock_ai_service.generate_image.call_count == 1
