"""
Shared Test Fixtures for The Feedback Loop

This module provides common fixtures used across all test modules.
Fixtures include settings, a chainable Supabase client mock, a mock AI
service, HTTP responses, log capture and factories for post rows and
editor replies.
"""

import json
import pytest
from unittest.mock import MagicMock
from typing import Any, Dict, List, Optional
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import AppSettings


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def app_settings():
    """
    AppSettings with obvious test values.

    Returns:
        AppSettings: Fully configured test settings.
    """
    return AppSettings(
        google_api_key="test-google-api-key",
        supabase_url="https://realproject.supabase.co",
        supabase_key="test-service-role-key",
        storage_base_url="https://realproject.supabase.co",
        site_url="https://feedbackloop.test",
        base_path="/",
        uses_service_role=True,
    )


# =============================================================================
# Supabase Fixtures
# =============================================================================

class FakeQuery:
    """Chainable stand-in for a postgrest query builder.

    Every builder method records its call and returns self; execute()
    returns an object whose .data is the configured rows, or raises the
    configured error.
    """

    BUILDER_METHODS = ("select", "eq", "is_", "order", "limit", "insert", "update")

    def __init__(self, data: Optional[List[Dict]] = None, error: Optional[Exception] = None):
        self.data = data if data is not None else []
        self.error = error
        self.calls = []
        for name in self.BUILDER_METHODS:
            setattr(self, name, self._recorder(name))

    def _recorder(self, name):
        def _call(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return _call

    def called(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    def execute(self):
        if self.error:
            raise self.error
        response = MagicMock()
        response.data = self.data
        return response


@pytest.fixture
def fake_query():
    """Factory for FakeQuery objects."""
    return FakeQuery


@pytest.fixture
def mock_supabase():
    """
    Mock Supabase client whose table() returns a FakeQuery.

    Usage:
        def test_query(mock_supabase):
            client, query = mock_supabase
            query.data = [{'title': 'x'}]

    Returns:
        tuple: (mock client, FakeQuery)
    """
    query = FakeQuery()
    client = MagicMock()
    client.table.return_value = query
    return client, query


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def capture_logs():
    """
    Capture log messages for assertion in tests.

    Returns:
        list: A list that will contain captured log records.
    """
    import logging

    class LogCapture(logging.Handler):
        def __init__(self):
            super().__init__()
            self.records = []

        def emit(self, record):
            self.records.append(record)

    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    app_logger = logging.getLogger("feedback_loop")
    app_logger.addHandler(handler)

    yield handler.records

    app_logger.removeHandler(handler)


# =============================================================================
# HTTP Response Fixtures
# =============================================================================

@pytest.fixture
def mock_http_response():
    """
    Factory fixture for creating mock HTTP responses.

    Returns:
        callable: A factory function for creating mock responses.
    """
    def _create_response(status_code: int = 200, content: bytes = b'',
                         headers: Optional[Dict[str, str]] = None) -> MagicMock:
        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.content = content
        mock_response.headers = headers or {'Content-Type': 'image/png'}
        mock_response.ok = 200 <= status_code < 300
        return mock_response

    return _create_response


# =============================================================================
# Data Factories
# =============================================================================

@pytest.fixture
def post_row_factory():
    """
    Factory fixture for posts-table rows.

    Returns:
        callable: Creates a row dict with sensible defaults.
    """
    def _create_row(id: int = 1, title: str = "Riot At The Substation",
                    slug: Optional[str] = None, **overrides) -> Dict[str, Any]:
        row = {
            'id': id,
            'title': title,
            'slug': slug or f"riot-at-the-substation-{id}",
            'summary': "A warehouse show in Leeds ended with the PA melting.",
            'content': "## Signal\n\nThe floor **shook**.",
            'category': 'news',
            'image_url': None,
            'status': 'published',
            'ai_writer': 'AXEL_WIRE',
            'ai_editor': 'SENTINEL v4.2',
            'system_alert': "[SYSTEM ALERT // SENTINEL v4.2] INTEGRITY SCAN: 87% // FACT-CHECK: Venue exists // ACTION: Publish",
            'seo_keywords': ['industrial', 'leeds'],
            'created_at': '2026-02-06T10:00:00+00:00',
            'published_at': '2026-02-06T10:00:00+00:00',
        }
        row.update(overrides)
        return row

    return _create_row


@pytest.fixture
def editor_reply_factory():
    """
    Factory fixture for raw SENTINEL replies.

    Returns:
        callable: Builds a JSON string (optionally fenced) from overrides.
    """
    def _create_reply(fenced: bool = True, drop: tuple = (), **overrides) -> str:
        data = {
            "ai_writer": "AXEL_WIRE",
            "ai_editor": "SENTINEL v4.2",
            "category": "news",
            "title": "Riot At The Substation",
            "slug": "riot-at-the-substation",
            "summary": "A warehouse show in Leeds ended with the PA melting.",
            "system_alert": "[SYSTEM ALERT // SENTINEL v4.2] INTEGRITY SCAN: 87% // FACT-CHECK: Venue exists // ACTION: Publish",
            "integrity_scan": 87,
            "fact_check": "Venue exists",
            "editorial_action": "Publish",
            "editorial_note": "Excess capitals. Throughput acceptable.",
            "seo_keywords": ["industrial", "leeds"],
            "content": "THE FLOOR SHOOK.\n\nNobody went home.",
        }
        data.update(overrides)
        for key in drop:
            data.pop(key, None)
        body = json.dumps(data)
        return f"```json\n{body}\n```" if fenced else body

    return _create_reply


@pytest.fixture
def mock_ai_service():
    """
    Mock AIService with a spec so unknown attributes fail loudly.

    Returns:
        MagicMock: Mock with generate_text / generate_image.
    """
    from services.ai_service import AIService
    return MagicMock(spec=AIService)
