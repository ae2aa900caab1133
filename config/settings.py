"""
Configuration Settings for The Feedback Loop

This module centralizes configuration for the newsroom, visualizer and feed
tools: environment variables, API keys and application constants.

Secrets and URLs are read once at process entry into an AppSettings object
by load_settings(); the object is then handed to each pipeline explicitly.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

# Determine the application root directory
APP_ROOT = Path(__file__).resolve().parent.parent

# Load environment variables from .env file
load_dotenv(dotenv_path=os.path.join(APP_ROOT, '.env'))

# =============================================================================
# AI Model Settings
# =============================================================================

DEFAULT_TEXT_MODEL = 'gemini-2.5-flash'
EDITOR_MODEL = 'gemini-2.5-flash'           # Model used by the SENTINEL editorial pass
DIRECTOR_MODEL = 'gemini-2.5-flash'         # Model used by the visual director
INLINE_IMAGE_MODEL = 'gemini-2.5-flash-image'

# =============================================================================
# Newsroom (Writer + Editor) Settings
# =============================================================================

EDITOR_ID = "SENTINEL v4.2"
HISTORY_LIMIT = 5                    # Previous posts fetched per writer for style memory
STYLE_REFERENCE_LENGTH = 300         # Characters of each previous post used as a style sample
PUBLISH_OFFSET_DAYS = 0              # 0 publishes immediately; >0 schedules into the future
STORY_DATE = "February 6, 2026"      # The in-fiction "current date" given to writers
SUMMARY_MAX_LENGTH = 140             # Summary length requested from the editor (not enforced)

# =============================================================================
# Visualizer Settings
# =============================================================================

BATCH_SIZE = 3                       # Posts without an image processed per run
COOLDOWN_SECONDS = 5                 # Pause between posts in a batch
IMAGE_LINK_MODE = "public_url"       # "public_url" or "filename"
IMAGE_GENERATION_MODE = "http"       # "http" (retrying endpoint) or "inline" (Gemini)

IMAGE_ENDPOINT = "https://image.pollinations.ai/prompt/"
IMAGE_BACKEND_MODELS = ["flux", "turbo"]    # Tried in order
IMAGE_MAX_ATTEMPTS = 3               # Attempts per backend model
IMAGE_BACKOFF_BASE = 2               # Delay after attempt n is IMAGE_BACKOFF_BASE ** n seconds
IMAGE_REQUEST_TIMEOUT = 90           # Seconds per HTTP image request
IMAGE_WIDTH = 1200
IMAGE_HEIGHT = 630

# =============================================================================
# Storage Settings
# =============================================================================

STORAGE_BUCKET = "blog-images"
PLACEHOLDER_STORAGE_HOST = "your-project.supabase.co"

# =============================================================================
# Feed Settings
# =============================================================================

FEED_TITLE = "The Feedback Loop"
FEED_DESCRIPTION = "An automated underground news experiment. Digital decay and algorithmic rebellion."
FEED_LANGUAGE = "en-us"
FEED_OUTPUT_FILE = "rss.xml"
DEFAULT_SITE_URL = "https://example.com"


@dataclass(frozen=True)
class AppSettings:
    """Secrets and endpoints resolved from the environment at startup."""
    google_api_key: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    storage_base_url: Optional[str] = None
    site_url: str = DEFAULT_SITE_URL
    base_path: str = "/"
    uses_service_role: bool = False


def _first_set(environ: Mapping[str, str], *names: str) -> Optional[str]:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> AppSettings:
    """
    Build the application settings from environment variables.

    The service-role key is preferred over the public keys so writes are not
    blocked by row-level security.

    Args:
        environ: Mapping to read from, defaults to os.environ.

    Returns:
        AppSettings: The resolved settings (values may be None; see validators).
    """
    if environ is None:
        environ = os.environ

    supabase_url = _first_set(environ, "SUPABASE_URL", "PUBLIC_SUPABASE_URL")
    service_key = environ.get("SUPABASE_SERVICE_ROLE_KEY")
    supabase_key = service_key or _first_set(environ, "SUPABASE_KEY", "PUBLIC_SUPABASE_ANON_KEY")

    return AppSettings(
        google_api_key=_first_set(environ, "GOOGLE_API_KEY"),
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        storage_base_url=_first_set(environ, "PUBLIC_STORAGE_BASE_URL") or supabase_url,
        site_url=_first_set(environ, "SITE_URL") or DEFAULT_SITE_URL,
        base_path=_first_set(environ, "BASE_PATH") or "/",
        uses_service_role=bool(service_key),
    )


def get_config_summary(app_settings: AppSettings) -> dict:
    """
    Returns a summary of current configuration (without sensitive values).
    Useful for logging startup state.
    """
    url = app_settings.supabase_url or ""
    return {
        "datastore": {
            "url": url[:30] + "..." if len(url) > 30 else url,
            "key_type": "service_role" if app_settings.uses_service_role else "anon",
        },
        "newsroom": {
            "history_limit": HISTORY_LIMIT,
            "publish_offset_days": PUBLISH_OFFSET_DAYS,
        },
        "visualizer": {
            "batch_size": BATCH_SIZE,
            "backends": list(IMAGE_BACKEND_MODELS),
            "max_attempts": IMAGE_MAX_ATTEMPTS,
            "link_mode": IMAGE_LINK_MODE,
        },
    }
