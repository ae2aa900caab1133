"""
Configuration Validation for The Feedback Loop

This module contains configuration validation logic.
Each entry point states which environment variables it needs and validates
them before any backend client is created.
"""

from typing import Iterable, Tuple

from config.settings import AppSettings
from utils.exceptions import ConfigurationError

# (environment variable name shown to the operator, AppSettings attribute)
GOOGLE_KEY = ("GOOGLE_API_KEY", "google_api_key")
SUPABASE_URL = ("SUPABASE_URL", "supabase_url")
SUPABASE_KEY = ("SUPABASE_SERVICE_ROLE_KEY or SUPABASE_KEY", "supabase_key")

PIPELINE_REQUIREMENTS = (GOOGLE_KEY, SUPABASE_URL, SUPABASE_KEY)
FEED_REQUIREMENTS = (SUPABASE_URL, SUPABASE_KEY)


def validate_settings(app_settings: AppSettings,
                      required: Iterable[Tuple[str, str]] = PIPELINE_REQUIREMENTS) -> bool:
    """
    Validate that all required settings are properly configured.

    Args:
        app_settings: Settings loaded at startup.
        required: (variable name, attribute) pairs that must be set.

    Raises:
        ConfigurationError: If required settings are missing, listing all of them.
    """
    missing = [var_name for var_name, attr in required if not getattr(app_settings, attr, None)]

    errors = [f"Missing required environment variable: {name}" for name in missing]

    site_url = app_settings.site_url or ""
    if not site_url.startswith(("http://", "https://")):
        errors.append(f"SITE_URL must be an absolute http(s) URL, got '{site_url}'")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg, missing=missing)

    return True
