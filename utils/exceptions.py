"""
Custom Exception Classes for The Feedback Loop

This module defines custom exceptions for better error handling and
categorization of failures across the newsroom, visualizer and feed tools.
"""

from typing import Iterable, Optional


class FeedbackLoopError(Exception):
    """Base exception for all Feedback Loop application errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(FeedbackLoopError):
    """Raised when configuration validation fails or required settings are missing."""

    def __init__(self, message: str, missing: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.missing = list(missing or [])


# =============================================================================
# Usage Errors
# =============================================================================

class UsageError(FeedbackLoopError):
    """Base exception for operator mistakes on the command line."""
    pass


class UnknownPersonaError(UsageError):
    """Raised when a writer key does not match any persona in the registry."""

    def __init__(self, key: str, valid_keys: Iterable[str]):
        self.key = key
        self.valid_keys = list(valid_keys)
        super().__init__(
            f"Unknown writer identity: {key}. Valid options: {', '.join(self.valid_keys)}"
        )


# =============================================================================
# Generation Errors
# =============================================================================

class GenerationError(FeedbackLoopError):
    """Raised when the text-generation backend fails or returns nothing."""
    pass


class EditorialParseError(GenerationError):
    """Raised when the editorial pass does not return a usable JSON record."""
    pass


class ImageGenerationError(GenerationError):
    """Raised when every image backend attempt has been exhausted."""
    pass


# =============================================================================
# Database Errors
# =============================================================================

class DatabaseError(FeedbackLoopError):
    """Base exception for datastore-related errors."""
    pass


class QueryError(DatabaseError):
    """Raised when a datastore query, insert or update fails."""
    pass


class HistoryFetchError(QueryError):
    """Raised when a writer's previous posts cannot be retrieved."""
    pass


class StorageError(DatabaseError):
    """Raised when an object storage upload or lookup fails."""
    pass
