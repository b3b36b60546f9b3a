"""
Exception types shared across the project.
"""
from typing import Optional


class ContentRadarError(Exception):
    """Base class for all project errors."""


class ConfigurationError(ContentRadarError):
    """A required setting or credential is missing."""


class FetchError(ContentRadarError):
    """An upstream page or API answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ActorRunError(ContentRadarError):
    """An Apify actor run did not finish with SUCCEEDED."""


class StoreError(ContentRadarError):
    """A write that must return a row failed at the database."""
