"""
Settings loading with an optional cache in front of the source.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..adapters.ttl_cache import TTLCache
from ..domain.models import SchedulingSettings

logger = logging.getLogger(__name__)

SETTINGS_CACHE_KEY = "scheduling_settings"
DEFAULT_SETTINGS_TTL_SECONDS = 300


class SettingsSourceProtocol(Protocol):
    """Protocol describing where scheduling settings come from (database, YAML file, ...)."""

    async def load_settings(self) -> SchedulingSettings:
        """Return the current calendar, policy and blackout configuration."""


class SettingsProviderProtocol(Protocol):
    async def get_settings(self) -> SchedulingSettings:
        """Return settings for the query about to run."""


class CachedSettingsProvider:
    """
    Serves settings from a TTL cache, falling back to the source on a miss.

    Without a cache every call goes to the source.
    """

    def __init__(
        self,
        source: SettingsSourceProtocol,
        cache: Optional[TTLCache[SchedulingSettings]] = None,
        ttl_seconds: float = DEFAULT_SETTINGS_TTL_SECONDS,
    ) -> None:
        self._source = source
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    async def get_settings(self) -> SchedulingSettings:
        if self._cache is not None:
            cached = self._cache.get(SETTINGS_CACHE_KEY)
            if cached is not None:
                return cached

        settings = await self._source.load_settings()
        logger.debug("Loaded scheduling settings for timezone %s", settings.timezone)

        if self._cache is not None:
            self._cache.set(SETTINGS_CACHE_KEY, settings, self._ttl_seconds)
        return settings

    def invalidate(self) -> None:
        """Drop the cached copy, e.g. after an administrator edits settings."""
        if self._cache is not None:
            self._cache.delete(SETTINGS_CACHE_KEY)
