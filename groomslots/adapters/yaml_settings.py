"""
Settings source backed by the YAML configuration file.
"""

from pathlib import Path

from ..config import AppConfig
from ..domain.models import SchedulingSettings


class YamlSettingsSource:
    """Re-reads the YAML file on every load; put a CachedSettingsProvider in front of it."""

    def __init__(self, config_path: Path):
        self.config_path = config_path

    async def load_settings(self) -> SchedulingSettings:
        return AppConfig.load_from_yaml(self.config_path).to_settings()
