"""
Adapters layer - storage, configuration and caching integrations.
"""

from .json_appointments import load_appointment_snapshot
from .memory_store import InMemoryAppointmentStore
from .ttl_cache import TTLCache
from .yaml_settings import YamlSettingsSource

__all__ = ["InMemoryAppointmentStore", "TTLCache", "YamlSettingsSource", "load_appointment_snapshot"]
