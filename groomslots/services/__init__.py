"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, SlotCheck, get_disabled_dates
from .booking import AppointmentStoreProtocol, BookingCoordinator
from .settings_provider import CachedSettingsProvider, SettingsSourceProtocol

__all__ = [
    "AppointmentStoreProtocol",
    "AvailabilityService",
    "BookingCoordinator",
    "CachedSettingsProvider",
    "SettingsSourceProtocol",
    "SlotCheck",
    "get_disabled_dates",
]
