"""
Loads an appointment snapshot exported by the storage collaborator as JSON.
"""

import json
from pathlib import Path
from typing import List

from ..domain.exceptions import InvalidInputError
from ..domain.models import ExistingAppointment


def load_appointment_snapshot(path: Path, timezone: str) -> List[ExistingAppointment]:
    """
    Read a JSON list of ``{scheduledAt, durationMinutes, status}`` records.

    Args:
        path: JSON file; a top-level object with an ``appointments`` key is accepted too
        timezone: Business timezone used for offset-less timestamps

    Returns:
        Parsed appointments in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        InvalidInputError: If the file is not valid JSON or a record is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Appointments file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidInputError("appointments", f"invalid JSON in {path}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("appointments", [])

    if not isinstance(data, list):
        raise InvalidInputError("appointments", "expected a list of appointment records")

    appointments: List[ExistingAppointment] = []
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise InvalidInputError(f"appointments[{index}]", "expected an object")
        appointments.append(ExistingAppointment.from_dict(record, timezone))
    return appointments
