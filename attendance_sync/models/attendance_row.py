from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

"""AttendanceRow model.

One row of the staging ("event attendance") sheet and of the destination
sheet. Both share a fixed 14 column layout; header rows are assumed to exist
already and are never written.
"""

__all__ = [
    "ATTENDANCE_COLUMNS",
    "ID_COLUMN",
    "NAME_COLUMN",
    "AttendanceRow",
]

ATTENDANCE_COLUMNS: tuple[str, ...] = (
    "Person ID",
    "Full Name",
    "Event Name",
    "Event ID",
    "First Name",
    "Last Name",
    "Email",
    "Phone Number",
    "Form Sheet",
    "Role",
    "Event Date",
    "First Time?",
    "Needs Follow-up?",
    "Timestamp",
)

# 1-indexed sheet columns used by ID assignment
ID_COLUMN = 1
NAME_COLUMN = 2


@dataclass(frozen=True)
class AttendanceRow:
    """A single attendance record before or after ID assignment."""
    person_id: str
    full_name: str
    event_name: Any
    event_id: Any
    first_name: Any
    last_name: Any
    email: Any
    phone: Any
    source_label: str  # name of the form-responses sheet
    role: Any
    event_date: str  # YYYY-MM-DD
    timestamp: datetime
    first_time: str = ""  # reserved
    needs_follow_up: str = ""  # reserved

    def to_cells(self) -> list[Any]:
        """Cells in sheet column order."""
        return [
            self.person_id,
            self.full_name,
            self.event_name,
            self.event_id,
            self.first_name,
            self.last_name,
            self.email,
            self.phone,
            self.source_label,
            self.role,
            self.event_date,
            self.first_time,
            self.needs_follow_up,
            self.timestamp,
        ]
