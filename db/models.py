# db/models.py
"""
Typed copies of the rows the app reads from Supabase.

Tables live in the Supabase dashboard, these classes only mirror them:

Table: clubs
- id (uuid, PK)
- name (text)
- address (text)

Table: coaches
- id (uuid, PK)
- name (text)
- specialty (text)
- club_id (uuid, FK → clubs.id)

Table: time_slots
- id (uuid, PK)
- club_id (uuid, FK → clubs.id)
- coach_id (uuid, FK → coaches.id)
- slot_date (date)
- start_time (time)
- end_time (time)
- status (text: 'available' | 'booked')

Table: reservations
- id (uuid, PK)
- client_id (uuid, FK → auth.users.id)
- time_slot_id (uuid, FK → time_slots.id, unique)
- status (text)
- created_at (timestamp)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


SLOT_AVAILABLE = "available"
SLOT_BOOKED = "booked"
RESERVATION_CONFIRMED = "confirmed"


def _short_time(value: Optional[str]) -> str:
    # Postgres returns "09:00:00"
    return (value or "")[:5]


@dataclass(frozen=True)
class Club:
    id: str
    name: str
    address: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Club":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            address=row.get("address") or "",
        )

    @property
    def label(self) -> str:
        return f"{self.name} - {self.address}" if self.address else self.name


@dataclass(frozen=True)
class Coach:
    id: str
    name: str
    specialty: str = ""
    club_id: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Coach":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            specialty=row.get("specialty") or "",
            club_id=str(row.get("club_id") or ""),
        )

    @property
    def label(self) -> str:
        return f"{self.name} - {self.specialty}" if self.specialty else self.name


@dataclass(frozen=True)
class TimeSlot:
    id: str
    slot_date: str
    start_time: str
    end_time: str
    status: str = SLOT_AVAILABLE
    club_name: str = ""
    coach_name: str = ""
    coach_specialty: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TimeSlot":
        """Builds a slot from a row selected with the embedded
        ``clubs(name)`` and ``coaches(name, specialty)`` resources."""
        club = row.get("clubs") or {}
        coach = row.get("coaches") or {}
        return cls(
            id=str(row["id"]),
            slot_date=str(row.get("slot_date") or ""),
            start_time=str(row.get("start_time") or ""),
            end_time=str(row.get("end_time") or ""),
            status=row.get("status") or SLOT_AVAILABLE,
            club_name=club.get("name") or "",
            coach_name=coach.get("name") or "",
            coach_specialty=coach.get("specialty") or "",
        )

    @property
    def label(self) -> str:
        return f"{_short_time(self.start_time)} - {_short_time(self.end_time)}"

    @property
    def is_available(self) -> bool:
        return self.status == SLOT_AVAILABLE


@dataclass(frozen=True)
class Reservation:
    client_id: str
    time_slot_id: str
    status: str = RESERVATION_CONFIRMED
    id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "client_id": self.client_id,
            "time_slot_id": self.time_slot_id,
            "status": self.status,
        }
