from datetime import date
from typing import List
import logging

from supabase import Client, PostgrestAPIError

from db.errors import ReservationError, SlotUnavailableError
from db.models import SLOT_AVAILABLE, Club, Coach, Reservation, TimeSlot

logger = logging.getLogger(__name__)

# Postgres unique_violation, and the HTTP status PostgREST answers it with
CONFLICT_CODES = {"23505", "409"}

SLOT_COLUMNS = "*, clubs(name), coaches(name, specialty)"


# --- READS ------------------------------------------------------------------

def list_clubs(supabase: Client) -> List[Club]:
    res = supabase.table("clubs").select("*").order("name").execute()
    return [Club.from_row(row) for row in res.data or []]


def list_coaches(supabase: Client, club_id: str) -> List[Coach]:
    res = (
        supabase.table("coaches")
        .select("*")
        .eq("club_id", club_id)
        .order("name")
        .execute()
    )
    return [Coach.from_row(row) for row in res.data or []]


def list_available_slots(
    supabase: Client, club_id: str, coach_id: str, slot_date: date
) -> List[TimeSlot]:
    """Open slots of one coach at one club on one day, earliest first."""
    res = (
        supabase.table("time_slots")
        .select(SLOT_COLUMNS)
        .eq("club_id", club_id)
        .eq("coach_id", coach_id)
        .eq("slot_date", slot_date.isoformat())
        .eq("status", SLOT_AVAILABLE)
        .order("start_time")
        .execute()
    )
    return [TimeSlot.from_row(row) for row in res.data or []]


# --- WRITE ------------------------------------------------------------------

def create_reservation(supabase: Client, reservation: Reservation) -> Reservation:
    """
    Inserts a reservation row.

    Raises SlotUnavailableError when the database refuses a second
    reservation for the same slot, ReservationError for any other rejection.
    """
    try:
        res = supabase.table("reservations").insert(reservation.to_payload()).execute()
    except PostgrestAPIError as e:
        code = str(e.code) if e.code is not None else None
        message = e.message or str(e)
        if code in CONFLICT_CODES:
            logger.info("Slot %s already reserved (%s)", reservation.time_slot_id, code)
            raise SlotUnavailableError(message, code) from e
        raise ReservationError(message, code) from e

    row = res.data[0] if res.data else {}
    return Reservation(
        client_id=reservation.client_id,
        time_slot_id=reservation.time_slot_id,
        status=row.get("status", reservation.status),
        id=str(row["id"]) if row.get("id") is not None else None,
    )
