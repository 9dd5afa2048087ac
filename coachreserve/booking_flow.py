from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, TypeVar
import logging

from db import queries
from db.errors import ReservationError, SlotUnavailableError
from db.models import Club, Coach, Reservation, TimeSlot

from coachreserve.notifications import Notifier, error_text
from coachreserve.session import SessionRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

CLUBS = "clubs"
COACHES = "coaches"
SLOTS = "slots"

LOAD_ERRORS = {
    CLUBS: "Could not load clubs.",
    COACHES: "Could not load coaches.",
    SLOTS: "Could not load time slots.",
}

SLOT_TAKEN_MESSAGE = "This slot has just been booked by someone else."


class Stage(str, Enum):
    IDLE = "idle"
    CLUB_CHOSEN = "club_chosen"
    COACH_CHOSEN = "coach_chosen"
    DATE_CHOSEN = "date_chosen"
    SLOTS_LOADED = "slots_loaded"
    BOOKING = "booking"
    BOOKED = "booked"
    FAILED = "failed"


class RequestTracker:
    """
    Generation counter per fetch stage.

    begin() hands out a token; a result is only applied while its token is
    still the latest one for the stage. invalidate() retires in-flight tokens
    when the selection they were issued for changes.
    """

    def __init__(self) -> None:
        self._latest: Dict[str, int] = {}

    def begin(self, stage: str) -> int:
        token = self._latest.get(stage, 0) + 1
        self._latest[stage] = token
        return token

    def is_current(self, stage: str, token: int) -> bool:
        return self._latest.get(stage) == token

    def invalidate(self, *stages: str) -> None:
        for stage in stages:
            self._latest[stage] = self._latest.get(stage, 0) + 1


@dataclass
class WizardState:
    clubs: List[Club] = field(default_factory=list)
    coaches: List[Coach] = field(default_factory=list)
    slots: List[TimeSlot] = field(default_factory=list)

    club_id: Optional[str] = None
    coach_id: Optional[str] = None
    slot_date: Optional[date] = None

    slots_loaded: bool = False
    busy: bool = False
    outcome: Optional[Stage] = None  # BOOKED / FAILED after a booking attempt
    last_reservation: Optional[Reservation] = None

    requests: RequestTracker = field(default_factory=RequestTracker)

    @property
    def stage(self) -> Stage:
        if self.busy:
            return Stage.BOOKING
        if self.outcome is not None:
            return self.outcome
        if self.club_id and self.coach_id and self.slot_date:
            return Stage.SLOTS_LOADED if self.slots_loaded else Stage.DATE_CHOSEN
        if self.club_id and self.coach_id:
            return Stage.COACH_CHOSEN
        if self.club_id:
            return Stage.CLUB_CHOSEN
        return Stage.IDLE

    @property
    def ready_for_slots(self) -> bool:
        return bool(self.club_id and self.coach_id and self.slot_date)

    def club(self) -> Optional[Club]:
        return next((c for c in self.clubs if c.id == self.club_id), None)

    def coach(self) -> Optional[Coach]:
        return next((c for c in self.coaches if c.id == self.coach_id), None)


class BookingWizard:
    """club -> coach -> date -> slot -> reservation."""

    def __init__(self, supabase: Any, notifier: Notifier, state: WizardState):
        self._supabase = supabase
        self._notifier = notifier
        self.state = state

    # ----------------- FETCHING ------------------------

    def _fetch(self, stage: str, loader: Callable[[], T]) -> Optional[T]:
        requests = self.state.requests
        token = requests.begin(stage)
        try:
            result = loader()
        except Exception:
            logger.exception(f"Fetching {stage} failed")
            if requests.is_current(stage, token):
                self._notifier.error(LOAD_ERRORS[stage])
            return None

        if not requests.is_current(stage, token):
            logger.debug(f"Discarding stale {stage} response (token {token})")
            return None
        return result

    def load_clubs(self) -> None:
        clubs = self._fetch(CLUBS, lambda: queries.list_clubs(self._supabase))
        if clubs is not None:
            self.state.clubs = clubs

    def _load_coaches(self, club_id: str) -> None:
        coaches = self._fetch(COACHES, lambda: queries.list_coaches(self._supabase, club_id))
        if coaches is not None:
            self.state.coaches = coaches

    def refresh_slots(self) -> None:
        state = self.state
        if not state.ready_for_slots:
            return

        club_id, coach_id, slot_date = state.club_id, state.coach_id, state.slot_date
        slots = self._fetch(
            SLOTS,
            lambda: queries.list_available_slots(self._supabase, club_id, coach_id, slot_date),
        )
        if slots is not None:
            state.slots = slots
            state.slots_loaded = True

    # ----------------- SELECTION ------------------------

    def _reset_slots(self) -> None:
        self.state.slots = []
        self.state.slots_loaded = False
        self.state.outcome = None
        self.state.requests.invalidate(SLOTS)

    def select_club(self, club_id: Optional[str]) -> None:
        state = self.state
        if club_id == state.club_id:
            return

        logger.debug(f"Club selected: {club_id}")
        state.club_id = club_id or None
        state.coach_id = None
        state.coaches = []
        state.requests.invalidate(COACHES)
        self._reset_slots()

        if state.club_id:
            self._load_coaches(state.club_id)

    def select_coach(self, coach_id: Optional[str]) -> None:
        state = self.state
        if coach_id == state.coach_id:
            return

        logger.debug(f"Coach selected: {coach_id}")
        state.coach_id = coach_id or None
        self._reset_slots()
        self.refresh_slots()

    def select_date(self, slot_date: Optional[date]) -> None:
        state = self.state
        if slot_date == state.slot_date:
            return

        logger.debug(f"Date selected: {slot_date}")
        state.slot_date = slot_date
        self._reset_slots()
        self.refresh_slots()

    # ----------------- BOOKING ------------------------

    def book(self, slot_id: str, session: Optional[SessionRecord]) -> bool:
        state = self.state
        if session is None:
            self._notifier.error("Please sign in to book a session.")
            return False
        if state.busy:
            return False

        reservation = Reservation(client_id=session.user_id, time_slot_id=slot_id)
        state.busy = True
        try:
            created = queries.create_reservation(self._supabase, reservation)
        except SlotUnavailableError:
            self._fail(SLOT_TAKEN_MESSAGE)
            return False
        except ReservationError as e:
            self._fail(e.message or "Booking failed.")
            return False
        except Exception as e:
            logger.exception("Reservation insert failed")
            self._fail(error_text(e, "Booking failed."))
            return False
        finally:
            state.busy = False

        logger.info(f"Reserved slot {slot_id} for {session.user_id}")
        state.last_reservation = created
        state.outcome = Stage.BOOKED
        self._notifier.success("Reservation confirmed!")
        # the booked slot is no longer "available", so it drops out of the list
        self.refresh_slots()
        return True

    def _fail(self, message: str) -> None:
        logger.warning(f"Booking failed: {message}")
        self.state.outcome = Stage.FAILED
        self._notifier.error(message)
