import itertools
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from supabase import PostgrestAPIError

from coachreserve.notifications import Notifier


class FakeQuery:
    """Records a PostgREST builder chain and runs it against FakeSupabase."""

    def __init__(self, backend, table):
        self.backend = backend
        self.table = table
        self.columns = None
        self.filters = []
        self.ordering = []
        self.payload = None

    def select(self, columns="*"):
        self.columns = columns
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def insert(self, payload):
        self.payload = payload
        return self

    def execute(self):
        return self.backend.run(self)


class FakeSupabase:
    """
    Tiny in-memory stand-in for the Supabase client.

    Inserting a reservation flips the slot to "booked" (the database trigger
    the app relies on) and a second reservation for the same slot fails with
    the unique violation PostgREST reports.
    """

    def __init__(self, tables=None):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.queries = []
        self.failures = {}
        self.before_execute = None
        self._ids = itertools.count(1)

    def table(self, name):
        return FakeQuery(self, name)

    def fail_next(self, table, error):
        self.failures.setdefault(table, []).append(error)

    def queries_for(self, table):
        return [q for q in self.queries if q.table == table]

    def run(self, query):
        self.queries.append(query)
        if self.before_execute is not None:
            hook, self.before_execute = self.before_execute, None
            hook(query)
        pending = self.failures.get(query.table)
        if pending:
            raise pending.pop(0)
        if query.payload is not None:
            return SimpleNamespace(data=[self._insert(query.table, query.payload)])
        return SimpleNamespace(data=self._select(query))

    def _insert(self, table, payload):
        rows = self.tables.setdefault(table, [])
        if table == "reservations":
            if any(r["time_slot_id"] == payload["time_slot_id"] for r in rows):
                raise PostgrestAPIError(
                    {
                        "message": 'duplicate key value violates unique constraint "reservations_time_slot_id_key"',
                        "code": "23505",
                    }
                )
            for slot in self.tables.get("time_slots", []):
                if slot["id"] == payload["time_slot_id"]:
                    slot["status"] = "booked"
        row = dict(payload, id=f"res-{next(self._ids)}")
        rows.append(row)
        return row

    def _select(self, query):
        rows = [dict(r) for r in self.tables.get(query.table, [])]
        for column, value in query.filters:
            rows = [r for r in rows if r.get(column) == value]
        for column, desc in reversed(query.ordering):
            rows.sort(key=lambda r: r.get(column), reverse=desc)
        if query.columns and "clubs(name)" in query.columns:
            for r in rows:
                club = self._find("clubs", r.get("club_id"))
                r["clubs"] = {"name": club.get("name")}
        if query.columns and "coaches(name, specialty)" in query.columns:
            for r in rows:
                coach = self._find("coaches", r.get("coach_id"))
                r["coaches"] = {"name": coach.get("name"), "specialty": coach.get("specialty")}
        return rows

    def _find(self, table, row_id):
        return next((r for r in self.tables.get(table, []) if r["id"] == row_id), {})


CLUBS = [
    {"id": "club-b", "name": "Club B", "address": "2 Rue du Stade"},
    {"id": "club-a", "name": "Club A", "address": "1 Avenue du Parc"},
]

COACHES = [
    {"id": "coach-x", "name": "Coach X", "specialty": "Boxing", "club_id": "club-a"},
    {"id": "coach-w", "name": "Coach W", "specialty": "Yoga", "club_id": "club-a"},
    {"id": "coach-z", "name": "Coach Z", "specialty": "Pilates", "club_id": "club-b"},
]

TIME_SLOTS = [
    {
        "id": "slot-1",
        "club_id": "club-a",
        "coach_id": "coach-x",
        "slot_date": "2024-06-10",
        "start_time": "09:00:00",
        "end_time": "10:00:00",
        "status": "available",
    },
]


@pytest.fixture
def backend():
    return FakeSupabase(
        {
            "clubs": CLUBS,
            "coaches": COACHES,
            "time_slots": TIME_SLOTS,
            "reservations": [],
        }
    )


@pytest.fixture
def state():
    return {}


@pytest.fixture
def notifier(state):
    return Notifier(state)


@pytest.fixture
def navigator():
    return MagicMock()


@pytest.fixture
def auth_client():
    return MagicMock()
