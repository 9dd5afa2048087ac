# coachreserve/notifications.py

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, MutableMapping

import streamlit as st

Level = Literal["success", "error", "info"]

QUEUE_KEY = "notifications"


@dataclass(frozen=True)
class Notification:
    level: Level
    message: str


class Notifier:
    """Toast queue kept in session state so messages survive a rerun."""

    def __init__(self, state: MutableMapping[str, Any], max_messages: int = 10):
        self._state = state
        self._max = max_messages
        if QUEUE_KEY not in self._state:
            self._state[QUEUE_KEY] = []

    @property
    def pending(self) -> List[Notification]:
        return list(self._state[QUEUE_KEY])

    def _push(self, level: Level, message: str) -> None:
        queue: List[Notification] = self._state[QUEUE_KEY]
        queue.append(Notification(level, message))
        if len(queue) > self._max:
            del queue[: len(queue) - self._max]

    def success(self, message: str) -> None:
        self._push("success", message)

    def error(self, message: str) -> None:
        self._push("error", message)

    def info(self, message: str) -> None:
        self._push("info", message)

    def drain(self) -> List[Notification]:
        queue = self._state[QUEUE_KEY]
        items = list(queue)
        queue.clear()
        return items


ICONS: Dict[str, str] = {"success": "✅", "error": "⚠️", "info": "ℹ️"}


def render_notifications(notifier: Notifier) -> None:
    for note in notifier.drain():
        st.toast(note.message, icon=ICONS[note.level])


def error_text(error: Exception, fallback: str) -> str:
    """The message a provider attached to a rejection, verbatim."""
    message = getattr(error, "message", None) or str(error)
    return message.strip() or fallback
