from __future__ import annotations

from typing import Any, MutableMapping, Optional
import logging

logger = logging.getLogger(__name__)

HOME = "/"
AUTH = "/auth"
BOOKING = "/booking"

ROUTES = {
    HOME: "landing",
    AUTH: "auth",
    BOOKING: "booking",
}

ROUTE_KEY = "route"


def normalize(path: Optional[str]) -> str:
    if not path:
        return HOME
    path = "/" + path.strip().strip("/")
    return path if path in ROUTES else HOME


def resolve_route(path: Optional[str], session: Any) -> str:
    """Applies the access rules: booking needs a session, the auth page is
    pointless with one."""
    path = normalize(path)
    if path == BOOKING and session is None:
        return AUTH
    if path == AUTH and session is not None:
        return HOME
    return path


def view_name(path: str) -> str:
    return ROUTES[normalize(path)]


class Navigator:
    """
    Keeps the current route in the per-visitor state mapping.

    Widget callbacks run before Streamlit reruns the script, so a route set
    from a callback (or from a session listener it triggers) is the route the
    following run reads. navigate() therefore only records the move.
    """

    def __init__(self, state: MutableMapping[str, Any], session_context: Any = None):
        self._state = state
        self._session = session_context

    @property
    def current(self) -> str:
        return normalize(self._state.get(ROUTE_KEY))

    def navigate(self, path: str) -> None:
        target = normalize(path)
        previous = self.current
        if target == previous and ROUTE_KEY in self._state:
            return

        logger.debug(f"Navigate {previous} -> {target}")
        self._state[ROUTE_KEY] = target

        # Leaving a view releases its session listener.
        if self._session is not None and target != previous:
            self._session.unmount(view_name(previous))
