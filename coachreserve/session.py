"""
Session state shared by every view.

One SessionContext exists per browser session. It owns the single
``on_auth_state_change`` subscription on the Supabase auth client and fans
the changes out to listeners that views mount and unmount, so no view keeps
a listener alive after the router leaves it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, MutableMapping, Optional
import logging

logger = logging.getLogger(__name__)

CONTEXT_KEY = "session_context"

SessionListener = Callable[[str, Optional["SessionRecord"]], None]


@dataclass(frozen=True)
class SessionRecord:
    user_id: str
    email: str
    display_name: str

    @classmethod
    def from_auth_session(cls, session: Any) -> Optional["SessionRecord"]:
        """Converts a Supabase auth session into a record, or None when there
        is no signed-in user."""
        if session is None:
            return None
        user = getattr(session, "user", None)
        if user is None:
            return None

        user_id = getattr(user, "id", None)
        if not user_id:
            raise ValueError("Auth session has a user without an id")

        email = getattr(user, "email", None) or ""
        metadata = getattr(user, "user_metadata", None) or {}
        display_name = (metadata.get("full_name") or metadata.get("name") or "").strip()
        if not display_name:
            display_name = email.split("@", 1)[0]

        return cls(user_id=str(user_id), email=email, display_name=display_name)


class Subscription:
    """Handle returned by SessionContext.subscribe."""

    def __init__(self, context: "SessionContext", listener: SessionListener):
        self._context = context
        self.listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._context._remove(self)


class SessionContext:
    def __init__(self, auth_client: Any):
        self._auth = auth_client
        self._subscriptions: List[Subscription] = []
        self._mounted: Dict[str, Subscription] = {}
        self._current: Optional[SessionRecord] = None
        self._upstream = auth_client.on_auth_state_change(self._on_auth_change)
        self.closed = False

    # ---------------- SNAPSHOT ----------------

    def snapshot(self) -> Optional[SessionRecord]:
        """Asks the auth client for the current session."""
        try:
            session = self._auth.get_session()
        except Exception as e:
            # An expired refresh token surfaces here; treat it as signed out.
            logger.warning(f"Could not read auth session: {e}")
            session = None
        self._current = SessionRecord.from_auth_session(session)
        return self._current

    @property
    def current(self) -> Optional[SessionRecord]:
        """Last record seen, without a round trip to the auth client."""
        return self._current

    # ---------------- LISTENERS ----------------

    def subscribe(self, listener: SessionListener) -> Subscription:
        if self.closed:
            raise RuntimeError("SessionContext is closed")
        subscription = Subscription(self, listener)
        self._subscriptions.append(subscription)
        return subscription

    def mount(self, owner: str, listener: SessionListener) -> Subscription:
        """Subscribes on behalf of a view, replacing what it held before."""
        self.unmount(owner)
        subscription = self.subscribe(listener)
        self._mounted[owner] = subscription
        return subscription

    def unmount(self, owner: str) -> None:
        subscription = self._mounted.pop(owner, None)
        if subscription is not None:
            subscription.unsubscribe()

    def is_mounted(self, owner: str) -> bool:
        return owner in self._mounted

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    def close(self) -> None:
        """Drops every listener and the upstream subscription (on sign-out)."""
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()
        self._mounted.clear()
        if self._upstream is not None:
            self._upstream.unsubscribe()
            self._upstream = None
        self.closed = True

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _on_auth_change(self, event: str, session: Any) -> None:
        record = SessionRecord.from_auth_session(session)
        self._current = record
        logger.info(f"Auth event {event}, signed in: {record is not None}")

        # copy: listeners may unsubscribe while we iterate
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                subscription.listener(event, record)
            except Exception:
                logger.exception("Session listener failed on %s", event)


def get_session_context(state: MutableMapping[str, Any], auth_client: Any) -> SessionContext:
    """The visitor's SessionContext, replaced by a fresh one once closed."""
    context = state.get(CONTEXT_KEY)
    if context is None or context.closed:
        context = SessionContext(auth_client)
        state[CONTEXT_KEY] = context
    return context
