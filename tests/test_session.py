from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from coachreserve.session import CONTEXT_KEY, SessionContext, SessionRecord, get_session_context


def make_session(user_id="user-1", email="jane@example.com", metadata=None):
    user = SimpleNamespace(id=user_id, email=email, user_metadata=metadata or {})
    return SimpleNamespace(user=user, access_token="token")


@pytest.fixture
def context(auth_client):
    auth_client.get_session.return_value = None
    return SessionContext(auth_client)


def emit(auth_client, event, session):
    """Calls the callback SessionContext registered on the auth client."""
    callback = auth_client.on_auth_state_change.call_args.args[0]
    callback(event, session)


# --- SessionRecord ---

def test_record_from_session_uses_full_name():
    record = SessionRecord.from_auth_session(make_session(metadata={"full_name": "Jane Doe"}))
    assert record == SessionRecord("user-1", "jane@example.com", "Jane Doe")


def test_record_falls_back_to_provider_name_then_email():
    oauth = SessionRecord.from_auth_session(make_session(metadata={"name": "Jane G."}))
    assert oauth.display_name == "Jane G."

    bare = SessionRecord.from_auth_session(make_session())
    assert bare.display_name == "jane"


def test_record_none_without_session_or_user():
    assert SessionRecord.from_auth_session(None) is None
    assert SessionRecord.from_auth_session(SimpleNamespace(user=None)) is None


def test_record_rejects_user_without_id():
    with pytest.raises(ValueError):
        SessionRecord.from_auth_session(make_session(user_id=None))


# --- Snapshot ---

def test_snapshot_reads_auth_client(context, auth_client):
    assert context.snapshot() is None

    auth_client.get_session.return_value = make_session()
    record = context.snapshot()

    assert record.user_id == "user-1"
    assert context.current == record


def test_snapshot_treats_auth_error_as_signed_out(context, auth_client):
    auth_client.get_session.return_value = make_session()
    context.snapshot()

    auth_client.get_session.side_effect = RuntimeError("Invalid Refresh Token")

    assert context.snapshot() is None
    assert context.current is None


# --- Listeners ---

def test_single_upstream_subscription(auth_client, context):
    context.mount("landing", lambda event, record: None)
    context.mount("booking", lambda event, record: None)
    assert auth_client.on_auth_state_change.call_count == 1


def test_listeners_receive_records(context, auth_client):
    seen = []
    context.subscribe(lambda event, record: seen.append((event, record)))

    emit(auth_client, "SIGNED_IN", make_session())
    emit(auth_client, "SIGNED_OUT", None)

    assert [event for event, _ in seen] == ["SIGNED_IN", "SIGNED_OUT"]
    assert seen[0][1].email == "jane@example.com"
    assert seen[1][1] is None
    assert context.current is None


def test_unsubscribed_listener_is_not_called(context, auth_client):
    listener = MagicMock()
    subscription = context.subscribe(listener)

    subscription.unsubscribe()
    subscription.unsubscribe()
    emit(auth_client, "SIGNED_IN", make_session())

    listener.assert_not_called()
    assert context.listener_count == 0


def test_mount_replaces_previous_listener(context, auth_client):
    old, new = MagicMock(), MagicMock()
    context.mount("auth", old)
    context.mount("auth", new)

    emit(auth_client, "SIGNED_IN", make_session())

    old.assert_not_called()
    new.assert_called_once()
    assert context.listener_count == 1


def test_unmount_releases_listener(context, auth_client):
    listener = MagicMock()
    context.mount("booking", listener)
    assert context.is_mounted("booking")

    context.unmount("booking")
    emit(auth_client, "SIGNED_OUT", None)

    assert not context.is_mounted("booking")
    listener.assert_not_called()


def test_failing_listener_does_not_block_others(context, auth_client):
    broken = MagicMock(side_effect=RuntimeError("boom"))
    healthy = MagicMock()
    context.subscribe(broken)
    context.subscribe(healthy)

    emit(auth_client, "SIGNED_IN", make_session())

    healthy.assert_called_once()


def test_listener_may_unsubscribe_during_dispatch(context, auth_client):
    calls = []
    holder = {}

    def once(event, record):
        calls.append(event)
        holder["sub"].unsubscribe()

    holder["sub"] = context.subscribe(once)
    emit(auth_client, "SIGNED_IN", make_session())
    emit(auth_client, "SIGNED_OUT", None)

    assert calls == ["SIGNED_IN"]


def test_close_tears_everything_down(context, auth_client):
    upstream = auth_client.on_auth_state_change.return_value
    context.mount("landing", MagicMock())

    context.close()

    upstream.unsubscribe.assert_called_once_with()
    assert context.listener_count == 0
    assert not context.is_mounted("landing")
    with pytest.raises(RuntimeError):
        context.subscribe(MagicMock())


def test_get_session_context_reuses_open_context(auth_client):
    state = {}
    first = get_session_context(state, auth_client)

    assert get_session_context(state, auth_client) is first
    assert state[CONTEXT_KEY] is first


def test_get_session_context_replaces_closed_one(auth_client):
    state = {}
    first = get_session_context(state, auth_client)
    first.close()

    second = get_session_context(state, auth_client)

    assert second is not first
    assert not second.closed
    assert auth_client.on_auth_state_change.call_count == 2
