from __future__ import annotations

import sys
import os
import logging
import time

# --- Add project root to sys.path ---
current_dir = os.path.dirname(os.path.abspath(__file__))
parent_dir = os.path.dirname(current_dir)
if parent_dir not in sys.path:
    sys.path.insert(0, parent_dir)

import streamlit as st

from db.database import get_auth_storage, get_supabase_client, get_verifier_store

from coachreserve.config import load_config
from coachreserve.session import get_session_context
from coachreserve.navigation import (
    BOOKING,
    AUTH,
    HOME,
    ROUTE_KEY,
    ROUTES,
    Navigator,
    normalize,
    resolve_route,
    view_name,
)
from coachreserve.notifications import Notifier, render_notifications
from coachreserve.auth_flow import FLOW_PARAM, AuthFlow
from coachreserve.booking_flow import BookingWizard, WizardState
from coachreserve.landing_page import render_landing
from coachreserve.auth_page import render_auth
from coachreserve.booking_page import render_booking

logger = logging.getLogger(__name__)

PAGE_PARAM = "page"


@st.cache_resource
def setup_logging(level_name: str):
    """Configures logging to stderr with local time, once per process."""
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s]: %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Use local time instead of UTC for logging
    formatter.converter = time.localtime
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        handlers=[handler],
    )


def _init_app_state():
    if "booking_state" not in st.session_state:
        st.session_state.booking_state = WizardState()


# --- CSS STYLING ---
def inject_custom_css():
    st.markdown("""
    <style>
        /* --- Hide Header/Footer for clean look --- */
        header {visibility: hidden;}
        footer {visibility: hidden;}
    </style>
    """, unsafe_allow_html=True)


def _handle_oauth_return(flow: AuthFlow, navigator: Navigator):
    """The provider sends the browser back to /?code=...&flow=..."""
    params = st.query_params
    code = params.get("code")
    if not code:
        return
    if flow.complete_oauth(code, params.get(FLOW_PARAM)):
        navigator.navigate(HOME)
    del params["code"]
    if FLOW_PARAM in params:
        del params[FLOW_PARAM]


def main():
    st.set_page_config(
        page_title="CoachReserve",
        page_icon="🏋️",
        layout="wide",
        initial_sidebar_state="collapsed",
    )

    cfg = load_config()
    setup_logging(cfg.app.log_level)
    inject_custom_css()
    _init_app_state()

    client = get_supabase_client()
    session_ctx = get_session_context(st.session_state, client.auth)
    notifier = Notifier(st.session_state)
    navigator = Navigator(st.session_state, session_ctx)
    flow = AuthFlow(
        client.auth,
        notifier,
        navigator,
        cfg.app.site_url,
        st.session_state,
        auth_storage=get_auth_storage(),
        verifier_store=get_verifier_store(),
    )

    if ROUTE_KEY not in st.session_state:
        st.session_state[ROUTE_KEY] = normalize(st.query_params.get(PAGE_PARAM))
    _handle_oauth_return(flow, navigator)

    # --- ROUTING (guard runs before any view fetches data) ---
    session = session_ctx.snapshot()
    requested = navigator.current
    route = resolve_route(requested, session)
    if route != requested:
        logger.info(f"Redirecting {requested} -> {route}")
        navigator.navigate(route)
    st.query_params[PAGE_PARAM] = route

    for path in ROUTES:
        if path != route:
            session_ctx.unmount(view_name(path))

    if route == BOOKING:
        wizard = BookingWizard(client, notifier, st.session_state.booking_state)
        render_booking(wizard, flow, session_ctx, navigator)
    else:
        # wizard copies only live while the booking view is shown
        st.session_state.booking_state = WizardState()
        if route == AUTH:
            render_auth(flow, session_ctx, navigator)
        else:
            render_landing(session_ctx, navigator)

    render_notifications(notifier)


if __name__ == "__main__":
    main()
