import logging

import streamlit as st

from coachreserve.navigation import AUTH, BOOKING, Navigator
from coachreserve.session import SessionContext

logger = logging.getLogger(__name__)

VIEW = "landing"

FEATURES = [
    ("📅", "Simple booking", "Book your coaching slots in a few clicks."),
    ("👥", "Qualified coaches", "Choose from a selection of professional coaches."),
    ("⏱️", "Live availability", "See open slots as soon as they are published."),
]


def _on_session_change(event, record):
    # public page: the next run renders from a fresh snapshot
    logger.debug(f"Landing saw {event}")


def render_landing(session_ctx: SessionContext, navigator: Navigator):
    session_ctx.mount(VIEW, _on_session_change)
    user = session_ctx.current

    # --- Hero ---
    st.markdown("<h1 style='text-align:center'>🏋️ CoachReserve</h1>", unsafe_allow_html=True)
    st.markdown(
        "<p style='text-align:center;font-size:1.3rem'>"
        "The modern way to manage and book your sports coaching sessions"
        "</p>",
        unsafe_allow_html=True,
    )

    _, middle, _ = st.columns([1, 2, 1])
    with middle:
        if user:
            st.caption(f"Signed in as {user.display_name}")
            st.button(
                "Book a session →",
                type="primary",
                width="stretch",
                on_click=navigator.navigate,
                args=(BOOKING,),
                key="landing_book",
            )
        else:
            left, right = st.columns(2)
            left.button(
                "Get started →",
                type="primary",
                width="stretch",
                on_click=navigator.navigate,
                args=(AUTH,),
                key="landing_start",
            )
            right.button(
                "Sign in",
                width="stretch",
                on_click=navigator.navigate,
                args=(AUTH,),
                key="landing_signin",
            )

    # --- Features ---
    st.divider()
    st.subheader("Why CoachReserve?")
    st.caption("Everything you need for your coaching, in one place")
    for col, (icon, title, description) in zip(st.columns(3), FEATURES):
        with col.container(border=True):
            st.markdown(f"### {icon}")
            st.markdown(f"**{title}**")
            st.write(description)

    # --- Call to action ---
    st.divider()
    st.markdown("<h3 style='text-align:center'>Ready to start training?</h3>", unsafe_allow_html=True)
    if not user:
        _, middle, _ = st.columns([1, 2, 1])
        middle.button(
            "Create a free account ✔",
            width="stretch",
            on_click=navigator.navigate,
            args=(AUTH,),
            key="landing_signup",
        )
