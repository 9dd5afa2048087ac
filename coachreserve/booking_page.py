from datetime import date
from typing import Optional

import streamlit as st

from coachreserve.auth_flow import AuthFlow
from coachreserve.booking_flow import BookingWizard
from coachreserve.navigation import AUTH, HOME, Navigator
from coachreserve.session import SessionContext, SessionRecord

VIEW = "booking"

CLUB_KEY = "booking_club"
COACH_KEY = "booking_coach"
DATE_KEY = "booking_date"


def _on_club_change(wizard: BookingWizard):
    wizard.select_club(st.session_state.get(CLUB_KEY))
    # the coach widget belongs to the previous club
    st.session_state.pop(COACH_KEY, None)


def _on_coach_change(wizard: BookingWizard):
    wizard.select_coach(st.session_state.get(COACH_KEY))


def _on_date_change(wizard: BookingWizard):
    wizard.select_date(st.session_state.get(DATE_KEY))


def _book(wizard: BookingWizard, slot_id: str, user: Optional[SessionRecord]):
    wizard.book(slot_id, user)


def _sign_out(flow: AuthFlow, session_ctx: SessionContext):
    flow.sign_out()
    # the next run starts a fresh context for the signed-out visitor
    session_ctx.close()


def render_booking(
    wizard: BookingWizard,
    flow: AuthFlow,
    session_ctx: SessionContext,
    navigator: Navigator,
):
    def on_session_change(event, record):
        if record is None:
            navigator.navigate(AUTH)

    session_ctx.mount(VIEW, on_session_change)
    user = session_ctx.current
    state = wizard.state

    if not state.clubs:
        wizard.load_clubs()

    # --- Header ---
    back, _, out = st.columns([1, 4, 1])
    back.button("← Back", on_click=navigator.navigate, args=(HOME,), key="booking_back")
    out.button("Sign out", on_click=_sign_out, args=(flow, session_ctx), key="booking_signout")

    with st.container(border=True):
        st.title("Book a session")
        st.caption("Pick a club, a coach and a date to see the open slots")

        # --- Club ---
        clubs = {c.id: c for c in state.clubs}
        st.selectbox(
            "📍 Select a club",
            options=list(clubs),
            index=list(clubs).index(state.club_id) if state.club_id in clubs else None,
            format_func=lambda cid: clubs[cid].label,
            placeholder="Choose a club",
            key=CLUB_KEY,
            on_change=_on_club_change,
            args=(wizard,),
        )

        # --- Coach ---
        if state.club_id:
            coaches = {c.id: c for c in state.coaches}
            st.selectbox(
                "👤 Select a coach",
                options=list(coaches),
                index=list(coaches).index(state.coach_id) if state.coach_id in coaches else None,
                format_func=lambda cid: coaches[cid].label,
                placeholder="Choose a coach",
                key=COACH_KEY,
                on_change=_on_coach_change,
                args=(wizard,),
            )

        # --- Date ---
        if state.coach_id:
            st.date_input(
                "🕒 Select a date",
                value=state.slot_date,
                min_value=date.today(),
                format="DD/MM/YYYY",
                key=DATE_KEY,
                on_change=_on_date_change,
                args=(wizard,),
            )

    if not state.slot_date or not state.coach_id:
        return

    # --- Slots ---
    if state.slots:
        with st.container(border=True):
            st.subheader("Available slots")
            st.caption(state.slot_date.strftime("%A %d %B %Y"))
            for slot in state.slots:
                with st.container(border=True):
                    info, action = st.columns([4, 1])
                    info.markdown(f"**🕒 {slot.label}**")
                    info.caption(f"{slot.coach_name} - {slot.coach_specialty}")
                    action.button(
                        "Book",
                        key=f"book_{slot.id}",
                        type="primary",
                        disabled=state.busy,
                        on_click=_book,
                        args=(wizard, slot.id, user),
                    )
    elif state.slots_loaded:
        with st.container(border=True):
            st.markdown(
                "<p style='text-align:center;color:grey'>No slots available for this date</p>",
                unsafe_allow_html=True,
            )
