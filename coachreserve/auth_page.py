import streamlit as st

from coachreserve.auth_flow import (
    OAUTH_PROVIDERS,
    SIGNIN_EMAIL_KEY,
    SIGNIN_PASSWORD_KEY,
    SIGNUP_EMAIL_KEY,
    SIGNUP_NAME_KEY,
    SIGNUP_PASSWORD_KEY,
    AuthFlow,
)
from coachreserve.navigation import HOME, Navigator
from coachreserve.session import SessionContext

VIEW = "auth"


def _sign_in(flow: AuthFlow):
    flow.sign_in(
        st.session_state.get(SIGNIN_EMAIL_KEY, ""),
        st.session_state.get(SIGNIN_PASSWORD_KEY, ""),
    )


def _sign_up(flow: AuthFlow):
    flow.sign_up(
        st.session_state.get(SIGNUP_EMAIL_KEY, ""),
        st.session_state.get(SIGNUP_PASSWORD_KEY, ""),
        st.session_state.get(SIGNUP_NAME_KEY, ""),
    )


def _oauth_buttons(flow: AuthFlow, tab: str):
    for provider in OAUTH_PROVIDERS:
        st.button(
            f"Continue with {provider.capitalize()}",
            key=f"{tab}_oauth_{provider}",
            width="stretch",
            disabled=flow.busy,
            on_click=flow.sign_in_with_oauth,
            args=(provider,),
        )
    st.markdown(
        "<p style='text-align:center;font-size:0.8rem;color:grey'>OR WITH EMAIL</p>",
        unsafe_allow_html=True,
    )


def render_auth(flow: AuthFlow, session_ctx: SessionContext, navigator: Navigator):
    def on_session_change(event, record):
        if record is not None:
            navigator.navigate(HOME)

    session_ctx.mount(VIEW, on_session_change)

    _, middle, _ = st.columns([1, 2, 1])
    with middle:
        st.markdown("<h2 style='text-align:center'>🏋️ CoachReserve</h2>", unsafe_allow_html=True)
        st.caption("Book your coaching sessions online")

        # OAuth: the provider takes over the browser from here
        redirect = flow.take_pending_redirect()
        if redirect:
            st.info("Continue in the provider window to finish signing in.")
            st.link_button("Continue to sign-in", redirect, type="primary", width="stretch")

        sign_in_tab, sign_up_tab = st.tabs(["Sign in", "Sign up"])

        # ----------- SIGN IN -----------
        with sign_in_tab:
            _oauth_buttons(flow, "signin")
            st.text_input("Email", key=SIGNIN_EMAIL_KEY, placeholder="you@email.com")
            st.text_input("Password", key=SIGNIN_PASSWORD_KEY, type="password", placeholder="••••••••")
            st.button(
                "Signing in..." if flow.busy else "Sign in",
                key="signin_submit",
                type="primary",
                width="stretch",
                disabled=flow.busy,
                on_click=_sign_in,
                args=(flow,),
            )

        # ----------- SIGN UP -----------
        with sign_up_tab:
            _oauth_buttons(flow, "signup")
            st.text_input("Full name", key=SIGNUP_NAME_KEY, placeholder="Jane Doe")
            st.text_input("Email", key=SIGNUP_EMAIL_KEY, placeholder="you@email.com")
            st.text_input("Password", key=SIGNUP_PASSWORD_KEY, type="password", placeholder="••••••••")
            st.button(
                "Signing up..." if flow.busy else "Sign up",
                key="signup_submit",
                type="primary",
                width="stretch",
                disabled=flow.busy,
                on_click=_sign_up,
                args=(flow,),
            )
