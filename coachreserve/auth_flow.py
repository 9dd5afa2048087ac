from __future__ import annotations

from typing import Any, MutableMapping, Optional, Tuple
import logging
import secrets

from email_validator import validate_email as _validate_email, EmailNotValidError

from coachreserve.navigation import HOME
from coachreserve.notifications import Notifier, error_text

logger = logging.getLogger(__name__)

OAUTH_PROVIDERS: Tuple[str, ...] = ("google", "facebook", "apple")
MIN_PASSWORD_LENGTH = 6

BUSY_KEY = "auth_busy"
REDIRECT_KEY = "oauth_redirect"
FLOW_PARAM = "flow"

# widget keys of the form fields on the auth page
SIGNIN_EMAIL_KEY = "signin_email"
SIGNIN_PASSWORD_KEY = "signin_password"
SIGNUP_NAME_KEY = "signup_full_name"
SIGNUP_EMAIL_KEY = "signup_email"
SIGNUP_PASSWORD_KEY = "signup_password"
FORM_KEYS = (
    SIGNIN_EMAIL_KEY,
    SIGNIN_PASSWORD_KEY,
    SIGNUP_NAME_KEY,
    SIGNUP_EMAIL_KEY,
    SIGNUP_PASSWORD_KEY,
)


# ----------------- VALIDATORS ------------------------

def validate_email(email: str) -> bool:
    try:
        _validate_email(email, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False


def validate_credentials(email: str, password: str, full_name: Optional[str] = None) -> Optional[str]:
    """Returns the first problem with the form, or None.

    Passing full_name switches to the sign-up rules (name required, minimum
    password length)."""
    if full_name is not None and not full_name.strip():
        return "Please enter your full name."
    if not email.strip():
        return "Please enter your email."
    if not validate_email(email.strip()):
        return "Invalid email. Please try format: name@example.com"
    if not password:
        return "Please enter your password."
    if full_name is not None and len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
    return None


# ----------------- CONTROLLER ------------------------

class AuthFlow:
    """
    Sign-up, sign-in, OAuth and sign-out against the Supabase auth client.

    A single busy flag in session state makes the actions mutually exclusive:
    while one is in flight the others return False without validating or
    calling the provider. Successful password sign-ins do not navigate; the
    session change notification does.

    OAuth uses PKCE. The provider sends the browser back to a fresh Streamlit
    session, so the code verifier written to the auth storage is parked in
    ``verifier_store`` (shared by the whole server process) under a random
    flow id carried in the redirect URL.
    """

    def __init__(
        self,
        auth_client: Any,
        notifier: Notifier,
        navigator: Any,
        site_url: str,
        state: MutableMapping[str, Any],
        auth_storage: Any = None,
        verifier_store: Optional[MutableMapping[str, str]] = None,
    ):
        self._auth = auth_client
        self._notifier = notifier
        self._navigator = navigator
        self._redirect_url = f"{site_url.rstrip('/')}/"
        self._state = state
        self._storage = auth_storage
        self._verifiers = verifier_store if verifier_store is not None else {}
        self._state.setdefault(BUSY_KEY, False)

    @property
    def busy(self) -> bool:
        return bool(self._state.get(BUSY_KEY))

    @property
    def redirect_url(self) -> str:
        return self._redirect_url

    @property
    def pending_redirect(self) -> Optional[str]:
        return self._state.get(REDIRECT_KEY)

    def take_pending_redirect(self) -> Optional[str]:
        return self._state.pop(REDIRECT_KEY, None)

    def _begin(self) -> bool:
        if self.busy:
            logger.debug("Auth action ignored, another one is in flight")
            return False
        self._state[BUSY_KEY] = True
        return True

    def _end(self) -> None:
        self._state[BUSY_KEY] = False

    def clear_form(self) -> None:
        for key in FORM_KEYS:
            self._state.pop(key, None)

    # --- Email / password ---

    def sign_up(self, email: str, password: str, full_name: str) -> bool:
        if self.busy:
            return False
        problem = validate_credentials(email, password, full_name)
        if problem:
            self._notifier.error(problem)
            return False
        if not self._begin():
            return False

        try:
            self._auth.sign_up(
                {
                    "email": email.strip(),
                    "password": password,
                    "options": {
                        "email_redirect_to": self._redirect_url,
                        "data": {"full_name": full_name.strip()},
                    },
                }
            )
        except Exception as e:
            logger.warning(f"Sign-up failed: {e}")
            self._notifier.error(error_text(e, "Something went wrong during sign-up."))
            return False
        finally:
            self._end()

        logger.info("Sign-up submitted")
        self._notifier.success("Sign-up successful! Check your email to confirm your account.")
        self.clear_form()
        return True

    def sign_in(self, email: str, password: str) -> bool:
        if self.busy:
            return False
        problem = validate_credentials(email, password)
        if problem:
            self._notifier.error(problem)
            return False
        if not self._begin():
            return False

        try:
            self._auth.sign_in_with_password({"email": email.strip(), "password": password})
        except Exception as e:
            logger.warning(f"Sign-in failed: {e}")
            self._notifier.error(error_text(e, "Sign-in failed."))
            return False
        finally:
            self._end()

        logger.info("Password sign-in succeeded")
        self._notifier.success("Signed in successfully!")
        return True

    # --- OAuth ---

    def sign_in_with_oauth(self, provider: str) -> bool:
        if self.busy:
            return False
        if provider not in OAUTH_PROVIDERS:
            self._notifier.error(f"Unsupported sign-in provider: {provider}")
            return False
        if not self._begin():
            return False

        flow_id = secrets.token_urlsafe(12)
        redirect_to = f"{self._redirect_url}?{FLOW_PARAM}={flow_id}"
        try:
            response = self._auth.sign_in_with_oauth(
                {"provider": provider, "options": {"redirect_to": redirect_to}}
            )
        except Exception as e:
            logger.warning(f"OAuth sign-in with {provider} failed: {e}")
            reason = error_text(e, "")
            message = f"Could not sign in with {provider}"
            self._notifier.error(f"{message}: {reason}" if reason else f"{message}.")
            return False
        finally:
            self._end()

        url = getattr(response, "url", None)
        if not url:
            self._notifier.error(f"Could not sign in with {provider}.")
            return False

        verifier = self._code_verifier()
        if verifier:
            self._verifiers[flow_id] = verifier

        # The page sends the browser there; nothing else changes until we come back.
        self._state[REDIRECT_KEY] = url
        logger.info(f"Redirecting to {provider} for sign-in")
        return True

    def _code_verifier(self) -> Optional[str]:
        items = getattr(self._storage, "storage", None) or {}
        for key, value in items.items():
            if key.endswith("-code-verifier"):
                return value
        return None

    def complete_oauth(self, code: str, flow_id: Optional[str] = None) -> bool:
        """Finishes the PKCE flow with the ?code= the provider redirected back with."""
        if not code or not self._begin():
            return False

        params = {"auth_code": code, "redirect_to": self._redirect_url}
        verifier = self._verifiers.pop(flow_id, None) if flow_id else None
        if verifier:
            params["code_verifier"] = verifier

        try:
            self._auth.exchange_code_for_session(params)
        except Exception as e:
            logger.warning(f"OAuth code exchange failed: {e}")
            self._notifier.error(error_text(e, "Sign-in failed."))
            return False
        finally:
            self._end()

        self._notifier.success("Signed in successfully!")
        return True

    # --- Sign out ---

    def sign_out(self) -> None:
        try:
            self._auth.sign_out()
        except Exception as e:
            logger.warning(f"Sign-out failed: {e}")
            self._notifier.error(error_text(e, "Sign-out failed."))
        self._navigator.navigate(HOME)
