"""
This module provides the session store: who is logged in, and whether we know yet.

The `SessionStore` is owned by one browser session (it lives in
`st.session_state`) and is handed to every page. It is the only place that
mutates the authenticated user. None of its operations raise: failures end in
a well-defined state (`user is None`) and are logged.
"""
# coldesthetic/clinic/session.py

import logging

from clinic.api import CONNECTION_ERROR_MESSAGE, ApiError, unwrap
from clinic.models import SessionUser

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "No se pudo iniciar sesión."


class SessionStore:
    """Holds the authenticated user and the session-check flags.

    Attributes:
        user (SessionUser | None): The current user, if any.
        auth_checked (bool): True once the initial session check has finished.
        loading (bool): True until the initial session check has finished.
        is_logging_out (bool): True while a deliberate logout is in progress.
    """

    def __init__(self, api):
        self.api = api
        self.user = None
        self.auth_checked = False
        self.loading = True
        self.is_logging_out = False

    def set_user(self, user):
        """Replaces the current user; a known user implies the check is done."""
        self.user = user
        if user is not None:
            self.auth_checked = True
            self.loading = False
            self.is_logging_out = False

    def check_session(self):
        """Asks the backend who owns the current cookie."""
        try:
            payload = self.api.get("me")
            self.user = SessionUser.from_api(unwrap(payload))
        except ApiError as exc:
            if exc.status is None:
                logger.warning("Session check failed: %s", exc.message)
            self.user = None
        finally:
            self.loading = False
            self.auth_checked = True

    def login(self, email, password):
        """Authenticates against the backend.

        Args:
            email (str): The account e-mail.
            password (str): The plaintext password.

        Returns:
            str | None: None on success, otherwise the message to show.
        """
        try:
            self.api.fetch_csrf_cookie()
            payload = self.api.post(
                "login",
                json={"email": email, "password": password},
                fallback_error=LOGIN_FAILED_MESSAGE,
            )
        except ApiError as exc:
            return exc.message if exc.status is not None else CONNECTION_ERROR_MESSAGE

        try:
            user = SessionUser.from_api((payload or {}).get("user"))
        except (ApiError, AttributeError):
            logger.error("Login response without a usable user: %r", payload)
            return LOGIN_FAILED_MESSAGE
        self.set_user(user)
        logger.info("User %s logged in as %s", user.email, user.role)
        return None

    def logout(self):
        """Ends the backend session; the local user is cleared whatever happens."""
        self.is_logging_out = True
        try:
            self.api.post("logout")
        except ApiError as exc:
            logger.error("Logout error: %s", exc.message)
        finally:
            self.user = None

    @property
    def is_anonymous(self) -> bool:
        """The definitive "not logged in" state."""
        return self.user is None and self.auth_checked and not self.is_logging_out
