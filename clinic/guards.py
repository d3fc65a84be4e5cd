"""
Authorization gates for protected pages.

The gates are explicit state machines. `evaluate` never touches the UI: it
returns a `GateDecision` saying what to render and which effects (a redirect,
an alert) to perform. Effects fire only when the observed session inputs
change, and each gate shows its alert at most once in its lifetime, so
repeated reruns of the same page never stack redirects or alerts.
"""
# coldesthetic/clinic/guards.py

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from clinic.config import DEFAULT_AUTHENTICATED_ROUTE, ROOT_ROUTE

RESTRICTED_ALERT = "🚫 Solo personas autorizadas pueden acceder."


class GateState(Enum):
    CHECKING = "checking"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    LOGGING_OUT = "logging_out"


class Render(Enum):
    NOTHING = "nothing"
    RESTRICTED = "restricted"
    CHILDREN = "children"


@dataclass(frozen=True)
class GateDecision:
    render: Render
    redirect: Optional[str] = None
    alert: Optional[str] = None


def gate_state(session) -> GateState:
    """Classifies a session store into one of the gate states."""
    if not session.auth_checked:
        return GateState.CHECKING
    if session.is_logging_out:
        return GateState.LOGGING_OUT
    if session.user is None:
        return GateState.UNAUTHENTICATED
    return GateState.AUTHENTICATED


class _Gate:
    def __init__(self):
        self._alert_shown = False
        self._last_inputs = None

    def _inputs_changed(self, inputs) -> bool:
        changed = inputs != self._last_inputs
        self._last_inputs = inputs
        return changed

    def _alert_once(self, message):
        if self._alert_shown:
            return None
        self._alert_shown = True
        return message


class AuthGate(_Gate):
    """Lets a page render only for an authenticated session."""

    def __init__(self, root_route=ROOT_ROUTE):
        super().__init__()
        self.root_route = root_route

    def evaluate(self, session) -> GateDecision:
        state = gate_state(session)
        changed = self._inputs_changed((session.user, session.auth_checked, session.is_logging_out))

        if state is GateState.CHECKING:
            return GateDecision(Render.NOTHING)
        if state is GateState.UNAUTHENTICATED:
            if not changed:
                return GateDecision(Render.RESTRICTED)
            return GateDecision(Render.RESTRICTED, redirect=self.root_route, alert=self._alert_once(RESTRICTED_ALERT))
        # Authenticated, or deliberately leaving: never redirect from here.
        return GateDecision(Render.CHILDREN)


class RoleGate(_Gate):
    """Lets a page render only for users whose role is in the allow-list."""

    def __init__(self, root_route=ROOT_ROUTE, fallback_route=DEFAULT_AUTHENTICATED_ROUTE):
        super().__init__()
        self.root_route = root_route
        self.fallback_route = fallback_route

    def evaluate(self, session, allow) -> GateDecision:
        allow = tuple(allow)
        user = session.user
        changed = self._inputs_changed((user, session.auth_checked, session.is_logging_out, allow))

        if not session.auth_checked or user is None:
            redirect = None
            if changed and session.auth_checked and not session.is_logging_out:
                redirect = self.root_route
            return GateDecision(Render.NOTHING, redirect=redirect)

        if user.role not in allow:
            if changed and not session.is_logging_out:
                return GateDecision(Render.NOTHING, redirect=self.fallback_route,
                                    alert=self._alert_once(RESTRICTED_ALERT))
            return GateDecision(Render.NOTHING)

        return GateDecision(Render.CHILDREN)
