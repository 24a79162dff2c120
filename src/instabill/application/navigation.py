from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from instabill.domain.errors import AuthorizationError, NavigationError

log = logging.getLogger(__name__)


class View(str, Enum):
    HOME = "HOME"
    SCANNER = "SCANNER"
    CHECKOUT = "CHECKOUT"
    RECEIPT = "RECEIPT"
    CUSTOMERS = "CUSTOMERS"
    ADMIN = "ADMIN"
    HISTORY = "HISTORY"


@dataclass(frozen=True)
class Screen:
    view: View = View.HOME
    admin_authenticated: bool = False


TRANSITIONS: dict[View, frozenset[View]] = {
    View.HOME: frozenset({View.SCANNER, View.CHECKOUT, View.CUSTOMERS, View.ADMIN, View.HISTORY}),
    View.SCANNER: frozenset({View.HOME}),
    View.CHECKOUT: frozenset({View.HOME, View.RECEIPT}),
    View.RECEIPT: frozenset({View.HOME}),
    View.CUSTOMERS: frozenset({View.HOME}),
    View.ADMIN: frozenset({View.HOME}),
    View.HISTORY: frozenset({View.HOME, View.RECEIPT}),
}


class Navigator:
    """Explicit view state; only transitions listed in TRANSITIONS are allowed.

    Admin authentication lives on the ADMIN screen itself, so leaving the
    admin view always drops it.
    """

    def __init__(self):
        self.screen = Screen()

    @property
    def view(self) -> View:
        return self.screen.view

    def can_go(self, target: View) -> bool:
        return target == self.view or target in TRANSITIONS[self.view]

    def go(self, target: View) -> Screen:
        if target == self.view:
            return self.screen
        if target not in TRANSITIONS[self.view]:
            raise NavigationError(f"Cannot go from {self.view.value} to {target.value}.")
        log.debug("navigate from=%s to=%s", self.view.value, target.value)
        self.screen = Screen(view=target)
        return self.screen

    def reset(self) -> Screen:
        self.screen = Screen()
        return self.screen

    def authenticate_admin(self) -> Screen:
        if self.view is not View.ADMIN:
            raise NavigationError("Admin login is only available from the admin view.")
        self.screen = Screen(view=View.ADMIN, admin_authenticated=True)
        return self.screen

    def require_admin(self) -> None:
        if not (self.view is View.ADMIN and self.screen.admin_authenticated):
            raise AuthorizationError("Admin authentication required.")
