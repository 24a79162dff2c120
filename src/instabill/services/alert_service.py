from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

log = logging.getLogger(__name__)

BUDGET_LIMIT_MESSAGE = "Budget limit reached! You cannot add more items."


@dataclass(frozen=True)
class Alert:
    channel: str  # "beep" | "speak" | "toast"
    kind: str
    message: str = ""


AlertListener = Callable[[Alert], None]


class AlertService:
    """Fan-out of audible, spoken and visual cues to whatever front end is attached."""

    def __init__(self):
        self._listeners: list[AlertListener] = []

    def subscribe(self, listener: AlertListener) -> None:
        self._listeners.append(listener)

    def _emit(self, alert: Alert) -> None:
        for listener in self._listeners:
            try:
                listener(alert)
            except Exception as e:
                # listener failures never abort the billing operation
                log.exception("alert_listener_failed channel=%s error=%s", alert.channel, e)

    def beep(self, kind: str = "success") -> None:
        self._emit(Alert(channel="beep", kind=kind))

    def speak(self, message: str) -> None:
        log.info("alert_spoken message=%s", message)
        self._emit(Alert(channel="speak", kind="info", message=message))

    def toast(self, message: str, kind: str = "error") -> None:
        if kind == "error":
            log.warning("toast kind=%s message=%s", kind, message)
        self._emit(Alert(channel="toast", kind=kind, message=message))

    def budget_exceeded(self) -> None:
        self.beep("error")
        self.speak(BUDGET_LIMIT_MESSAGE)
