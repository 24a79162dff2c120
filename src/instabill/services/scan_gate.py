from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from instabill.domain.models import ScanEvent, ScanKind

log = logging.getLogger("instabill.scan")


class ScanGate:
    """Filters scan events before they reach the cart.

    Two rules apply:
      * at most one scan (or payment confirmation) is in flight; anything
        arriving meanwhile is dropped;
      * a barcode stays in cooldown for `window_seconds` after it was
        admitted, so hardware re-fires of the same code are ignored.
    Image captures are never deduplicated by value.

    Cooldown expiry is evaluated against `clock` when the next event
    arrives, which is equivalent to a timer moving the gate back to idle.
    """

    def __init__(self, window_seconds: float = 3.0, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self.clock = clock
        self._cooldown_code: Optional[str] = None
        self._cooldown_until = 0.0
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def cooldown_code(self) -> Optional[str]:
        if self._cooldown_code is not None and self.clock() >= self._cooldown_until:
            self._cooldown_code = None
        return self._cooldown_code

    def admit(self, event: ScanEvent) -> bool:
        if self._in_flight:
            log.debug("scan_dropped_in_flight kind=%s", event.kind.value)
            return False
        if event.kind is ScanKind.BARCODE:
            if self.cooldown_code == event.value:
                log.debug("scan_suppressed_duplicate code=%s", event.value)
                return False
            self._cooldown_code = event.value
            self._cooldown_until = self.clock() + self.window_seconds
        return True

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Mark a scan or payment as in flight for the duration of the block."""
        previous = self._in_flight
        self._in_flight = True
        try:
            yield
        finally:
            self._in_flight = previous

    def reset(self) -> None:
        self._cooldown_code = None
        self._cooldown_until = 0.0
