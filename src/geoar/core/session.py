"""
Location acquisition state machine.

    UNSTARTED --start()--> DISABLED                 (location services off)
    UNSTARTED --start()--> INITIALIZING
    INITIALIZING --poll--> READY                    (service reported a fix)
    INITIALIZING --poll--> FAILED                   (service reported failure)
    INITIALIZING --poll--> TIMED_OUT                (wait budget exhausted)

DISABLED, FAILED and TIMED_OUT are terminal: `start()` is a no-op once the
session has left UNSTARTED, so retrying means building a new session. READY
stays READY; `latest_fix()` reads the service on every call.

The machine only moves when something calls `poll()`. A host can do that on
its own cadence, or hand the loop to `wait()` / `wait_async()`, which suspend
on the injected clock between polls and stop early on a CancellationToken.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from geoar.core.clock import CancellationToken, Clock, SystemClock
from geoar.core.service import PositioningService
from geoar.domain.schemas import GeoFix, ServiceStatus, SessionState, TERMINAL_STATES
from geoar.errors import ErrorKind, GeoError, Result
from geoar.models import SessionConfig

log = logging.getLogger(__name__)

_FAILURES = {
    SessionState.DISABLED: GeoError(ErrorKind.LOCATION_DISABLED, "Location Services Disabled!"),
    SessionState.TIMED_OUT: GeoError(ErrorKind.LOCATION_TIMED_OUT, "Timed out"),
    SessionState.FAILED: GeoError(ErrorKind.LOCATION_FAILED, "Unable to determine device location"),
}


class LocationSession:
    """
    One attempt at acquiring a position fix from a PositioningService.

    Usage:
        session = LocationSession(service)
        session.start()
        if session.wait() is SessionState.READY:
            fix = session.latest_fix().unwrap()
    """

    def __init__(
        self,
        service: PositioningService,
        config: Optional[SessionConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self._service = service
        self._config = config if config is not None else SessionConfig()
        self._clock = clock if clock is not None else SystemClock()
        self._state = SessionState.UNSTARTED
        self._remaining = self._config.max_wait
        self._lock = threading.Lock()

    @property
    def config(self) -> SessionConfig:
        return self._config

    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def remaining_wait(self) -> int:
        with self._lock:
            return self._remaining

    def failure(self) -> Optional[GeoError]:
        """The terminal error for DISABLED / TIMED_OUT / FAILED, else None."""
        with self._lock:
            return _FAILURES.get(self._state)

    def _transition(self, new_state: SessionState) -> None:
        log.info(
            "Location session %s -> %s (wait budget left: %d)",
            self._state.value, new_state.value, self._remaining,
        )
        self._state = new_state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> SessionState:
        with self._lock:
            if self._state is not SessionState.UNSTARTED:
                log.debug("start() ignored in state %s", self._state.value)
                return self._state

            if not self._service.is_enabled():
                self._transition(SessionState.DISABLED)
                return self._state

            self._service.request_start()
            self._remaining = self._config.max_wait
            self._transition(SessionState.INITIALIZING)
            return self._state

    def poll(self) -> SessionState:
        """
        Advance the machine by one step. The budget is only spent while the
        service still reports INITIALIZING; any other status settles the
        session immediately.
        """
        with self._lock:
            if self._state is not SessionState.INITIALIZING:
                return self._state

            status = self._service.status()
            if status is ServiceStatus.READY:
                self._transition(SessionState.READY)
            elif status is ServiceStatus.FAILED:
                self._transition(SessionState.FAILED)
            elif self._remaining <= 0:
                self._transition(SessionState.TIMED_OUT)
            else:
                self._remaining -= 1
            return self._state

    def wait(self, token: Optional[CancellationToken] = None) -> SessionState:
        """
        Poll until the session leaves INITIALIZING, sleeping on the clock
        between polls. Returns early (still INITIALIZING) if `token` is
        cancelled.
        """
        while True:
            state = self.poll()
            if state is not SessionState.INITIALIZING:
                return state
            if token is not None and token.cancelled:
                log.info("Location wait cancelled with %d polls left", self.remaining_wait())
                return state
            self._clock.sleep(self._config.poll_interval_s)

    async def wait_async(self, token: Optional[CancellationToken] = None) -> SessionState:
        """Same loop as `wait()`, suspending the coroutine instead of the thread."""
        while True:
            state = self.poll()
            if state is not SessionState.INITIALIZING:
                return state
            if token is not None and token.cancelled:
                log.info("Location wait cancelled with %d polls left", self.remaining_wait())
                return state
            await self._clock.sleep_async(self._config.poll_interval_s)

    # ------------------------------------------------------------------
    # Readings
    # ------------------------------------------------------------------

    def latest_fix(self) -> Result[GeoFix]:
        with self._lock:
            if self._state is not SessionState.READY:
                return Result.fail(
                    ErrorKind.NOT_READY, f"no fix available in state {self._state.value}"
                )
            return Result.ok(self._service.current_fix())

    @property
    def is_terminal(self) -> bool:
        return self.state() in TERMINAL_STATES
