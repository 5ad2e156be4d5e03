from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import List, Sequence

from geoar.domain.schemas import GeoFix, ServiceStatus

log = logging.getLogger(__name__)


class PositioningService(ABC):
    """
    The device positioning service as the session sees it. Everything is
    polled; the service never calls back into the session.
    """

    @abstractmethod
    def is_enabled(self) -> bool:
        """Whether the user has location services switched on."""
        pass

    @abstractmethod
    def request_start(self) -> None:
        pass

    @abstractmethod
    def status(self) -> ServiceStatus:
        pass

    @abstractmethod
    def current_fix(self) -> GeoFix:
        pass


class ScriptedPositioningService(PositioningService):
    """
    In-memory service that replays a script.

    Each `status()` call consumes the next status, each `current_fix()` call the
    next fix; once a script runs out its last entry repeats. Status is reported
    as INITIALIZING until `request_start()` has been called.
    """

    def __init__(
        self,
        statuses: Sequence[ServiceStatus] = (ServiceStatus.READY,),
        fixes: Sequence[GeoFix] = (),
        enabled: bool = True,
    ):
        if not statuses:
            raise ValueError("At least one status is required")
        self._statuses: List[ServiceStatus] = list(statuses)
        self._fixes: List[GeoFix] = list(fixes)
        self._enabled = enabled
        self._status_idx = 0
        self._fix_idx = 0
        self._lock = threading.Lock()
        self.started = False
        self.start_requests = 0
        self.status_calls = 0

    def is_enabled(self) -> bool:
        return self._enabled

    def request_start(self) -> None:
        log.debug("Scripted service start requested")
        self.started = True
        self.start_requests += 1

    def status(self) -> ServiceStatus:
        with self._lock:
            self.status_calls += 1
            if not self.started:
                return ServiceStatus.INITIALIZING
            status = self._statuses[min(self._status_idx, len(self._statuses) - 1)]
            self._status_idx += 1
            return status

    def current_fix(self) -> GeoFix:
        with self._lock:
            if not self._fixes:
                raise RuntimeError("Scripted service has no fixes to report")
            fix = self._fixes[min(self._fix_idx, len(self._fixes) - 1)]
            self._fix_idx += 1
            return fix
