"""Severity tracking and event log for one sync run."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class Severity(enum.IntEnum):
    """Run severity; the value is the process exit code (Nagios convention)."""

    OK = 0
    WARNING = 1
    DISASTER = 2


@dataclass(frozen=True)
class Event:
    severity: Severity
    message: str


_LOG_LEVELS = {
    Severity.OK: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.DISASTER: logging.ERROR,
}

_PREFIXES = {
    Severity.OK: "",
    Severity.WARNING: "WARNING: ",
    Severity.DISASTER: "DISASTER: ",
}


class Reporter:
    """Accumulates events and the highest severity seen so far.

    Informational events are recorded with severity OK. The overall level only
    ever goes up.
    """

    def __init__(self) -> None:
        self.events: list[Event] = []
        self.level = Severity.OK

    def record(self, event: Event) -> None:
        self.events.append(event)
        logger.log(_LOG_LEVELS[event.severity], "%s%s", _PREFIXES[event.severity], event.message)
        if event.severity > self.level:
            self.level = event.severity

    def info(self, message: str) -> None:
        self.record(Event(Severity.OK, message))

    def warning(self, message: str) -> None:
        self.record(Event(Severity.WARNING, message))

    def disaster(self, message: str) -> None:
        self.record(Event(Severity.DISASTER, message))

    @property
    def warnings(self) -> list[str]:
        return [e.message for e in self.events if e.severity == Severity.WARNING]

    @property
    def exit_code(self) -> int:
        return int(self.level)

