"""Clock adapter backed by the host's local wall-clock time."""

from datetime import datetime

from fieldservice.application.ports.clock import Clock


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now()
