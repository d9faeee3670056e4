"""Port interface for reading the current local time."""

from abc import ABC, abstractmethod
from datetime import datetime


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current local wall-clock time (naive)."""
        ...
