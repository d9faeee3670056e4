"""Port interface for engineer persistence (availability + attendance state)."""

from abc import ABC, abstractmethod
from datetime import datetime

from fieldservice.domain.entities.engineer import Engineer
from fieldservice.domain.value_objects.enums import Availability


class EngineerRepository(ABC):
    @abstractmethod
    async def save(self, engineer: Engineer) -> Engineer:
        ...

    @abstractmethod
    async def get_by_id(self, engineer_id: int) -> Engineer | None:
        ...

    @abstractmethod
    async def list_checked_in(self) -> list[Engineer]:
        ...

    @abstractmethod
    async def set_availability(self, engineer_id: int, availability: Availability) -> bool:
        """Set free/busy for a checked-in engineer in a single conditional write.

        Engineers that are not checked in stay offline; returns False then.
        """
        ...

    @abstractmethod
    async def check_in(self, engineer_id: int, at: datetime, day_start: datetime) -> Engineer | None:
        """Atomically check the engineer in, only if currently checked out.

        Rolls the daily aggregate over when ``daily_first_check_in`` is missing
        or earlier than ``day_start``. Returns None if the precondition failed.
        """
        ...

    @abstractmethod
    async def check_out(
        self,
        engineer_id: int,
        expected_check_in: datetime | None,
        at: datetime,
        worked_minutes: int,
    ) -> Engineer | None:
        """Atomically check the engineer out.

        Guarded on (is_checked_in, last_check_in == expected_check_in) and adds
        ``worked_minutes`` to the daily total in the same write. Returns None if
        someone else checked the engineer out first.
        """
        ...
