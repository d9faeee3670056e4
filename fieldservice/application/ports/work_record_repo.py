"""Port interface for DailyWorkRecord persistence."""

from abc import ABC, abstractmethod

from fieldservice.domain.entities.daily_work_record import DailyWorkRecord, WorkInterval


class WorkRecordRepository(ABC):
    @abstractmethod
    async def upsert(self, record: DailyWorkRecord, interval: WorkInterval) -> DailyWorkRecord:
        """Create or update the (engineer_id, work_date) record.

        Totals are written as absolute values and ``interval`` is appended to
        the log only if not already present, so repeating the call for the
        same checkout never double-counts.
        """
        ...

    @abstractmethod
    async def get(self, engineer_id: int, work_date: str) -> DailyWorkRecord | None:
        ...

    @abstractmethod
    async def list_for_engineer(
        self,
        engineer_id: int,
        from_date: str | None = None,
        to_date: str | None = None,
        limit: int | None = None,
    ) -> list[DailyWorkRecord]:
        """Records newest first, optionally bounded by inclusive date keys."""
        ...
