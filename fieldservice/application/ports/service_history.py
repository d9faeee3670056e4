"""Port interface for the machine service history audit log."""

from abc import ABC, abstractmethod

from fieldservice.domain.entities.service_history import ServiceHistoryEntry


class ServiceHistory(ABC):
    @abstractmethod
    async def append(self, entry: ServiceHistoryEntry) -> ServiceHistoryEntry:
        ...
