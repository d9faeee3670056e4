"""Port interface for ticket persistence (the TicketStore)."""

from abc import ABC, abstractmethod
from typing import Any

from fieldservice.domain.entities.ticket import Ticket, TicketFilter, TicketGuard


class TicketRepository(ABC):
    @abstractmethod
    async def save(self, ticket: Ticket) -> Ticket:
        """Insert a new ticket and return it with its id set.

        Raises DuplicateKeyError when ``display_id`` is already taken.
        """
        ...

    @abstractmethod
    async def get_by_id(self, ticket_id: int) -> Ticket | None:
        ...

    @abstractmethod
    async def list(self, filters: TicketFilter) -> list[Ticket]:
        ...

    @abstractmethod
    async def update_if(
        self,
        ticket_id: int,
        guard: TicketGuard,
        changes: dict[str, Any],
    ) -> Ticket | None:
        """Atomically apply ``changes`` only if the stored ticket still matches ``guard``.

        Must be a single conditional write (UPDATE ... WHERE status = :s AND
        assigned_to = :a), never read-then-write. Returns the updated ticket,
        or None when the guard no longer holds.
        """
        ...

    @abstractmethod
    async def count_by_status(self) -> dict[str, int]:
        ...

    @abstractmethod
    async def count_by_assignee(self) -> dict[int | None, int]:
        ...
