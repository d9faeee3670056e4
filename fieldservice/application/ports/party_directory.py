"""Port interface for customer / machine records."""

from abc import ABC, abstractmethod

from fieldservice.domain.entities.party import CustomerInput, Machine, MachineInput


class PartyDirectory(ABC):
    @abstractmethod
    async def resolve_or_create_customer(self, data: CustomerInput) -> int:
        """Return the id of an existing customer, or create one from inline data.

        Raises NotFoundError for an unknown customer id.
        """
        ...

    @abstractmethod
    async def resolve_or_create_machine(self, data: MachineInput, customer_id: int | None) -> int:
        """Return the id of an existing machine, or create one from inline data.

        Raises ConflictError when the serial number is already bound to a
        different customer, NotFoundError for an unknown machine id.
        """
        ...

    @abstractmethod
    async def get_machine(self, machine_id: int) -> Machine | None:
        ...
