"""Customer / machine records and the inline data used to create them."""

from dataclasses import dataclass


@dataclass
class Customer:
    id: int | None
    company_name: str
    contact_person: str | None = None
    email: str | None = None
    phone: str | None = None
    city: str | None = None
    address: str | None = None
    service_no: str | None = None


@dataclass
class Machine:
    id: int | None
    model: str
    serial_number: str
    customer_id: int | None = None


@dataclass
class CustomerInput:
    """Either an existing customer id or the data for a new customer."""

    customer_id: int | None = None
    company_name: str | None = None
    contact_person: str | None = None
    email: str | None = None
    phone: str | None = None
    city: str | None = None
    address: str | None = None
    service_no: str | None = None

    def is_resolvable(self) -> bool:
        return self.customer_id is not None or bool(self.company_name and self.company_name.strip())


@dataclass
class MachineInput:
    machine_id: int | None = None
    model: str | None = None
    serial_number: str | None = None

    def is_resolvable(self) -> bool:
        if self.machine_id is not None:
            return True
        return bool(self.model and self.model.strip() and self.serial_number and self.serial_number.strip())
