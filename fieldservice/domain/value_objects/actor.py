"""Actor value object — who is performing an operation."""

from dataclasses import dataclass

from fieldservice.domain.value_objects.enums import Role


@dataclass(frozen=True)
class Actor:
    id: int
    role: Role

    def is_manager_tier(self) -> bool:
        return self.role.is_manager_tier()
