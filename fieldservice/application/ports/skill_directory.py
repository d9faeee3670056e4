"""Port interface for looking up assignable engineers with their skills."""

from abc import ABC, abstractmethod

from fieldservice.domain.entities.engineer import Engineer
from fieldservice.domain.value_objects.enums import Role


class SkillDirectory(ABC):
    @abstractmethod
    async def list_active_engineers_with_skills(self, role: Role = Role.ENGINEER) -> list[Engineer]:
        """Active users of ``role`` with skills loaded, in a stable listing order."""
        ...
