"""Engineer entity — a field technician eligible for ticket assignment."""

from dataclasses import dataclass, field
from datetime import datetime

from fieldservice.domain.value_objects.enums import Availability, Role, SkillLevel


@dataclass(frozen=True)
class Skill:
    name: str
    level: SkillLevel = SkillLevel.NOVICE
    years_experience: float = 0


@dataclass
class Engineer:
    id: int | None
    name: str
    email: str | None = None
    role: Role = Role.ENGINEER
    skills: list[Skill] = field(default_factory=list)
    availability: Availability = Availability.OFFLINE
    is_active: bool = True
    is_checked_in: bool = False
    last_check_in: datetime | None = None
    last_check_out: datetime | None = None
    daily_first_check_in: datetime | None = None
    daily_last_check_out: datetime | None = None
    daily_total_work_minutes: int = 0

    def is_free(self) -> bool:
        return self.availability == Availability.FREE

    def is_offline(self) -> bool:
        return self.availability == Availability.OFFLINE

    def total_years_experience(self) -> float:
        return sum(s.years_experience or 0 for s in self.skills)
