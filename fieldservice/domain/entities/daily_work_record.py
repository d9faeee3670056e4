"""DailyWorkRecord — persisted daily aggregate of one engineer's worked minutes."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class WorkInterval:
    check_in: datetime
    check_out: datetime

    def to_dict(self) -> dict[str, str]:
        return {"in": self.check_in.isoformat(), "out": self.check_out.isoformat()}


@dataclass
class DailyWorkRecord:
    engineer_id: int
    work_date: str  # calendar-day key, YYYY-MM-DD
    first_check_in: datetime | None
    last_check_out: datetime | None
    total_work_minutes: int = 0
    log: list[WorkInterval] = field(default_factory=list)
    id: int | None = None


@dataclass(frozen=True)
class WorkStats:
    total_days: int
    total_minutes: int
    avg_minutes_per_day: int
    max_minutes_day: int
    min_minutes_day: int

    @classmethod
    def from_records(cls, records: list[DailyWorkRecord]) -> "WorkStats":
        minutes = [r.total_work_minutes or 0 for r in records]
        total = sum(minutes)
        days = len(minutes)
        return cls(
            total_days=days,
            total_minutes=total,
            avg_minutes_per_day=total // days if days else 0,
            max_minutes_day=max(minutes) if minutes else 0,
            min_minutes_day=min(minutes) if minutes else 0,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "totalDays": self.total_days,
            "totalMinutes": self.total_minutes,
            "avgMinutesPerDay": self.avg_minutes_per_day,
            "maxMinutesDay": self.max_minutes_day,
            "minMinutesDay": self.min_minutes_day,
            "avgHoursPerDay": self.avg_minutes_per_day // 60,
            "avgMinsPerDay": self.avg_minutes_per_day % 60,
            "totalHours": self.total_minutes // 60,
            "totalMins": self.total_minutes % 60,
        }
