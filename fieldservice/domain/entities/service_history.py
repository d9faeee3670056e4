"""Service history entry — audit record written when work on a ticket ends."""

from dataclasses import dataclass, field
from datetime import datetime

from fieldservice.domain.value_objects.enums import HistoryAction


@dataclass
class ServiceHistoryEntry:
    id: int | None
    ticket_id: int
    action: HistoryAction
    machine_id: int | None
    customer_id: int | None
    engineer_id: int | None
    recorded_at: datetime
    recorded_by: int | None = None
    work_performed: str | None = None
    solution_notes: str | None = None
    spares_used: list[str] = field(default_factory=list)
