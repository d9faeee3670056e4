"""AvailabilityTracker — free/busy/offline bookkeeping for engineers.

Availability changes are a side effect of ticket and attendance operations.
A failed write is logged for reconciliation and never undoes the ticket
change that caused it.
"""

from __future__ import annotations

import logging

from fieldservice.application.ports.engineer_repo import EngineerRepository
from fieldservice.domain.entities.engineer import Engineer
from fieldservice.domain.errors import NotFoundError
from fieldservice.domain.value_objects.enums import Availability

logger = logging.getLogger(__name__)


class AvailabilityTracker:
    def __init__(self, engineer_repo: EngineerRepository):
        self._engineers = engineer_repo

    async def require_engineer(self, engineer_id: int) -> Engineer:
        engineer = await self._engineers.get_by_id(engineer_id)
        if engineer is None:
            raise NotFoundError(f"Engineer {engineer_id} not found")
        return engineer

    async def get(self, engineer_id: int) -> Availability:
        engineer = await self.require_engineer(engineer_id)
        return engineer.availability

    async def mark_busy(self, engineer_id: int) -> bool:
        return await self._set(engineer_id, Availability.BUSY)

    async def mark_free(self, engineer_id: int | None) -> bool:
        """Release an engineer. Safe to call when already free."""
        if engineer_id is None:
            return False
        return await self._set(engineer_id, Availability.FREE)

    async def _set(self, engineer_id: int, availability: Availability) -> bool:
        try:
            changed = await self._engineers.set_availability(engineer_id, availability)
        except Exception:
            logger.exception(
                "Could not set engineer %s to %s; availability needs reconciliation",
                engineer_id, availability.value,
            )
            return False

        if not changed:
            logger.info(
                "Engineer %s is not checked in; availability not set to %s",
                engineer_id, availability.value,
            )
        return changed
