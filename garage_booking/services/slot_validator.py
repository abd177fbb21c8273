"""
Slot Validator Service for the garage booking engine

Checks a proposed set of time ranges for an expert on a job date against
the slots already held by other bookings. Ranges are half-open, so a slot
ending at 10:00 and another starting at 10:00 do not conflict.

The validator only reads. Callers serialize validate-then-write per
(expert, date) with ``core.slot_lock.slot_lock``.
"""

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.exceptions import SlotConflictException
from ..repositories import RepositoryFactory
from ..repositories.slot_allocation_repository import SlotAllocationRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def slot_minutes(value: str) -> int:
    """Minutes since midnight for ``HH:MM`` or ``HH:MM:SS``."""
    parts = str(value).strip().split(":")
    return int(parts[0]) * 60 + int(parts[1])


def slots_overlap(
    start: int, end: int, other_start: int, other_end: int
) -> bool:
    return start < other_end and end > other_start


@dataclass(frozen=True)
class SlotValidationResult:
    overlapping_slots: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.overlapping_slots


class SlotValidator(BaseService):
    """Detects overlaps between proposed slots and an expert's existing allocations."""

    def __init__(self, db: Session, repository: Optional[SlotAllocationRepository] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_slot_allocation_repository(db)

    @BaseService.measure_operation("validate_slots")
    def validate(
        self,
        exclude_booking_id: Optional[str],
        proposed_slots: Sequence[Mapping[str, Any]],
        job_date: date,
        expert_id: Optional[str],
    ) -> SlotValidationResult:
        """
        Compare ``proposed_slots`` with every slot the expert holds that day.

        Args:
            exclude_booking_id: Booking being updated, so it never conflicts with itself
            proposed_slots: ``{"start_time": "HH:MM", "end_time": "HH:MM"}`` ranges
            job_date: The date all slots are on
            expert_id: Expert the slots are reserved against; None skips the check

        Returns:
            SlotValidationResult listing every (existing, proposed) overlapping pair
        """
        if expert_id is None or not proposed_slots:
            return SlotValidationResult()

        proposed: List[Tuple[Mapping[str, Any], int, int]] = [
            (slot, slot_minutes(slot["start_time"]), slot_minutes(slot["end_time"]))
            for slot in proposed_slots
        ]

        overlapping: List[Dict[str, Any]] = []
        holders = self.repository.get_slot_holders(expert_id, job_date, exclude_booking_id)
        for booking in holders:
            for existing in booking.slot_list():
                existing_start = slot_minutes(existing["start_time"])
                existing_end = slot_minutes(existing["end_time"])
                for slot, start, end in proposed:
                    if slots_overlap(start, end, existing_start, existing_end):
                        overlapping.append(
                            {
                                "booking_id": booking.id,
                                "start_time": existing["start_time"],
                                "end_time": existing["end_time"],
                                "requested_start_time": slot["start_time"],
                                "requested_end_time": slot["end_time"],
                            }
                        )

        if overlapping:
            self.logger.info(
                f"{len(overlapping)} slot overlap(s) for expert {expert_id} on {job_date}"
            )
        return SlotValidationResult(overlapping_slots=overlapping)

    def ensure_available(
        self,
        exclude_booking_id: Optional[str],
        proposed_slots: Sequence[Mapping[str, Any]],
        job_date: date,
        expert_id: Optional[str],
    ) -> None:
        """
        Raises:
            SlotConflictException: carrying every overlapping pair
        """
        result = self.validate(exclude_booking_id, proposed_slots, job_date, expert_id)
        if not result.ok:
            raise SlotConflictException(result.overlapping_slots)
