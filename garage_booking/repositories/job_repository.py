"""Job persistence."""

from typing import Optional

from sqlalchemy.orm import Session

from ..models.job import Job
from .base_repository import BaseRepository


class JobRepository(BaseRepository[Job]):
    def __init__(self, db: Session):
        super().__init__(db, Job)

    def get_by_booking(self, booking_id: str) -> Optional[Job]:
        return self.find_one_by(booking_id=booking_id)
