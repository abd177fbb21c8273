"""Read access to garages, opening hours and supported makes/models."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models.garage import Garage, GarageAutomobileMake, GarageAutomobileModel, GarageTime
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class GarageRepository(BaseRepository[Garage]):
    def __init__(self, db: Session):
        super().__init__(db, Garage)

    def get_owned_garage(self, garage_id: str, owner_id: str) -> Optional[Garage]:
        """The garage if it exists and ``owner_id`` owns it."""
        return self.find_one_by(id=garage_id, owner_id=owner_id)

    def get_garage_time(self, garage_id: str, day: int) -> Optional[GarageTime]:
        query = self.db.query(GarageTime).filter(
            GarageTime.garage_id == garage_id, GarageTime.day == day
        )
        return self._execute_first(query)

    def get_supported_make(
        self, garage_id: str, automobile_make_id: str
    ) -> Optional[GarageAutomobileMake]:
        query = self.db.query(GarageAutomobileMake).filter(
            GarageAutomobileMake.garage_id == garage_id,
            GarageAutomobileMake.automobile_make_id == automobile_make_id,
        )
        return self._execute_first(query)

    def get_supported_model(
        self, garage_automobile_make_id: str, automobile_model_id: str
    ) -> Optional[GarageAutomobileModel]:
        query = self.db.query(GarageAutomobileModel).filter(
            GarageAutomobileModel.garage_automobile_make_id == garage_automobile_make_id,
            GarageAutomobileModel.automobile_model_id == automobile_model_id,
        )
        return self._execute_first(query)
