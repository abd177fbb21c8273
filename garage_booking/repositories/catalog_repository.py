"""
Catalog lookups used when pricing booking line items.

A sub-service counts as offered by a garage only when its
``GarageSubService`` hangs off a ``GarageService`` of that garage.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models.catalog import GaragePackage, GarageService, GarageSubService, GarageSubServicePrice
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CatalogRepository(BaseRepository[GarageSubService]):
    def __init__(self, db: Session):
        super().__init__(db, GarageSubService)

    def get_offered_sub_service(
        self, garage_id: str, sub_service_id: str
    ) -> Optional[GarageSubService]:
        query = (
            self.db.query(GarageSubService)
            .join(GarageService, GarageSubService.garage_service_id == GarageService.id)
            .filter(
                GarageService.garage_id == garage_id,
                GarageSubService.sub_service_id == sub_service_id,
            )
        )
        return self._execute_first(query)

    def get_make_price(
        self, garage_sub_service_id: str, automobile_make_id: str
    ) -> Optional[GarageSubServicePrice]:
        query = self.db.query(GarageSubServicePrice).filter(
            GarageSubServicePrice.garage_sub_service_id == garage_sub_service_id,
            GarageSubServicePrice.automobile_make_id == automobile_make_id,
        )
        return self._execute_first(query)

    def get_package(self, garage_id: str, package_id: str) -> Optional[GaragePackage]:
        query = self.db.query(GaragePackage).filter(
            GaragePackage.garage_id == garage_id, GaragePackage.id == package_id
        )
        return self._execute_first(query)
