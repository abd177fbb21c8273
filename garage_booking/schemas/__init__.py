from .base import Money, StandardizedModel, StrictRequestModel
from .base_responses import DeleteResponse, PaginatedResponse
from .booking import (
    BookedSlot,
    BookingConfirm,
    BookingCreate,
    BookingListFilters,
    BookingResponse,
    BookingStatusChange,
    BookingUpdate,
)

__all__ = [
    "BookedSlot",
    "BookingConfirm",
    "BookingCreate",
    "BookingListFilters",
    "BookingResponse",
    "BookingStatusChange",
    "BookingUpdate",
    "DeleteResponse",
    "Money",
    "PaginatedResponse",
    "StandardizedModel",
    "StrictRequestModel",
]
