from ...database import get_db
from .auth import get_request_context
from .services import get_booking_service

__all__ = ["get_booking_service", "get_db", "get_request_context"]
