"""
Garage owner booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST / - Create a booking
    PUT / - Update a booking
    PUT /confirm - Confirm a booking (garage-owner bookings become jobs)
    PUT /change-status - Change booking status
    GET /{garage_id} - List bookings of a garage with filters and pagination
    GET /{garage_id}/{booking_id} - Booking details
    DELETE /{garage_id}/{booking_id} - Delete a booking
"""

import asyncio
from datetime import date
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ...api.dependencies import get_booking_service, get_request_context
from ...core.exceptions import DomainException
from ...principal import RequestContext
from ...schemas.base_responses import DeleteResponse, PaginatedResponse
from ...schemas.booking import (
    BookingConfirm,
    BookingCreate,
    BookingListFilters,
    BookingResponse,
    BookingStatusChange,
    BookingUpdate,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}", extra={"details": exc.details})
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# SECTION 1: Root routes
# ============================================================================


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    ctx: RequestContext = Depends(get_request_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Create a booking for a customer (requires booking_create)."""
    try:
        booking = await asyncio.to_thread(booking_service.create_booking, ctx, booking_data)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def update_booking(
    update_data: BookingUpdate = Body(...),
    ctx: RequestContext = Depends(get_request_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Replace a booking's details and line items (requires booking_update)."""
    try:
        booking = await asyncio.to_thread(booking_service.update_booking, ctx, update_data)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Static sub-routes
# ============================================================================


@router.put("/confirm", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def confirm_booking(
    confirm_data: BookingConfirm = Body(...),
    ctx: RequestContext = Depends(get_request_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Confirm a booking.

    Bookings created from the garage owner side are converted into a job.
    """
    try:
        booking = await asyncio.to_thread(booking_service.confirm_booking, ctx, confirm_data)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/change-status", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def change_booking_status(
    status_data: BookingStatusChange = Body(...),
    ctx: RequestContext = Depends(get_request_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.change_status, ctx, status_data)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 3: Garage-scoped routes
# ============================================================================


@router.get("/{garage_id}", response_model=PaginatedResponse[BookingResponse])
async def get_bookings(
    garage_id: str,
    search_key: Optional[str] = Query(None, max_length=64),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1),
    ctx: RequestContext = Depends(get_request_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> PaginatedResponse[BookingResponse]:
    """List a garage's bookings that have not been converted to jobs, newest first."""
    try:
        filters = BookingListFilters(
            search_key=search_key,
            start_date=start_date,
            end_date=end_date,
            page=page,
            per_page=per_page,
        )
        result = await asyncio.to_thread(booking_service.list_bookings, ctx, garage_id, filters)
        return PaginatedResponse[BookingResponse].build(
            items=[BookingResponse.model_validate(b) for b in result.items],
            total=result.total,
            page=result.page,
            per_page=result.per_page,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{garage_id}/{booking_id}", response_model=BookingResponse)
async def get_booking_details(
    garage_id: str,
    booking_id: str,
    ctx: RequestContext = Depends(get_request_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, ctx, garage_id, booking_id)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{garage_id}/{booking_id}", response_model=DeleteResponse)
async def delete_booking(
    garage_id: str,
    booking_id: str,
    ctx: RequestContext = Depends(get_request_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> DeleteResponse:
    """Delete a booking that has not been converted to a job (requires booking_delete)."""
    try:
        await asyncio.to_thread(booking_service.delete_booking, ctx, garage_id, booking_id)
        return DeleteResponse(message="Booking deleted successfully")
    except DomainException as e:
        handle_domain_exception(e)
