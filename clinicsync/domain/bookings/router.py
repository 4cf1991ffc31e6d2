"""Booking router - FastAPI endpoints for the operator dashboard"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db, get_session_factory
from ...models import ConfirmationStatus
from ...services.clinic_service import ClinicApiClient, clinic_api_client
from ...shared.responses import unwrap
from ...shared.results import ActionResult
from ...shared.validators import to_clinic_date
from .schemas import BookingResponse, DaySummaryResponse, StatusUpdateRequest, SyncRequest
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def get_clinic_client() -> ClinicApiClient:
    """Dependency returning the process-wide clinic API client"""
    return clinic_api_client


def clinic_day(
    date: str = Query(..., description="Clinic day, yyyy-mm-dd or dd/mm/yyyy"),
) -> str:
    """Query dependency normalizing the requested day to the clinic format"""
    try:
        return to_clinic_date(date)
    except ValueError:
        raise HTTPException(status_code=400, detail="Date must be yyyy-mm-dd or dd/mm/yyyy")


def get_booking_service(
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
    clinic_client: ClinicApiClient = Depends(get_clinic_client),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, session_factory, clinic_client)


@router.post("/sync", response_model=ActionResult)
async def sync_bookings(
    data: SyncRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Pull a date range from the clinic and reconcile it locally"""
    logger.info(f"🔄 Sync requested: {data.start_date} → {data.end_date}")
    return unwrap(await service.sync_bookings(data.start_date, data.end_date))


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    date_schedule: str = Depends(clinic_day),
    confirmation_status: Optional[ConfirmationStatus] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    status = confirmation_status.value if confirmation_status else None
    bookings = service.list_bookings(date_schedule, status)
    return [BookingResponse.model_validate(b) for b in bookings]


@router.get("/summary", response_model=DaySummaryResponse)
async def get_day_summary(
    date_schedule: str = Depends(clinic_day),
    service: BookingService = Depends(get_booking_service),
):
    """Dashboard counters for one day"""
    return service.day_summary(date_schedule)


@router.patch("/{booking_id}/status", response_model=ActionResult)
async def update_booking_status(
    booking_id: str,
    data: StatusUpdateRequest,
    service: BookingService = Depends(get_booking_service),
):
    """
    Change a booking's confirmation status.

    Cancelling also releases the slot in the clinic system; when the clinic
    refuses, the booking is left as it was and 409 is returned.
    """
    return unwrap(await service.set_status(booking_id, data.status))
