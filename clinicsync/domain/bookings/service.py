"""Booking service - Business logic for sync, status changes and patient answers"""

import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ... import config
from ...errors import ClinicSyncError, ErrorKind
from ...models import ConfirmationStatus
from ...services.clinic_service import ClinicApiClient
from ...shared.results import ActionResult
from ...shared.validators import normalize_phone
from .reconciler import Reconciler
from .repository import BookingRepository

logger = logging.getLogger(__name__)

# Normalized numbers shorter than this would match far too many stored mobiles
MIN_PHONE_DIGITS = 8


class BookingService:
    """Service layer for booking business logic"""

    def __init__(
        self,
        db: Session,
        session_factory: Callable[[], Session],
        clinic_client: ClinicApiClient,
    ):
        self.db = db
        self.repo = BookingRepository()
        self.clinic_client = clinic_client
        self.reconciler = Reconciler(session_factory, config.RECONCILE_CONCURRENCY)

    def list_bookings(self, date_schedule: str, confirmation_status: Optional[str] = None):
        return self.repo.list_by_date(self.db, date_schedule, confirmation_status)

    def day_summary(self, date_schedule: str) -> dict:
        return self.repo.day_summary(self.db, date_schedule)

    async def sync_bookings(self, start_date: str, end_date: str) -> ActionResult:
        """Pull a date range from the clinic and reconcile it into local storage"""
        try:
            records = await self.clinic_client.fetch_bookings(start_date, end_date)
        except ClinicSyncError as e:
            logger.error(f"❌ Clinic sync failed ({e.kind.value}): {e}")
            return ActionResult.from_exception(e, "Failed to sync with the clinic.")

        report = await self.reconciler.reconcile(records)

        if not report.success:
            return ActionResult.fail(
                ErrorKind.INTERNAL,
                f"{report.failed} of {len(records)} booking(s) failed to sync.",
                created=report.created,
                updated=report.updated,
                failed=report.failed,
                failed_external_ids=report.failed_external_ids,
            )

        return ActionResult.ok(
            count=report.upserted, created=report.created, updated=report.updated
        )

    async def set_status(self, booking_id: str, new_status: str) -> ActionResult:
        """
        Change a booking's confirmation status on behalf of an operator.

        Cancelling releases the slot on the clinic first; the local row is only
        written once the clinic accepted the cancellation.
        """
        try:
            new_status = ConfirmationStatus(new_status)
        except ValueError:
            return ActionResult.fail(ErrorKind.INVALID_INPUT, "Invalid confirmation status.")

        # Fresh read right before deciding whether the clinic must be called
        self.db.expire_all()
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            return ActionResult.fail(ErrorKind.NOT_FOUND, "Booking not found.")

        needs_clinic_cancel = (
            new_status == ConfirmationStatus.CANCELLED
            and booking.confirmation_status != ConfirmationStatus.CANCELLED.value
        )

        if needs_clinic_cancel:
            try:
                await self.clinic_client.cancel_booking(booking.external_id)
            except ClinicSyncError as e:
                logger.error(
                    f"❌ Manual cancel of booking {booking.id} "
                    f"(clinic {booking.external_id}) failed: {e}"
                )
                return ActionResult.fail(
                    ErrorKind.CONFLICT,
                    "Could not cancel the slot in the clinic system.",
                    cause=e.kind.value,
                )

        previous = booking.confirmation_status
        try:
            self.repo.set_confirmation_status(self.db, booking, new_status.value)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save status {new_status.value} for booking {booking_id}: {e}")
            error = "Failed to save the booking status."
            if needs_clinic_cancel:
                error = "Slot cancelled in the clinic system, but the local status could not be saved."
            return ActionResult.fail(
                ErrorKind.INTERNAL,
                error,
                clinic_cancelled=needs_clinic_cancel,
            )

        logger.info(f"✅ Booking {booking.id}: {previous} → {new_status.value}")

        return ActionResult.ok(count=1, id=booking.id, confirmation_status=new_status.value)

    def apply_patient_response(self, phone: str, status: str) -> ActionResult:
        """Record a patient's WhatsApp answer on their pending bookings"""
        normalized = normalize_phone(phone)
        if len(normalized) < MIN_PHONE_DIGITS:
            return ActionResult.fail(ErrorKind.INVALID_INPUT, "Invalid phone number.")

        try:
            status = ConfirmationStatus(status).value
        except ValueError:
            return ActionResult.fail(ErrorKind.INVALID_INPUT, "Invalid confirmation status.")

        try:
            updated = self.repo.resolve_pending_by_phone(self.db, normalized, status)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to record answer {status} for phone {normalized}: {e}")
            return ActionResult.fail(ErrorKind.INTERNAL, "Failed to record the patient answer.")

        if updated:
            logger.info(f"✅ {updated} booking(s) set to {status} (phone {normalized})")
        else:
            logger.info(f"ℹ️ No pending booking found for phone {normalized}")

        return ActionResult.ok(count=updated, phone=normalized)
