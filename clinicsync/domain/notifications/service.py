"""Notification service - Sends the day's confirmation messages through n8n"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import ClinicSyncError, ErrorKind
from ...services.orchestrator_service import OrchestratorClient
from ...shared.results import ActionResult
from ..bookings.repository import BookingRepository
from ..templates.renderer import resolve_active
from ..templates.repository import TemplateRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Eligibility -> rendering -> dispatch -> audit stamp"""

    def __init__(self, db: Session, orchestrator: OrchestratorClient):
        self.db = db
        self.orchestrator = orchestrator

    def build_dispatch_batch(self, date_schedule: str) -> list[dict]:
        """One entry per eligible booking, message already rendered"""
        bookings = BookingRepository.eligible_for_notification(self.db, date_schedule)
        template = TemplateRepository.get_active(self.db)

        return [
            {
                "id": booking.id,
                "patientMobile": booking.patient_mobile,
                "customMessage": resolve_active(booking, template),
            }
            for booking in bookings
        ]

    async def trigger_confirmations(self, date_schedule: str) -> ActionResult:
        """
        Dispatch confirmation messages for every eligible booking of a day.

        Bookings already notified are sent again; cancelled ones never are.
        n8n_notified_at is stamped only after the orchestrator accepted the batch.
        """
        batch = self.build_dispatch_batch(date_schedule)

        if not batch:
            logger.info(f"ℹ️ No bookings to notify on {date_schedule}")
            return ActionResult.fail(
                ErrorKind.NOTHING_TO_DO, "No bookings eligible for notification on this date."
            )

        try:
            await self.orchestrator.dispatch(batch)
        except ClinicSyncError as e:
            logger.error(f"❌ Confirmation dispatch for {date_schedule} failed: {e}")
            return ActionResult.from_exception(
                e, "Failed to communicate with the message orchestrator."
            )

        notified_at = datetime.now(timezone.utc)
        try:
            stamped = BookingRepository.mark_notified(
                self.db, [entry["id"] for entry in batch], notified_at
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Batch for {date_schedule} was sent but could not be stamped: {e}")
            return ActionResult.fail(
                ErrorKind.INTERNAL,
                "Messages were sent but the notification stamp could not be saved.",
                dispatched=len(batch),
            )

        logger.info(f"📨 {stamped} booking(s) on {date_schedule} marked as notified")

        return ActionResult.ok(count=len(batch))
