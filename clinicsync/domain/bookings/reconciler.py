"""
Booking reconciliation - merges clinic records into local storage

Field ownership decides what a sync may write:
- refreshed:     overwritten by every sync
- creation-only: copied from the clinic once, when the booking is first seen
- local:         never written by a sync; defaults applied at creation
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Booking, ConfirmationStatus
from ...services.clinic_schemas import ClinicBooking
from .repository import BookingRepository

logger = logging.getLogger(__name__)

REFRESHED_FIELDS = ("status",)
CREATION_ONLY_FIELDS = (
    "external_id",
    "patient_name",
    "patient_mobile",
    "doctor_name",
    "date_schedule",
    "hour_schedule",
)
LOCAL_DEFAULTS = {
    "confirmation_status": ConfirmationStatus.PENDING.value,
    "n8n_notified_at": None,
}


def clinic_record_to_fields(record: ClinicBooking) -> dict[str, Any]:
    """Map a clinic record onto local column names"""
    return {
        "external_id": record.id,
        "patient_name": record.client,
        "patient_mobile": record.mobile,
        "doctor_name": record.doctor,
        "date_schedule": record.date_schedule,
        "hour_schedule": record.hour_schedule,
        "status": record.status,
    }


def merge_booking(existing: Optional[dict[str, Any]], incoming: dict[str, Any]) -> dict[str, Any]:
    """
    Merge an incoming clinic record into the existing local state.

    Pure function: returns the full set of values the booking should hold.
    existing is None when the booking has never been seen.
    """
    if existing is None:
        merged = {name: incoming[name] for name in CREATION_ONLY_FIELDS + REFRESHED_FIELDS}
        merged.update(LOCAL_DEFAULTS)
        return merged

    merged = dict(existing)
    for name in REFRESHED_FIELDS:
        merged[name] = incoming[name]
    return merged


def booking_snapshot(booking: Booking) -> dict[str, Any]:
    names = CREATION_ONLY_FIELDS + REFRESHED_FIELDS + tuple(LOCAL_DEFAULTS)
    return {name: getattr(booking, name) for name in names}


@dataclass
class ReconcileReport:
    created: int = 0
    updated: int = 0
    failed: int = 0
    failed_external_ids: list[int] = field(default_factory=list)

    @property
    def upserted(self) -> int:
        return self.created + self.updated

    @property
    def success(self) -> bool:
        return self.failed == 0


class Reconciler:
    """
    Upserts clinic records keyed by external_id.

    Each record is written in its own session on a worker thread, so one failing
    upsert neither blocks nor rolls back the others. The batch succeeds only if
    every upsert does; already applied upserts stay applied on failure.
    """

    def __init__(self, session_factory: Callable[[], Session], max_concurrency: int = 8):
        self.session_factory = session_factory
        self.max_concurrency = max(1, max_concurrency)

    def _apply(self, db: Session, incoming: dict[str, Any]) -> bool:
        """Write one record; returns True when a booking was created"""
        booking = BookingRepository.get_by_external_id(db, incoming["external_id"])

        if booking is None:
            db.add(Booking(**merge_booking(None, incoming)))
            db.commit()
            return True

        merged = merge_booking(booking_snapshot(booking), incoming)
        for name in REFRESHED_FIELDS:
            setattr(booking, name, merged[name])
        db.commit()
        return False

    def upsert_one(self, record: ClinicBooking) -> bool:
        incoming = clinic_record_to_fields(record)
        with self.session_factory() as db:
            try:
                return self._apply(db, incoming)
            except IntegrityError:
                # Lost an insert race for the same external_id; the row exists now
                db.rollback()
                logger.debug(f"Booking {record.id} created concurrently, retrying as update")
                return self._apply(db, incoming)

    async def reconcile(self, records: list[ClinicBooking]) -> ReconcileReport:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(record: ClinicBooking) -> bool:
            async with semaphore:
                return await run_in_threadpool(self.upsert_one, record)

        outcomes = await asyncio.gather(*(run(r) for r in records), return_exceptions=True)

        report = ReconcileReport()
        for record, outcome in zip(records, outcomes):
            if isinstance(outcome, Exception):
                report.failed += 1
                report.failed_external_ids.append(record.id)
                logger.error(f"❌ Failed to upsert clinic booking {record.id}: {outcome}")
            elif outcome:
                report.created += 1
            else:
                report.updated += 1

        logger.info(
            f"📊 Reconcile: created={report.created}, updated={report.updated}, "
            f"failed={report.failed}"
        )
        return report
