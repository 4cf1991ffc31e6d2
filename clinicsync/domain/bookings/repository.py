"""Booking repository - Database operations for bookings"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Booking, ConfirmationStatus


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_by_id(db: Session, booking_id: str) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_by_external_id(db: Session, external_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.external_id == external_id).first()

    @staticmethod
    def list_by_date(
        db: Session, date_schedule: str, confirmation_status: Optional[str] = None
    ) -> list[Booking]:
        """Bookings of one clinic day ordered by hour"""
        query = db.query(Booking).filter(Booking.date_schedule == date_schedule)

        if confirmation_status:
            query = query.filter(Booking.confirmation_status == confirmation_status)

        return query.order_by(Booking.hour_schedule.asc()).all()

    @staticmethod
    def eligible_for_notification(db: Session, date_schedule: str) -> list[Booking]:
        """
        Bookings of a day that may receive a confirmation message.

        Everything not cancelled qualifies, including bookings already notified,
        so a reminder can be resent.
        """
        return (
            db.query(Booking)
            .filter(
                Booking.date_schedule == date_schedule,
                Booking.confirmation_status != ConfirmationStatus.CANCELLED.value,
            )
            .order_by(Booking.hour_schedule.asc())
            .all()
        )

    @staticmethod
    def mark_notified(db: Session, booking_ids: list[str], notified_at: datetime) -> int:
        """Stamp n8n_notified_at on every booking of a dispatch batch in one UPDATE"""
        if not booking_ids:
            return 0

        updated = (
            db.query(Booking)
            .filter(Booking.id.in_(booking_ids))
            .update({Booking.n8n_notified_at: notified_at}, synchronize_session=False)
        )
        db.commit()
        return updated

    @staticmethod
    def set_confirmation_status(db: Session, booking: Booking, status: str) -> Booking:
        booking.confirmation_status = status
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def resolve_pending_by_phone(db: Session, phone: str, status: str) -> int:
        """
        Apply a patient's answer to every PENDING booking whose mobile contains phone.

        Bookings already confirmed or cancelled are left alone so late answers never
        override a decision taken at the clinic.
        """
        updated = (
            db.query(Booking)
            .filter(
                Booking.patient_mobile.contains(phone, autoescape=True),
                Booking.confirmation_status == ConfirmationStatus.PENDING.value,
            )
            .update({Booking.confirmation_status: status}, synchronize_session=False)
        )
        db.commit()
        return updated

    @staticmethod
    def day_summary(db: Session, date_schedule: str) -> dict:
        """Counters shown on the dashboard for one clinic day"""
        rows = (
            db.query(Booking.confirmation_status, func.count(Booking.id))
            .filter(Booking.date_schedule == date_schedule)
            .group_by(Booking.confirmation_status)
            .all()
        )
        by_status = {status: count for status, count in rows}

        notified = (
            db.query(func.count(Booking.id))
            .filter(Booking.date_schedule == date_schedule, Booking.n8n_notified_at.isnot(None))
            .scalar()
        )

        pending = by_status.get(ConfirmationStatus.PENDING.value, 0)
        confirmed = by_status.get(ConfirmationStatus.CONFIRMED.value, 0)
        cancelled = by_status.get(ConfirmationStatus.CANCELLED.value, 0)
        total = sum(by_status.values())

        return {
            "date": date_schedule,
            "total": total,
            "pending": pending,
            "confirmed": confirmed,
            "cancelled": cancelled,
            "notified": notified or 0,
            "eligible": total - cancelled,
        }
