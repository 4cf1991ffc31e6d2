import uuid
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a locally owned identifier"""
    return str(uuid.uuid4())


class ConfirmationStatus(str, Enum):
    """Local confirmation lifecycle, independent of the clinic's own status vocabulary"""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class Booking(Base):
    """Local mirror of one slot scheduled in the clinic system"""

    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_id)
    external_id = Column(Integer, unique=True, index=True, nullable=False)

    # Snapshot of the clinic record, written at creation
    patient_name = Column(String(255), nullable=False)
    patient_mobile = Column(String(50), nullable=False, index=True)
    doctor_name = Column(String(255), nullable=False)
    date_schedule = Column(String(10), nullable=False, index=True)  # dd/mm/yyyy
    hour_schedule = Column(String(8), nullable=False)  # HH:MM:SS

    # Refreshed on every sync
    status = Column(String(50), nullable=False)

    # Locally owned
    confirmation_status = Column(
        String(20), default=ConfirmationStatus.PENDING.value, nullable=False, index=True
    )
    n8n_notified_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Booking {self.external_id} {self.date_schedule} {self.hour_schedule}>"


class MessageTemplate(Base):
    """WhatsApp confirmation message template; at most one is active"""

    __tablename__ = "message_templates"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
