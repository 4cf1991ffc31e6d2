"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...models import ConfirmationStatus
from ...shared.validators import to_clinic_date


def _clinic_date(v: str) -> str:
    try:
        return to_clinic_date(v)
    except ValueError as e:
        raise ValueError("Date must be yyyy-mm-dd or dd/mm/yyyy") from e


class SyncRequest(BaseModel):
    """Date range to pull from the clinic; accepts ISO or clinic dates"""

    start_date: str
    end_date: str

    @field_validator("start_date", "end_date")
    @classmethod
    def validate_date(cls, v):
        return _clinic_date(v)


class StatusUpdateRequest(BaseModel):
    status: ConfirmationStatus


class PatientResponseWebhook(BaseModel):
    """Answer relayed by n8n after the patient replied on WhatsApp"""

    phone: str = Field(..., min_length=10)
    status: Literal["CONFIRMED", "CANCELLED"]


class BookingResponse(BaseModel):
    """Schema for booking response"""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    externalId: int = Field(validation_alias="external_id")
    patientName: str = Field(validation_alias="patient_name")
    patientMobile: str = Field(validation_alias="patient_mobile")
    doctorName: str = Field(validation_alias="doctor_name")
    dateSchedule: str = Field(validation_alias="date_schedule")
    hourSchedule: str = Field(validation_alias="hour_schedule")
    status: str
    confirmationStatus: ConfirmationStatus = Field(validation_alias="confirmation_status")
    n8nNotifiedAt: Optional[datetime] = Field(None, validation_alias="n8n_notified_at")


class DaySummaryResponse(BaseModel):
    date: str
    total: int
    pending: int
    confirmed: int
    cancelled: int
    notified: int
    eligible: int
