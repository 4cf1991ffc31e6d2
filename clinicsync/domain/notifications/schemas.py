"""Notification domain schemas - Pydantic models for validation"""

from pydantic import BaseModel, field_validator

from ...shared.validators import to_clinic_date


class TriggerRequest(BaseModel):
    """Day whose bookings should receive the confirmation message"""

    date: str

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        try:
            return to_clinic_date(v)
        except ValueError as e:
            raise ValueError("Date must be yyyy-mm-dd or dd/mm/yyyy") from e
