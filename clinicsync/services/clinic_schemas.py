"""
Clinic API contract.

Strict pydantic models: a missing or mistyped field is a contract violation,
never coerced. Unknown extra fields are ignored so additive upstream changes
do not break the sync.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ClinicToken(BaseModel):
    """Token endpoint response"""

    model_config = ConfigDict(strict=True)

    access_token: str
    expires_in: Optional[int] = None
    token_type: Optional[str] = None


class ClinicBooking(BaseModel):
    """One booking record as served by the clinic integration API"""

    model_config = ConfigDict(strict=True)

    id: int
    doctor: str
    doctor_id: int
    client: str
    mobile: str
    date_schedule: str
    hour_schedule: str
    status: str


class ClinicBookingItems(BaseModel):
    model_config = ConfigDict(strict=True)

    items: list[ClinicBooking]


class ClinicBookingsResponse(BaseModel):
    model_config = ConfigDict(strict=True)

    result: ClinicBookingItems
