"""
Patient Confirmation Webhook Routes
Receives the patient's WhatsApp answer relayed by the n8n workflow
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from .. import config
from ..domain.bookings.router import get_booking_service
from ..domain.bookings.schemas import PatientResponseWebhook
from ..domain.bookings.service import BookingService
from ..errors import ErrorKind
from ..rate_limiter import create_rate_limiter
from ..webhook_security import require_n8n_api_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["n8n-webhooks"])

rate_limit_webhook = create_rate_limiter(
    limit=config.WEBHOOK_RATE_LIMIT,
    window_seconds=config.WEBHOOK_RATE_WINDOW,
    key_prefix="webhook_status",
)


@router.post("/status")
async def handle_patient_response(
    request: Request,
    _: None = Depends(rate_limit_webhook),
    __: None = Depends(require_n8n_api_key),
    service: BookingService = Depends(get_booking_service),
):
    """
    Apply a patient's answer to their pending bookings.

    Body: {"phone": "5541999998888", "status": "CONFIRMED" | "CANCELLED"}

    Security:
    - x-api-key shared secret, constant-time comparison
    - Rate limiting per caller IP
    """
    body = await request.body()

    try:
        payload = PatientResponseWebhook.model_validate(json.loads(body or b"null"))
    except (ValueError, ValidationError) as e:
        logger.warning(f"⚠️ Invalid status webhook payload: {e}")
        raise HTTPException(status_code=400, detail="Invalid payload") from e

    logger.info(f"📥 Patient answer received: {payload.status}")
    result = service.apply_patient_response(payload.phone, payload.status)

    if not result.success:
        status_code = 400 if result.error_kind == ErrorKind.INVALID_INPUT else 500
        raise HTTPException(status_code=status_code, detail=result.error)

    return {"success": True, "updated": result.count}
