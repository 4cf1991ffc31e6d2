"""Notification router - FastAPI endpoint to dispatch confirmation messages"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...services.orchestrator_service import OrchestratorClient, orchestrator_client
from ...shared.responses import unwrap
from ...shared.results import ActionResult
from .schemas import TriggerRequest
from .service import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


def get_orchestrator_client() -> OrchestratorClient:
    return orchestrator_client


def get_notification_service(
    db: Session = Depends(get_db),
    orchestrator: OrchestratorClient = Depends(get_orchestrator_client),
) -> NotificationService:
    """Dependency injection for NotificationService"""
    return NotificationService(db, orchestrator)


@router.post("/trigger", response_model=ActionResult)
async def trigger_confirmations(
    data: TriggerRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """
    Send the WhatsApp confirmation for every non-cancelled booking of a day.

    Returns success=false with error_kind "nothing_to_do" (HTTP 200) when the
    day has no eligible booking.
    """
    return unwrap(await service.trigger_confirmations(data.date))
