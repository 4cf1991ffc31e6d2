"""Template router - FastAPI endpoints for message template management"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.responses import unwrap
from ...shared.results import ActionResult
from .schemas import (
    TemplatePreviewRequest,
    TemplatePreviewResponse,
    TemplateResponse,
    TemplateSave,
)
from .service import TemplateService

router = APIRouter(prefix="/api/templates", tags=["Templates"])


def get_template_service(db: Session = Depends(get_db)) -> TemplateService:
    """Dependency injection for TemplateService"""
    return TemplateService(db)


@router.get("", response_model=list[TemplateResponse])
async def list_templates(service: TemplateService = Depends(get_template_service)):
    """All templates, newest first"""
    return [TemplateResponse.model_validate(t) for t in service.list_templates()]


@router.post("", response_model=ActionResult)
async def create_template(
    data: TemplateSave,
    service: TemplateService = Depends(get_template_service),
):
    return unwrap(service.save_template(None, data.name, data.content))


@router.post("/preview", response_model=TemplatePreviewResponse)
async def preview_template(
    data: TemplatePreviewRequest,
    service: TemplateService = Depends(get_template_service),
):
    """Render a draft against a booking (or a sample) without saving it"""
    result = unwrap(service.preview_template(data.content, data.bookingId))
    return TemplatePreviewResponse(rendered=result.data["rendered"])


@router.put("/{template_id}", response_model=ActionResult)
async def update_template(
    template_id: str,
    data: TemplateSave,
    service: TemplateService = Depends(get_template_service),
):
    return unwrap(service.save_template(template_id, data.name, data.content))


@router.post("/{template_id}/activate", response_model=ActionResult)
async def activate_template(
    template_id: str,
    service: TemplateService = Depends(get_template_service),
):
    """Make this the only active template"""
    return unwrap(service.activate_template(template_id))


@router.delete("/{template_id}", response_model=ActionResult)
async def delete_template(
    template_id: str,
    service: TemplateService = Depends(get_template_service),
):
    """Delete a template; the active one is protected"""
    return unwrap(service.delete_template(template_id))
