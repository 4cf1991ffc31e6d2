"""Template service - Business logic for message template management"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import ErrorKind
from ...models import MessageTemplate
from ...shared.results import ActionResult
from ..bookings.repository import BookingRepository
from .renderer import resolve
from .repository import TemplateRepository

logger = logging.getLogger(__name__)


@dataclass
class SampleBooking:
    """Stand-in booking used to preview a template before any sync happened"""

    patient_name: str = "JOAO SILVA"
    doctor_name: str = "MARIA SOUZA"
    date_schedule: str = "19/02/2026"
    hour_schedule: str = "08:30:00"


class TemplateService:
    """Service layer for message template business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TemplateRepository()

    def list_templates(self) -> list[MessageTemplate]:
        """All templates, newest first"""
        return self.repo.list_all(self.db)

    def get_active_template(self) -> Optional[MessageTemplate]:
        return self.repo.get_active(self.db)

    def save_template(self, template_id: Optional[str], name: str, content: str) -> ActionResult:
        """
        Create a template (template_id None) or update an existing one.

        The first template ever created becomes the active one, so dispatch
        never runs on the fallback once the operator wrote a message.
        """
        try:
            if template_id:
                template = self.repo.get_by_id(self.db, template_id)
                if not template:
                    return ActionResult.fail(ErrorKind.NOT_FOUND, "Template not found.")
                template = self.repo.update(self.db, template, name, content)
                logger.info(f"✅ Template updated: {template.id} ({template.name})")
            else:
                is_first = self.repo.count(self.db) == 0
                template = self.repo.create(self.db, name, content, is_active=is_first)
                logger.info(
                    f"✅ Template created: {template.id} ({template.name})"
                    + (" [auto-activated]" if is_first else "")
                )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save template '{name}': {e}")
            return ActionResult.fail(ErrorKind.INTERNAL, "Failed to save the template.")

        return ActionResult.ok(count=1, id=template.id, is_active=template.is_active)

    def activate_template(self, template_id: str) -> ActionResult:
        template = self.repo.get_by_id(self.db, template_id)
        if not template:
            return ActionResult.fail(ErrorKind.NOT_FOUND, "Template not found.")

        try:
            self.repo.activate(self.db, template)
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to activate template {template_id}: {e}")
            return ActionResult.fail(ErrorKind.INTERNAL, "Failed to activate the template.")

        logger.info(f"✅ Active template is now {template.id} ({template.name})")
        return ActionResult.ok(count=1, id=template.id)

    def delete_template(self, template_id: str) -> ActionResult:
        template = self.repo.get_by_id(self.db, template_id)
        if not template:
            return ActionResult.fail(ErrorKind.NOT_FOUND, "Template not found.")

        if template.is_active:
            logger.warning(f"⚠️ Refused to delete active template {template.id}")
            return ActionResult.fail(
                ErrorKind.CONFLICT,
                "The active template cannot be deleted. Activate another one first.",
            )

        try:
            self.repo.delete(self.db, template)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete template {template_id}: {e}")
            return ActionResult.fail(ErrorKind.INTERNAL, "Failed to delete the template.")

        logger.info(f"🗑️ Template deleted: {template_id}")
        return ActionResult.ok(count=1, id=template_id)

    def preview_template(self, content: str, booking_id: Optional[str] = None) -> ActionResult:
        """Render content against a stored booking, or a sample when none is given"""
        if booking_id:
            booking = BookingRepository.get_by_id(self.db, booking_id)
            if not booking:
                return ActionResult.fail(ErrorKind.NOT_FOUND, "Booking not found.")
        else:
            booking = SampleBooking()

        return ActionResult.ok(rendered=resolve(content, booking))
