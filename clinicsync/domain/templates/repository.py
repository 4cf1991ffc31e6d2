"""Template repository - Database operations for message templates"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import MessageTemplate


class TemplateRepository:
    """Repository for message template database operations"""

    @staticmethod
    def get_by_id(db: Session, template_id: str) -> Optional[MessageTemplate]:
        return db.query(MessageTemplate).filter(MessageTemplate.id == template_id).first()

    @staticmethod
    def get_active(db: Session) -> Optional[MessageTemplate]:
        return db.query(MessageTemplate).filter(MessageTemplate.is_active.is_(True)).first()

    @staticmethod
    def list_all(db: Session) -> list[MessageTemplate]:
        return (
            db.query(MessageTemplate)
            .order_by(MessageTemplate.created_at.desc(), MessageTemplate.name.asc())
            .all()
        )

    @staticmethod
    def count(db: Session) -> int:
        return db.query(MessageTemplate).count()

    @staticmethod
    def create(db: Session, name: str, content: str, is_active: bool) -> MessageTemplate:
        template = MessageTemplate(name=name, content=content, is_active=is_active)
        db.add(template)
        db.commit()
        db.refresh(template)
        return template

    @staticmethod
    def update(db: Session, template: MessageTemplate, name: str, content: str) -> MessageTemplate:
        template.name = name
        template.content = content
        db.commit()
        db.refresh(template)
        return template

    @staticmethod
    def activate(db: Session, template: MessageTemplate) -> MessageTemplate:
        """Deactivate every template and activate one, committed together"""
        try:
            db.query(MessageTemplate).filter(MessageTemplate.id != template.id).update(
                {MessageTemplate.is_active: False}, synchronize_session=False
            )
            template.is_active = True
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(template)
        return template

    @staticmethod
    def delete(db: Session, template: MessageTemplate) -> None:
        db.delete(template)
        db.commit()
