"""
Template repository.

Handles database operations for :class:`Template`.
"""

import uuid
from typing import Optional

from sqlmodel import Session, select

from app.models.template import Template


class TemplateRepository:
    """Repository for Template database operations."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, template: Template) -> Template:
        self.session.add(template)
        self.session.commit()
        self.session.refresh(template)
        return template

    def get_by_id(self, template_id: uuid.UUID) -> Optional[Template]:
        return self.session.get(Template, template_id)

    def get_enabled(self) -> list[Template]:
        statement = select(Template).where(Template.is_enabled == True).order_by(  # noqa: E712
            Template.start_minute, Template.title)
        return list(self.session.exec(statement).all())

    def get_all(self) -> list[Template]:
        statement = select(Template).order_by(Template.start_minute, Template.title)
        return list(self.session.exec(statement).all())

    def update(self, template: Template) -> Template:
        self.session.add(template)
        self.session.commit()
        self.session.refresh(template)
        return template

    def delete(self, template_id: uuid.UUID) -> bool:
        template = self.get_by_id(template_id)
        if template:
            self.session.delete(template)
            self.session.commit()
            return True
        return False
