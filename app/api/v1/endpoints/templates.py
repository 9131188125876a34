"""
Template endpoints.

CRUD for recurring templates, plus previewing and applying a scoped update
to the occurrences already generated from them.
"""

import datetime
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.api.dependencies import get_calendar
from app.db.session import get_db
from app.scheduling.calendar import DayCalendar
from app.schemas.template import TemplateCreate, TemplateResponse, TemplateUpdate
from app.schemas.template_update import TemplateUpdateRequest, UpdatePlanResponse
from app.services.template_service import TemplateService
from app.services.template_update_service import TemplateUpdateService

router = APIRouter()


@router.post("", summary="Create a template.", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED, )
def create_template(data: TemplateCreate, db: Session = Depends(get_db)):
    return TemplateService(db).create(data)


@router.get("", summary="List all templates.", response_model=list[TemplateResponse], )
def list_templates(db: Session = Depends(get_db)):
    return TemplateService(db).list_all()


@router.get("/{template_id}", summary="Get a template.", response_model=TemplateResponse, )
def get_template(template_id: uuid.UUID, db: Session = Depends(get_db)):
    return TemplateService(db).get(template_id)


@router.get("/{template_id}/schedule", summary="Days a template will materialize on.", response_model=list[datetime.date], )
def get_schedule(template_id: uuid.UUID,
                 start: Optional[datetime.date] = Query(None, description="Range start (inclusive), default today"),
                 end: Optional[datetime.date] = Query(None, description="Range end (inclusive)"),
                 db: Session = Depends(get_db), calendar: DayCalendar = Depends(get_calendar), ):
    return TemplateService(db, calendar).schedule(template_id, start, end)


@router.patch("/{template_id}", summary="Edit a template without touching its occurrences.",
              response_model=TemplateResponse, )
def update_template(template_id: uuid.UUID, data: TemplateUpdate, db: Session = Depends(get_db)):
    return TemplateService(db).update(template_id, data)


@router.delete("/{template_id}", summary="Delete a template.", status_code=status.HTTP_204_NO_CONTENT, )
def delete_template(template_id: uuid.UUID, db: Session = Depends(get_db)):
    TemplateService(db).delete(template_id)


@router.post("/{template_id}/plan", summary="Preview a scoped template update.", response_model=UpdatePlanResponse, )
def plan_update(template_id: uuid.UUID, request: TemplateUpdateRequest, db: Session = Depends(get_db),
                calendar: DayCalendar = Depends(get_calendar), ):
    return TemplateUpdateService(db, calendar).preview(template_id, request)


@router.post("/{template_id}/apply", summary="Apply a scoped template update.", response_model=UpdatePlanResponse, )
def apply_update(template_id: uuid.UUID, request: TemplateUpdateRequest, db: Session = Depends(get_db),
                 calendar: DayCalendar = Depends(get_calendar), ):
    return TemplateUpdateService(db, calendar).apply(template_id, request)
