"""
Day endpoints.

Reading a day materializes the templates that fall on it.
"""

import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.api.dependencies import get_calendar
from app.db.session import get_db
from app.scheduling.calendar import DayCalendar
from app.schemas.occurrence import DayResponse, OccurrenceResponse
from app.services.occurrence_service import OccurrenceService

router = APIRouter()


@router.get("/{date}", summary="Get all occurrences of a day.", response_model=DayResponse, )
def get_day(date: datetime.date, db: Session = Depends(get_db), calendar: DayCalendar = Depends(get_calendar), ):
    return OccurrenceService(db, calendar).get_day(date)


@router.post("/preload", summary="Materialize every day of a range.", response_model=list[OccurrenceResponse], )
def preload_days(start: Optional[datetime.date] = Query(None, description="Range start (inclusive), default today"),
                 end: Optional[datetime.date] = Query(None, description="Range end (inclusive), default start"),
                 db: Session = Depends(get_db), calendar: DayCalendar = Depends(get_calendar), ):
    return OccurrenceService(db, calendar).preload_range(start, end)
