"""
Occurrence endpoints.

Direct edits of single occurrences.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.api.dependencies import get_calendar
from app.db.session import get_db
from app.scheduling.calendar import DayCalendar
from app.schemas.occurrence import OccurrenceCreate, OccurrenceResponse, OccurrenceUpdate, WorkoutSessionLink
from app.services.occurrence_service import OccurrenceService

router = APIRouter()


@router.post("", summary="Add a standalone occurrence.", response_model=OccurrenceResponse,
             status_code=status.HTTP_201_CREATED, )
def create_occurrence(data: OccurrenceCreate, db: Session = Depends(get_db),
                      calendar: DayCalendar = Depends(get_calendar), ):
    return OccurrenceService(db, calendar).create(data)


@router.patch("/{occurrence_id}", summary="Edit the actual fields of an occurrence.",
              response_model=OccurrenceResponse, )
def update_occurrence(occurrence_id: uuid.UUID, data: OccurrenceUpdate, db: Session = Depends(get_db),
                      calendar: DayCalendar = Depends(get_calendar), ):
    return OccurrenceService(db, calendar).update(occurrence_id, data)


@router.delete("/{occurrence_id}", summary="Delete an occurrence.", status_code=status.HTTP_204_NO_CONTENT, )
def delete_occurrence(occurrence_id: uuid.UUID, db: Session = Depends(get_db),
                      calendar: DayCalendar = Depends(get_calendar), ):
    OccurrenceService(db, calendar).delete(occurrence_id)


@router.post("/{occurrence_id}/done", summary="Mark an occurrence done (or back to planned).",
             response_model=OccurrenceResponse, )
def mark_done(occurrence_id: uuid.UUID, done: bool = Query(True), db: Session = Depends(get_db),
              calendar: DayCalendar = Depends(get_calendar), ):
    return OccurrenceService(db, calendar).mark_done(occurrence_id, done)


@router.post("/{occurrence_id}/skip", summary="Skip an occurrence for its day.", response_model=OccurrenceResponse, )
def skip_occurrence(occurrence_id: uuid.UUID, db: Session = Depends(get_db),
                    calendar: DayCalendar = Depends(get_calendar), ):
    return OccurrenceService(db, calendar).skip(occurrence_id)


@router.put("/{occurrence_id}/workout-session", summary="Link or unlink a workout session.",
            response_model=OccurrenceResponse, )
def link_workout_session(occurrence_id: uuid.UUID, data: WorkoutSessionLink, db: Session = Depends(get_db),
                         calendar: DayCalendar = Depends(get_calendar), ):
    return OccurrenceService(db, calendar).link_workout_session(occurrence_id, data)
