from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from beautybook.database import get_db
from beautybook.scheduling.availability import check_availability
from beautybook.schemas import ApiResponse, AvailabilityConflictsResponse, AvailabilityResponse

router = APIRouter(tags=['public'])


@router.get('/artists/{artist_id}/availability', response_model=ApiResponse[AvailabilityResponse])
def get_artist_availability(
    artist_id: int,
    day: date = Query(..., alias='date'),
    time_of_day: str | None = Query(default=None, alias='time'),
    db: Session = Depends(get_db),
):
    result = check_availability(db, artist_id, day, time_of_day)
    return ApiResponse(
        data=AvailabilityResponse(
            date=result.date,
            time=result.time,
            available=result.available,
            conflicts=AvailabilityConflictsResponse(
                appointments=result.conflicts.appointments,
                blocked_time=result.conflicts.blocked_time,
                vacations=result.conflicts.vacations,
            ),
        )
    )
