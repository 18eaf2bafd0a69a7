import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from beautybook.auth.dependencies import require_admin
from beautybook.core.errors import Conflict
from beautybook.database import get_db
from beautybook.models.enums import ApprovalStatus
from beautybook.notifications.email import send_artist_decision_email
from beautybook.scheduling.availability import get_artist
from beautybook.schemas import ApiResponse, ArtistDecisionRequest, ArtistDecisionResponse, ArtistResponse

router = APIRouter(tags=['admin'], dependencies=[Depends(require_admin)])

logger = logging.getLogger(__name__)


@router.put('/artists/{artist_id}/approve', response_model=ApiResponse[ArtistDecisionResponse])
def approve_artist(artist_id: int, db: Session = Depends(get_db)):
    artist = get_artist(db, artist_id)
    if artist.approval_status == ApprovalStatus.APPROVED.value:
        raise Conflict('Artist is already approved')

    artist.approval_status = ApprovalStatus.APPROVED.value
    artist.rejection_reason = ''
    db.commit()
    db.refresh(artist)
    logger.info('Artist %s approved', artist.id)

    email_sent = send_artist_decision_email(artist, approved=True)
    return ApiResponse(
        message='Artist approved successfully',
        data=ArtistDecisionResponse(artist=ArtistResponse.model_validate(artist), email_sent=email_sent),
    )


@router.put('/artists/{artist_id}/reject', response_model=ApiResponse[ArtistDecisionResponse])
def reject_artist(artist_id: int, data: ArtistDecisionRequest, db: Session = Depends(get_db)):
    artist = get_artist(db, artist_id)
    if artist.approval_status == ApprovalStatus.REJECTED.value:
        raise Conflict('Artist is already rejected')

    artist.approval_status = ApprovalStatus.REJECTED.value
    artist.rejection_reason = (data.reason or '').strip()
    db.commit()
    db.refresh(artist)
    logger.info('Artist %s rejected', artist.id)

    email_sent = send_artist_decision_email(artist, approved=False, reason=artist.rejection_reason)
    return ApiResponse(
        message='Artist rejected',
        data=ArtistDecisionResponse(artist=ArtistResponse.model_validate(artist), email_sent=email_sent),
    )
