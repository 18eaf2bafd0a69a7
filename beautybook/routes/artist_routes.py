import math
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from beautybook.auth.dependencies import require_artist
from beautybook.core.errors import Forbidden, NotFound
from beautybook.database import get_db
from beautybook.models.appointment import Appointment
from beautybook.models.enums import AppointmentStatus, BlockedTimeType, ServiceType, UserRole
from beautybook.models.user import User
from beautybook.scheduling import ledger
from beautybook.scheduling.booking import BookingRequest, create_booking, find_or_create_client
from beautybook.scheduling.lifecycle import transition_status
from beautybook.schemas import (
    ApiResponse,
    AppointmentPage,
    AppointmentResponse,
    BlockedTimeResponse,
    CreateArtistAppointmentRequest,
    CreateBlockedTimeRequest,
    CreateVacationRequest,
    UpdateAppointmentStatusRequest,
)

router = APIRouter(tags=['artist'], dependencies=[Depends(require_artist)])


def get_own_appointment(db: Session, artist: User, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if appointment is None:
        raise NotFound('Appointment not found')
    if appointment.artist_id != artist.id:
        raise Forbidden('Not authorized to access this appointment')
    return appointment


@router.get('/appointments', response_model=ApiResponse[AppointmentPage])
def list_appointments(
    status_filter: AppointmentStatus | None = Query(default=None, alias='status'),
    service_type: ServiceType | None = Query(default=None, alias='serviceType'),
    start_date: date | None = Query(default=None, alias='startDate'),
    end_date: date | None = Query(default=None, alias='endDate'),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_artist),
):
    query = db.query(Appointment).filter(Appointment.artist_id == current_user.id)
    if status_filter is not None:
        query = query.filter(Appointment.status == status_filter.value)
    if service_type is not None:
        query = query.filter(Appointment.service_type == service_type.value)
    if start_date is not None:
        query = query.filter(Appointment.appointment_date >= start_date)
    if end_date is not None:
        query = query.filter(Appointment.appointment_date <= end_date)

    total = query.count()
    appointments = query.order_by(
        Appointment.appointment_date.asc(),
        Appointment.appointment_time.asc(),
    ).offset((page - 1) * limit).limit(limit).all()

    return ApiResponse(
        data=AppointmentPage(
            appointments=[AppointmentResponse.from_model(appointment) for appointment in appointments],
            count=len(appointments),
            total=total,
            page=page,
            pages=math.ceil(total / limit),
        )
    )


@router.get('/appointments/{appointment_id}', response_model=ApiResponse[AppointmentResponse])
def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_artist),
):
    appointment = get_own_appointment(db, current_user, appointment_id)
    return ApiResponse(data=AppointmentResponse.from_model(appointment))


@router.post('/appointments', response_model=ApiResponse[AppointmentResponse], status_code=status.HTTP_201_CREATED)
def create_artist_appointment(
    data: CreateArtistAppointmentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_artist),
):
    client = find_or_create_client(
        db,
        client_id=data.client_id,
        first_name=data.client_first_name,
        last_name=data.client_last_name,
        email=data.client_email,
        phone=data.client_phone,
    )

    outcome = create_booking(
        db,
        BookingRequest(
            artist_id=current_user.id,
            client_id=client.id,
            service_ids=data.service_ids,
            appointment_date=data.appointment_date,
            appointment_time=data.appointment_time,
            end_time=data.end_time,
            duration=data.duration,
            venue=data.venue.value,
            venue_details=data.venue_details.model_dump() if data.venue_details else None,
            payment_method=data.payment_method.value,
            notes=data.notes,
        ),
        initiated_by=UserRole.ARTIST,
    )

    return ApiResponse(
        message='Appointment created successfully',
        data=AppointmentResponse.from_model(outcome.appointment),
    )


@router.put('/appointments/{appointment_id}/status', response_model=ApiResponse[AppointmentResponse])
def update_appointment_status(
    appointment_id: int,
    data: UpdateAppointmentStatusRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_artist),
):
    appointment = get_own_appointment(db, current_user, appointment_id)
    transition_status(appointment, data.status, actor=current_user, reason=data.cancellation_reason)
    db.commit()
    db.refresh(appointment)

    return ApiResponse(
        message='Appointment status updated successfully',
        data=AppointmentResponse.from_model(appointment),
    )


@router.post('/blocked-time', response_model=ApiResponse[BlockedTimeResponse], status_code=status.HTTP_201_CREATED)
def create_blocked_time(
    data: CreateBlockedTimeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_artist),
):
    entry = ledger.create_blocked_time(
        db,
        current_user.id,
        data.start_date,
        data.end_date,
        start_time=data.start_time,
        duration=data.duration,
        reason=data.reason,
    )
    return ApiResponse(message='Time blocked successfully', data=BlockedTimeResponse.model_validate(entry))


@router.get('/blocked-time', response_model=ApiResponse[list[BlockedTimeResponse]])
def list_blocked_time(
    start_date: date | None = Query(default=None, alias='startDate'),
    end_date: date | None = Query(default=None, alias='endDate'),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_artist),
):
    entries = ledger.list_entries(db, current_user.id, BlockedTimeType.BLOCKED_TIME, start_date, end_date)
    return ApiResponse(data=[BlockedTimeResponse.model_validate(entry) for entry in entries])


@router.delete('/blocked-time/{entry_id}', response_model=ApiResponse[dict])
def delete_blocked_time(
    entry_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_artist),
):
    ledger.delete_entry(db, current_user.id, BlockedTimeType.BLOCKED_TIME, entry_id)
    return ApiResponse(message='Blocked time deleted successfully')


@router.post('/vacations', response_model=ApiResponse[BlockedTimeResponse], status_code=status.HTTP_201_CREATED)
def create_vacation(
    data: CreateVacationRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_artist),
):
    entry = ledger.create_vacation(db, current_user.id, data.start_date, data.end_date, reason=data.reason)
    return ApiResponse(message='Vacation added successfully', data=BlockedTimeResponse.model_validate(entry))


@router.get('/vacations', response_model=ApiResponse[list[BlockedTimeResponse]])
def list_vacations(
    start_date: date | None = Query(default=None, alias='startDate'),
    end_date: date | None = Query(default=None, alias='endDate'),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_artist),
):
    entries = ledger.list_entries(db, current_user.id, BlockedTimeType.VACATION, start_date, end_date)
    return ApiResponse(data=[BlockedTimeResponse.model_validate(entry) for entry in entries])


@router.delete('/vacations/{entry_id}', response_model=ApiResponse[dict])
def delete_vacation(
    entry_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_artist),
):
    ledger.delete_entry(db, current_user.id, BlockedTimeType.VACATION, entry_id)
    return ApiResponse(message='Vacation deleted successfully')
