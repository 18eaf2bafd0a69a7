import math

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from beautybook.auth.dependencies import require_client
from beautybook.core.errors import Forbidden, NotFound
from beautybook.database import get_db
from beautybook.models.appointment import Appointment
from beautybook.models.enums import AppointmentStatus, UserRole
from beautybook.models.user import User
from beautybook.payments import service as payment_service
from beautybook.payments.processor import get_payment_processor
from beautybook.scheduling.booking import BookingRequest, create_booking
from beautybook.scheduling.lifecycle import transition_status
from beautybook.schemas import (
    ApiResponse,
    AppointmentPage,
    AppointmentResponse,
    BookingCreatedResponse,
    CancelBookingRequest,
    CreateBookingRequest,
    PaymentIntentResponse,
    PaymentStatusResponse,
    ProcessPaymentRequest,
    RefundRequest,
)

router = APIRouter(tags=['client'], dependencies=[Depends(require_client)])


def get_own_booking(db: Session, client: User, booking_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == booking_id).first()
    if appointment is None:
        raise NotFound('Booking not found')
    if appointment.client_id != client.id:
        raise Forbidden('Not authorized to access this booking')
    return appointment


@router.post('/bookings', response_model=ApiResponse[BookingCreatedResponse], status_code=status.HTTP_201_CREATED)
def create_client_booking(
    data: CreateBookingRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_client),
    processor=Depends(get_payment_processor),
):
    outcome = create_booking(
        db,
        BookingRequest(
            artist_id=data.artist_id,
            client_id=current_user.id,
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
        initiated_by=UserRole.CLIENT,
        processor=processor,
    )

    message = 'Booking created successfully'
    if outcome.payment_pending:
        message = 'Booking created successfully. Online payment is not available yet and can be completed later.'

    return ApiResponse(
        message=message,
        data=BookingCreatedResponse(
            booking=AppointmentResponse.from_model(outcome.appointment),
            payment_intent=(
                PaymentIntentResponse(
                    client_secret=outcome.payment_intent.client_secret,
                    payment_intent_id=outcome.payment_intent.payment_intent_id,
                )
                if outcome.payment_intent
                else None
            ),
            payment_pending=outcome.payment_pending,
        ),
    )


@router.get('/bookings', response_model=ApiResponse[AppointmentPage])
def list_my_bookings(
    status_filter: AppointmentStatus | None = Query(default=None, alias='status'),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_client),
):
    query = db.query(Appointment).filter(Appointment.client_id == current_user.id)
    if status_filter is not None:
        query = query.filter(Appointment.status == status_filter.value)

    total = query.count()
    appointments = query.order_by(
        Appointment.appointment_date.desc(),
        Appointment.id.desc(),
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


@router.get('/bookings/{booking_id}', response_model=ApiResponse[AppointmentResponse])
def get_my_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_client),
):
    appointment = get_own_booking(db, current_user, booking_id)
    return ApiResponse(data=AppointmentResponse.from_model(appointment))


@router.post('/bookings/{booking_id}/cancel', response_model=ApiResponse[AppointmentResponse])
def cancel_my_booking(
    booking_id: int,
    data: CancelBookingRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_client),
):
    appointment = get_own_booking(db, current_user, booking_id)
    transition_status(appointment, AppointmentStatus.CANCELLED, actor=current_user, reason=data.cancellation_reason)
    db.commit()
    db.refresh(appointment)

    return ApiResponse(
        message='Booking cancelled successfully',
        data=AppointmentResponse.from_model(appointment),
    )


@router.post('/payments/process', response_model=ApiResponse[AppointmentResponse])
def process_payment(
    data: ProcessPaymentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_client),
    processor=Depends(get_payment_processor),
):
    appointment = payment_service.process_payment(
        db,
        current_user,
        data.appointment_id,
        data.payment_intent_id,
        processor,
    )
    return ApiResponse(
        message='Payment processed successfully',
        data=AppointmentResponse.from_model(appointment),
    )


@router.get('/payments/intent/{payment_intent_id}', response_model=ApiResponse[PaymentStatusResponse])
def get_payment_intent_status(
    payment_intent_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_client),
    processor=Depends(get_payment_processor),
):
    result = payment_service.get_intent_status(db, current_user, payment_intent_id, processor)
    return ApiResponse(
        data=PaymentStatusResponse(
            payment_intent_id=result.intent_id or payment_intent_id,
            status=result.status,
            succeeded=result.success,
        )
    )


@router.post('/payments/refund', response_model=ApiResponse[AppointmentResponse])
def request_refund(
    data: RefundRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_client),
    processor=Depends(get_payment_processor),
):
    appointment = payment_service.request_refund(
        db,
        current_user,
        data.appointment_id,
        processor,
        reason=data.reason,
    )
    return ApiResponse(
        message='Refund processed successfully',
        data=AppointmentResponse.from_model(appointment),
    )
