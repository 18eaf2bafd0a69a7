"""Request and response DTOs. Field names are camelCase on the wire."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from beautybook.models.enums import AppointmentStatus, PaymentMethod, Venue

MAX_NOTES_LENGTH = 500

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used='json')]

T = TypeVar('T')


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str | None = None
    data: T | None = None


def _normalize_optional_text(value: str | None, label: str, max_length: int = MAX_NOTES_LENGTH) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if not normalized:
        return None
    if len(normalized) > max_length:
        raise ValueError(f'{label} cannot exceed {max_length} characters')
    return normalized


# requests


class VenueDetails(CamelModel):
    venue_name: str = ''
    street: str = ''
    city: str = ''
    state: str = ''


class BookingScheduleFields(CamelModel):
    service_ids: list[int] = Field(min_length=1)
    appointment_date: date
    appointment_time: str
    end_time: str | None = None
    duration: int | None = Field(default=None, ge=15, le=1440)
    venue: Venue = Venue.ARTIST_STUDIO
    venue_details: VenueDetails | None = None
    payment_method: PaymentMethod = PaymentMethod.PAY_AT_VENUE
    notes: str | None = None

    @field_validator('appointment_time')
    @classmethod
    def validate_appointment_time(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Appointment time is required')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value, 'Notes')


class CreateBookingRequest(BookingScheduleFields):
    artist_id: int


class CreateArtistAppointmentRequest(BookingScheduleFields):
    client_id: int | None = None
    client_first_name: str | None = None
    client_last_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None

    @model_validator(mode='after')
    def validate_client(self):
        if self.client_id is None and not (self.client_first_name and self.client_last_name and self.client_email):
            raise ValueError('Either clientId or client details (firstName, lastName, email) are required')
        return self


class UpdateAppointmentStatusRequest(CamelModel):
    status: AppointmentStatus
    cancellation_reason: str | None = None

    @field_validator('cancellation_reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value, 'Cancellation reason')


class CancelBookingRequest(CamelModel):
    cancellation_reason: str | None = None

    @field_validator('cancellation_reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value, 'Cancellation reason')


class CreateBlockedTimeRequest(CamelModel):
    start_date: date
    end_date: date
    start_time: str | None = None
    duration: str | None = None
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value, 'Reason')


class CreateVacationRequest(CamelModel):
    start_date: date
    end_date: date
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value, 'Reason')


class ProcessPaymentRequest(CamelModel):
    appointment_id: int
    payment_intent_id: str = Field(min_length=1)


class RefundRequest(CamelModel):
    appointment_id: int
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value, 'Reason')


class ArtistDecisionRequest(CamelModel):
    reason: str | None = None


# responses


class ServiceSnapshotResponse(CamelModel):
    service_id: int
    service_name: str
    price: Money
    currency: str
    duration: str


class AppointmentResponse(CamelModel):
    id: int
    artist_id: int
    client_id: int
    services: list[ServiceSnapshotResponse]
    appointment_date: date
    appointment_time: str
    duration_minutes: int | None = None
    venue: str
    venue_details: VenueDetails | None = None
    service_fee: Money
    total_amount: Money
    currency: str
    service_type: str
    payment_method: str
    payment_status: str
    payment_intent_id: str | None = None
    status: str
    notes: str
    cancellation_reason: str
    cancelled_by: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, appointment) -> 'AppointmentResponse':
        response = cls.model_validate(appointment)
        if appointment.venue == Venue.CLIENT_VENUE.value:
            response.venue_details = VenueDetails(
                venue_name=appointment.venue_name,
                street=appointment.venue_street,
                city=appointment.venue_city,
                state=appointment.venue_state,
            )
        return response


class PaymentIntentResponse(CamelModel):
    client_secret: str | None = None
    payment_intent_id: str


class BookingCreatedResponse(CamelModel):
    booking: AppointmentResponse
    payment_intent: PaymentIntentResponse | None = None
    payment_pending: bool = False


class AppointmentPage(CamelModel):
    appointments: list[AppointmentResponse]
    count: int
    total: int
    page: int
    pages: int


class BlockedTimeResponse(CamelModel):
    id: int
    artist_id: int
    type: str
    start_date: datetime
    end_date: datetime
    start_time: str | None = None
    duration: str | None = None
    reason: str
    is_active: bool


class AvailabilityConflictsResponse(CamelModel):
    appointments: int
    blocked_time: int
    vacations: int


class AvailabilityResponse(CamelModel):
    date: date
    time: str | None = None
    available: bool
    conflicts: AvailabilityConflictsResponse


class PaymentStatusResponse(CamelModel):
    payment_intent_id: str
    status: str | None = None
    succeeded: bool


class ArtistResponse(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: str
    approval_status: str
    rejection_reason: str
    is_active: bool


class ArtistDecisionResponse(CamelModel):
    artist: ArtistResponse
    email_sent: bool
