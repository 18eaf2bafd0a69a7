"""Appointment model definitions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from beautybook.database import Base, utcnow
from beautybook.models.enums import AppointmentStatus, PaymentMethod, PaymentStatus, ServiceType, Venue


class Appointment(Base):
    """One booking session between a client and an artist."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    artist_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(String, nullable=False)  # display string, "1:00 PM - 2:30 PM"
    duration_minutes = Column(Integer)

    venue = Column(String, nullable=False, default=Venue.ARTIST_STUDIO.value)
    venue_name = Column(String, nullable=False, default='')
    venue_street = Column(String, nullable=False, default='')
    venue_city = Column(String, nullable=False, default='')
    venue_state = Column(String, nullable=False, default='')

    service_fee = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default='AED')
    service_type = Column(String, nullable=False, default=ServiceType.OTHER.value)
    payment_method = Column(String, nullable=False, default=PaymentMethod.PAY_AT_VENUE.value)
    payment_status = Column(String, nullable=False, default=PaymentStatus.PENDING.value)
    payment_intent_id = Column(String)

    status = Column(String, nullable=False, default=AppointmentStatus.PENDING.value, index=True)
    notes = Column(String(500), nullable=False, default='')
    cancellation_reason = Column(String(500), nullable=False, default='')
    cancelled_by = Column(String)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    services = relationship(
        "AppointmentService",
        back_populates="appointment",
        order_by="AppointmentService.position",
        cascade="all, delete-orphan",
    )


class AppointmentService(Base):
    """Price/name/duration snapshot of a service taken at booking time."""
    __tablename__ = "appointment_services"

    id = Column(Integer, primary_key=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    service_name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    duration = Column(String, nullable=False, default='')

    appointment = relationship("Appointment", back_populates="services")
