"""Enumerations shared by the ORM models, schemas and scheduling rules."""

from enum import Enum


class UserRole(str, Enum):
    CLIENT = 'client'
    ARTIST = 'artist'
    ADMIN = 'admin'


class ApprovalStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class ServiceType(str, Enum):
    MAKEUP = 'makeup'
    HAIR = 'hair'
    NAIL = 'nail'
    FACIAL = 'facial'
    BRIDAL = 'bridal'
    PARTY = 'party'
    OTHER = 'other'


class AppointmentStatus(str, Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    REJECTED = 'rejected'


class PaymentStatus(str, Enum):
    PENDING = 'pending'
    PAID = 'paid'
    REFUNDED = 'refunded'
    FAILED = 'failed'


class PaymentMethod(str, Enum):
    PAY_AT_VENUE = 'pay_at_venue'
    PAY_NOW = 'pay_now'


class Venue(str, Enum):
    ARTIST_STUDIO = 'artist_studio'
    CLIENT_VENUE = 'client_venue'


class CancelledBy(str, Enum):
    ARTIST = 'artist'
    CLIENT = 'client'
    SYSTEM = 'system'


class BlockedTimeType(str, Enum):
    BLOCKED_TIME = 'blocked_time'
    VACATION = 'vacation'


class TransactionType(str, Enum):
    DEPOSIT = 'deposit'
    WITHDRAWAL = 'withdrawal'
    REFUND = 'refund'


class TransactionStatus(str, Enum):
    PENDING = 'pending'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    CANCELLED = 'cancelled'
    IN_TRANSIT = 'in_transit'
