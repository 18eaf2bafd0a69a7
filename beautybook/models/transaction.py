"""Transaction ledger model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from beautybook.database import Base, utcnow
from beautybook.models.enums import TransactionStatus


class Transaction(Base):
    """Deposit, withdrawal or refund entry keyed by artist and appointment."""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    artist_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("users.id"))
    appointment_id = Column(Integer, ForeignKey("appointments.id"), index=True)
    type = Column(String, nullable=False)  # deposit/withdrawal/refund
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default='AED')
    status = Column(String, nullable=False, default=TransactionStatus.PENDING.value)
    description = Column(String, nullable=False, default='')
    payment_method = Column(String, nullable=False, default='card')
    # processor reference: payment intent id for deposits, refund id for refunds
    transaction_id = Column(String, unique=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
