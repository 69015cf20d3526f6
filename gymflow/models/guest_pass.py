import uuid

from sqlalchemy import BigInteger, Column, Float, String

from .base import Base, epoch_now

GUEST_CODE_PREFIX = "GP-"
GUEST_CODE_DIGITS = 6


class GuestPass(Base):
    """Single-use, time-limited entry code not tied to a member."""

    __tablename__ = "guest_passes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code = Column(String(32), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(32))
    price_paid = Column(Float)
    created_at = Column(BigInteger, nullable=False, default=epoch_now)
    expires_at = Column(BigInteger, nullable=False)
    used_at = Column(BigInteger)


__all__ = ["GuestPass", "GUEST_CODE_PREFIX", "GUEST_CODE_DIGITS"]
