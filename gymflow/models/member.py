import uuid

from sqlalchemy import BigInteger, Column, String

from .base import Base, epoch_now


class Member(Base):
    """Registered gym member."""

    __tablename__ = "members"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False, index=True)
    gender = Column(String(8), nullable=False)  # male / female
    access_tier = Column(String(8), nullable=False, default="A")
    card_code = Column(String(64), unique=True)
    address = Column(String(255))
    created_at = Column(BigInteger, nullable=False, default=epoch_now)
    updated_at = Column(BigInteger, nullable=False, default=epoch_now, onupdate=epoch_now)


__all__ = ["Member"]
