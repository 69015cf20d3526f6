from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    text,
)

from .base import Base, epoch_now

PLAN_MONTHS = (1, 3, 6, 12)


class Subscription(Base):
    """Paid membership period; at most one active row per member."""

    __tablename__ = "subscriptions"
    __table_args__ = (
        Index(
            "uq_subscriptions_member_active",
            "member_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(
        String(36), ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_date = Column(BigInteger, nullable=False)
    end_date = Column(BigInteger, nullable=False)
    plan_months = Column(Integer, nullable=False)
    price_paid = Column(Float)
    sessions_per_month = Column(Integer)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(BigInteger, nullable=False, default=epoch_now)


__all__ = ["Subscription", "PLAN_MONTHS"]
