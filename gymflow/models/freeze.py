from sqlalchemy import BigInteger, Column, ForeignKey, Integer

from .base import Base, epoch_now

MIN_FREEZE_DAYS = 1
MAX_FREEZE_DAYS = 7


class SubscriptionFreeze(Base):
    """Pause of a subscription; immutable once created."""

    __tablename__ = "subscription_freezes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subscription_id = Column(
        Integer,
        ForeignKey("subscriptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date = Column(BigInteger, nullable=False)
    end_date = Column(BigInteger, nullable=False)  # start_date + days * 86400
    days = Column(Integer, nullable=False)
    created_at = Column(BigInteger, nullable=False, default=epoch_now)


__all__ = ["SubscriptionFreeze", "MIN_FREEZE_DAYS", "MAX_FREEZE_DAYS"]
