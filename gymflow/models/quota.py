from sqlalchemy import BigInteger, Column, ForeignKey, Integer, String, UniqueConstraint

from .base import Base


class Quota(Base):
    """Session budget and usage counter for one billing cycle of a subscription."""

    __tablename__ = "quotas"
    __table_args__ = (
        UniqueConstraint("subscription_id", "cycle_start", name="uq_quotas_subscription_cycle"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(
        String(36), ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subscription_id = Column(
        Integer, ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False
    )
    cycle_start = Column(BigInteger, nullable=False)
    cycle_end = Column(BigInteger, nullable=False)
    sessions_used = Column(Integer, nullable=False, default=0, server_default="0")
    sessions_cap = Column(Integer, nullable=False)


__all__ = ["Quota"]
