from sqlalchemy import BigInteger, Column, Index, Integer, String

from .base import Base

SCANNED_VALUE_MAX_LENGTH = 255


class AttendanceLog(Base):
    """Append-only audit record of a scan outcome."""

    __tablename__ = "logs"
    __table_args__ = (
        Index("ix_logs_scanned_value_ts", "scanned_value", "timestamp"),
        Index("ix_logs_member_ts", "member_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # no FK: log rows outlive deleted members
    member_id = Column(String(36))
    scanned_value = Column(String(SCANNED_VALUE_MAX_LENGTH), nullable=False)
    method = Column(String(16), nullable=False)  # scan / manual
    status = Column(String(16), nullable=False)
    reason_code = Column(String(32))
    timestamp = Column(BigInteger, nullable=False, index=True)


__all__ = ["AttendanceLog", "SCANNED_VALUE_MAX_LENGTH"]
