from .base import Base
from .member import Member
from .subscription import PLAN_MONTHS, Subscription
from .freeze import MAX_FREEZE_DAYS, MIN_FREEZE_DAYS, SubscriptionFreeze
from .quota import Quota
from .guest_pass import GUEST_CODE_DIGITS, GUEST_CODE_PREFIX, GuestPass
from .attendance_log import SCANNED_VALUE_MAX_LENGTH, AttendanceLog

__all__ = [
    "Base",
    "Member",
    "Subscription",
    "PLAN_MONTHS",
    "SubscriptionFreeze",
    "MIN_FREEZE_DAYS",
    "MAX_FREEZE_DAYS",
    "Quota",
    "GuestPass",
    "GUEST_CODE_PREFIX",
    "GUEST_CODE_DIGITS",
    "AttendanceLog",
    "SCANNED_VALUE_MAX_LENGTH",
]
