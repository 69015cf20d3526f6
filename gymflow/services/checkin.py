"""Check-in decision engine.

One scan is evaluated against an ordered list of guard rules; the first rule
that returns a result decides the outcome. Order matters:

1. guest pass          -> allowed/guest_pass, denied/guest_used, denied/guest_expired
2. cooldown            -> ignored/cooldown (not logged)
3. member resolution   -> denied/unknown_qr
4. same-day dedup      -> ignored/already_today (not logged)
5. subscription        -> denied/expired, denied/not_started
6. freeze              -> denied/frozen
7. quota               -> denied/no_quota, denied/no_sessions
8. success             -> allowed/ok or warning/ok, one session consumed

Every outcome except the two ``ignored`` ones is written to the attendance log.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, NamedTuple, Optional

from gymflow.config import Settings
from gymflow.metrics import checkin_decisions_total, checkin_latency_seconds
from gymflow.models import (
    SCANNED_VALUE_MAX_LENGTH,
    GuestPass,
    Member,
    Quota,
    Subscription,
    SubscriptionFreeze,
)
from gymflow.models.base import epoch_now
from gymflow.repositories import Store
from gymflow.services.billing_cycle import SECONDS_PER_DAY, start_of_utc_day
from gymflow.services.errors import ValidationError
from gymflow.services.freezes import FreezeManager
from gymflow.services.quotas import QuotaLedger

logger = logging.getLogger(__name__)

METHODS = ("scan", "manual")


class CheckInStatus(str, Enum):
    ALLOWED = "allowed"
    WARNING = "warning"
    DENIED = "denied"
    IGNORED = "ignored"


class ReasonCode(str, Enum):
    OK = "ok"
    GUEST_PASS = "guest_pass"
    GUEST_USED = "guest_used"
    GUEST_EXPIRED = "guest_expired"
    COOLDOWN = "cooldown"
    UNKNOWN_QR = "unknown_qr"
    ALREADY_TODAY = "already_today"
    EXPIRED = "expired"
    NOT_STARTED = "not_started"
    FROZEN = "frozen"
    NO_QUOTA = "no_quota"
    NO_SESSIONS = "no_sessions"


class CheckInWarning(NamedTuple):
    key: str
    params: dict[str, int]


@dataclass
class CheckInResult:
    status: CheckInStatus
    reason_code: ReasonCode
    member: Member | None = None
    subscription: Subscription | None = None
    quota: Quota | None = None
    guest_pass: GuestPass | None = None
    freeze: SubscriptionFreeze | None = None
    warnings: list[CheckInWarning] = field(default_factory=list)

    @classmethod
    def denied(cls, reason: ReasonCode, **context) -> "CheckInResult":
        return cls(CheckInStatus.DENIED, reason, **context)

    @classmethod
    def ignored(cls, reason: ReasonCode, **context) -> "CheckInResult":
        return cls(CheckInStatus.IGNORED, reason, **context)

    @property
    def granted(self) -> bool:
        return self.status in (CheckInStatus.ALLOWED, CheckInStatus.WARNING)

    @property
    def audited(self) -> bool:
        return self.status is not CheckInStatus.IGNORED


@dataclass
class _Scan:
    value: str
    method: str
    now: int
    member: Member | None = None
    subscription: Subscription | None = None
    quota: Quota | None = None


Rule = Callable[[_Scan], Optional[CheckInResult]]


class CheckInEngine:
    def __init__(
        self,
        store: Store,
        settings: Settings,
        ledger: QuotaLedger | None = None,
        freezes: FreezeManager | None = None,
    ) -> None:
        self.store = store
        self.settings = settings
        self.ledger = ledger or QuotaLedger(store, settings)
        self.freezes = freezes or FreezeManager(store)
        self._pre_member_rules: tuple[Rule, ...] = (self._guest_pass, self._cooldown)
        self._member_rules: tuple[Rule, ...] = (
            self._same_day,
            self._subscription_validity,
            self._freeze,
            self._quota,
        )

    def check_attendance(
        self, scanned_value: str, method: str = "scan", now: int | None = None
    ) -> CheckInResult:
        """Evaluate one scan, apply its side effects and return the outcome."""
        if method not in METHODS:
            raise ValidationError(f"Unknown check-in method: {method}")
        if not isinstance(scanned_value, str):
            raise ValidationError("Scanned value must be a string")
        if len(scanned_value) > SCANNED_VALUE_MAX_LENGTH:
            raise ValidationError(
                f"Scanned value must be at most {SCANNED_VALUE_MAX_LENGTH} characters"
            )
        now = epoch_now() if now is None else int(now)
        scan = _Scan(value=scanned_value.strip() or scanned_value, method=method, now=now)

        started = time.perf_counter()
        try:
            result = self._evaluate(scan)
            if result.audited:
                self.store.logs.add(
                    member_id=result.member.id if result.member is not None else None,
                    scanned_value=scan.value,
                    method=method,
                    status=result.status.value,
                    reason_code=result.reason_code.value,
                    timestamp=now,
                )
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise
        finally:
            checkin_latency_seconds.observe(time.perf_counter() - started)

        checkin_decisions_total.labels(
            status=result.status.value, reason=result.reason_code.value
        ).inc()
        if result.audited:
            logger.info(
                "Check-in %s/%s for %r (%s)",
                result.status.value,
                result.reason_code.value,
                scan.value,
                method,
                extra={
                    "member_id": result.member.id if result.member is not None else None,
                    "scanned_value": scan.value,
                    "method": method,
                    "status": result.status.value,
                    "reason_code": result.reason_code.value,
                },
            )
        else:
            logger.debug("Check-in ignored (%s) for %r", result.reason_code.value, scan.value)
        return result

    def manual_check_in(self, member_id: str, now: int | None = None) -> CheckInResult:
        return self.check_attendance(member_id, "manual", now=now)

    def _evaluate(self, scan: _Scan) -> CheckInResult:
        for rule in self._pre_member_rules:
            result = rule(scan)
            if result is not None:
                return result

        scan.member = self._resolve_member(scan)
        if scan.member is None:
            return CheckInResult.denied(ReasonCode.UNKNOWN_QR)

        for rule in self._member_rules:
            result = rule(scan)
            if result is not None:
                return result
        return self._grant(scan)

    def _resolve_member(self, scan: _Scan) -> Member | None:
        members = self.store.members
        if scan.method == "scan":
            member = members.get_by_card_code(scan.value)
            if member is not None:
                return member
        return members.get(scan.value)

    def _guest_pass(self, scan: _Scan) -> CheckInResult | None:
        if not scan.value.strip():
            return None
        guest_pass = self.store.guest_passes.get_by_code(scan.value)
        if guest_pass is None:
            return None
        if guest_pass.used_at is not None:
            return CheckInResult.denied(ReasonCode.GUEST_USED, guest_pass=guest_pass)
        if guest_pass.expires_at <= scan.now:
            return CheckInResult.denied(ReasonCode.GUEST_EXPIRED, guest_pass=guest_pass)
        if not self.store.guest_passes.mark_used(guest_pass.code, scan.now):
            # consumed by a concurrent scan
            self.store.refresh(guest_pass)
            return CheckInResult.denied(ReasonCode.GUEST_USED, guest_pass=guest_pass)
        self.store.refresh(guest_pass)
        return CheckInResult(
            CheckInStatus.ALLOWED, ReasonCode.GUEST_PASS, guest_pass=guest_pass
        )

    def _cooldown(self, scan: _Scan) -> CheckInResult | None:
        since = scan.now - self.settings.scan_cooldown_seconds
        if self.store.logs.last_successful_scan(scan.value, since) is not None:
            return CheckInResult.ignored(ReasonCode.COOLDOWN)
        return None

    def _same_day(self, scan: _Scan) -> CheckInResult | None:
        if self.store.logs.has_success_since(scan.member.id, start_of_utc_day(scan.now)):
            return CheckInResult.ignored(ReasonCode.ALREADY_TODAY, member=scan.member)
        return None

    def _subscription_validity(self, scan: _Scan) -> CheckInResult | None:
        subscription = self.store.subscriptions.get_active(scan.member.id)
        if subscription is None:
            return CheckInResult.denied(ReasonCode.EXPIRED, member=scan.member)
        if subscription.end_date <= scan.now:
            return CheckInResult.denied(
                ReasonCode.EXPIRED, member=scan.member, subscription=subscription
            )
        if subscription.start_date > scan.now:
            return CheckInResult.denied(
                ReasonCode.NOT_STARTED, member=scan.member, subscription=subscription
            )
        scan.subscription = subscription
        return None

    def _freeze(self, scan: _Scan) -> CheckInResult | None:
        freeze = self.freezes.active_freeze(scan.subscription.id, scan.now)
        if freeze is None:
            return None
        return CheckInResult.denied(
            ReasonCode.FROZEN,
            member=scan.member,
            subscription=scan.subscription,
            freeze=freeze,
        )

    def _quota(self, scan: _Scan) -> CheckInResult | None:
        quota = self.ledger.get_or_create_current_quota(scan.member.id, scan.now)
        if quota is None:
            return CheckInResult.denied(
                ReasonCode.NO_QUOTA, member=scan.member, subscription=scan.subscription
            )
        if quota.sessions_used >= quota.sessions_cap:
            return CheckInResult.denied(
                ReasonCode.NO_SESSIONS,
                member=scan.member,
                subscription=scan.subscription,
                quota=quota,
            )
        scan.quota = quota
        return None

    def _warnings(self, scan: _Scan) -> list[CheckInWarning]:
        warnings: list[CheckInWarning] = []
        days_remaining = math.ceil((scan.subscription.end_date - scan.now) / SECONDS_PER_DAY)
        # remaining after this visit
        sessions_remaining = scan.quota.sessions_cap - scan.quota.sessions_used - 1
        if days_remaining <= self.settings.warning_days_before_expiry:
            warnings.append(CheckInWarning("attendance.expiresIn", {"count": days_remaining}))
        if sessions_remaining <= self.settings.warning_sessions_remaining:
            warnings.append(
                CheckInWarning("attendance.sessionsAfterVisit", {"count": sessions_remaining})
            )
        return warnings

    def _grant(self, scan: _Scan) -> CheckInResult:
        warnings = self._warnings(scan)
        self.ledger.increment_sessions_used(scan.quota.id)
        self.store.refresh(scan.quota)
        status = CheckInStatus.WARNING if warnings else CheckInStatus.ALLOWED
        return CheckInResult(
            status,
            ReasonCode.OK,
            member=scan.member,
            subscription=scan.subscription,
            quota=scan.quota,
            warnings=warnings,
        )


__all__ = [
    "CheckInEngine",
    "CheckInResult",
    "CheckInStatus",
    "CheckInWarning",
    "ReasonCode",
    "METHODS",
]
