"""Session-scoped repositories for the gymflow entities.

A :class:`Store` wraps one SQLAlchemy session and is handed to every service
component, so components never reach for a global database handle.
"""
from __future__ import annotations

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from gymflow.models import (
    AttendanceLog,
    GuestPass,
    Member,
    Quota,
    Subscription,
    SubscriptionFreeze,
)

SUCCESS_STATUSES = ("allowed", "warning")


class MemberRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, member_id: str) -> Member | None:
        if not member_id:
            return None
        return self.db.get(Member, member_id)

    def get_by_card_code(self, card_code: str) -> Member | None:
        if not card_code:
            return None
        return self.db.query(Member).filter(Member.card_code == card_code).one_or_none()

    def get_by_phone(self, phone: str) -> Member | None:
        return self.db.query(Member).filter(Member.phone == phone).first()

    def search(self, query: str, normalized_phone: str | None = None) -> list[Member]:
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        like = f"%{escaped}%"
        conditions = [
            Member.name.ilike(like, escape="\\"),
            Member.phone.like(like, escape="\\"),
        ]
        if normalized_phone:
            conditions.append(Member.phone == normalized_phone)
        return self.db.query(Member).filter(or_(*conditions)).order_by(Member.name.asc()).all()

    def max_card_serial(self, digits: int) -> int:
        codes = self.db.query(Member.card_code).filter(Member.card_code.isnot(None)).all()
        serials = [int(code) for (code,) in codes if len(code) == digits and code.isdigit()]
        return max(serials, default=0)

    def count(self) -> int:
        return self.db.query(func.count(Member.id)).scalar()

    def add(self, member: Member) -> Member:
        self.db.add(member)
        self.db.flush()
        return member

    def delete(self, member: Member) -> None:
        self.db.delete(member)
        self.db.flush()


class SubscriptionRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, subscription_id: int) -> Subscription | None:
        return self.db.get(Subscription, subscription_id)

    def get_active(self, member_id: str) -> Subscription | None:
        return (
            self.db.query(Subscription)
            .filter(Subscription.member_id == member_id, Subscription.is_active.is_(True))
            .order_by(Subscription.id.desc())
            .first()
        )

    def lock(self, subscription_id: int) -> Subscription | None:
        """Fetch the row with ``FOR UPDATE`` and refresh it from the database."""
        return (
            self.db.query(Subscription)
            .filter(Subscription.id == subscription_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )

    def list_for_member(self, member_id: str) -> list[Subscription]:
        return (
            self.db.query(Subscription)
            .filter(Subscription.member_id == member_id)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .all()
        )

    def deactivate_for_member(self, member_id: str) -> int:
        return (
            self.db.query(Subscription)
            .filter(Subscription.member_id == member_id, Subscription.is_active.is_(True))
            .update({Subscription.is_active: False}, synchronize_session="fetch")
        )

    def add(self, subscription: Subscription) -> Subscription:
        self.db.add(subscription)
        self.db.flush()
        return subscription

    def extend_end_date(self, subscription_id: int, seconds: int) -> None:
        self.db.query(Subscription).filter(Subscription.id == subscription_id).update(
            {Subscription.end_date: Subscription.end_date + seconds},
            synchronize_session="fetch",
        )

    def expiring(self, now: int, until: int) -> list[tuple[Subscription, Member]]:
        return (
            self.db.query(Subscription, Member)
            .join(Member, Member.id == Subscription.member_id)
            .filter(
                Subscription.is_active.is_(True),
                Subscription.start_date <= now,
                Subscription.end_date > now,
                Subscription.end_date <= until,
            )
            .order_by(Subscription.end_date.asc())
            .all()
        )

    def count_active(self, now: int) -> int:
        return (
            self.db.query(func.count(Subscription.id))
            .filter(
                Subscription.is_active.is_(True),
                Subscription.start_date <= now,
                Subscription.end_date > now,
            )
            .scalar()
        )

    def count_expired(self, now: int) -> int:
        return (
            self.db.query(func.count(Subscription.id))
            .filter(Subscription.is_active.is_(True), Subscription.end_date <= now)
            .scalar()
        )

    def revenue_total(self) -> float:
        total = (
            self.db.query(func.coalesce(func.sum(Subscription.price_paid), 0.0))
            .filter(Subscription.price_paid.isnot(None))
            .scalar()
        )
        return float(total or 0)

    def expected_monthly_revenue(self) -> float:
        """Sum of ``price_paid / plan_months`` over paid active subscriptions."""
        total = (
            self.db.query(
                func.coalesce(func.sum(Subscription.price_paid / Subscription.plan_months), 0.0)
            )
            .filter(
                Subscription.is_active.is_(True),
                Subscription.price_paid.isnot(None),
                Subscription.plan_months > 0,
            )
            .scalar()
        )
        return float(total or 0)

    def paid_with_member(self, limit: int) -> list[tuple[Subscription, Member]]:
        return (
            self.db.query(Subscription, Member)
            .join(Member, Member.id == Subscription.member_id)
            .filter(Subscription.price_paid.isnot(None))
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .limit(limit)
            .all()
        )


class FreezeRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_active(self, subscription_id: int, at_time: int) -> SubscriptionFreeze | None:
        return (
            self.db.query(SubscriptionFreeze)
            .filter(
                SubscriptionFreeze.subscription_id == subscription_id,
                SubscriptionFreeze.start_date <= at_time,
                SubscriptionFreeze.end_date > at_time,
            )
            .order_by(SubscriptionFreeze.start_date.desc())
            .first()
        )

    def list_for_subscription(self, subscription_id: int) -> list[SubscriptionFreeze]:
        return (
            self.db.query(SubscriptionFreeze)
            .filter(SubscriptionFreeze.subscription_id == subscription_id)
            .order_by(SubscriptionFreeze.start_date.desc())
            .all()
        )

    def add(self, freeze: SubscriptionFreeze) -> SubscriptionFreeze:
        self.db.add(freeze)
        self.db.flush()
        return freeze


class QuotaRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, quota_id: int) -> Quota | None:
        return self.db.get(Quota, quota_id)

    def get_for_cycle(self, subscription_id: int, cycle_start: int) -> Quota | None:
        return (
            self.db.query(Quota)
            .filter(Quota.subscription_id == subscription_id, Quota.cycle_start == cycle_start)
            .populate_existing()
            .one_or_none()
        )

    def current(self, member_id: str, now: int) -> Quota | None:
        return (
            self.db.query(Quota)
            .filter(Quota.member_id == member_id, Quota.cycle_start <= now, Quota.cycle_end > now)
            .order_by(Quota.cycle_start.desc())
            .first()
        )

    def history(self, member_id: str) -> list[Quota]:
        return (
            self.db.query(Quota)
            .filter(Quota.member_id == member_id)
            .order_by(Quota.cycle_start.desc())
            .all()
        )

    def add(self, quota: Quota) -> Quota:
        self.db.add(quota)
        self.db.flush()
        return quota

    def increment(self, quota_id: int) -> None:
        self.db.query(Quota).filter(Quota.id == quota_id).update(
            {Quota.sessions_used: Quota.sessions_used + 1},
            synchronize_session="fetch",
        )

    def close_open_cycles(self, subscription_id: int, now: int) -> int:
        """Truncate cycles of ``subscription_id`` that span ``now`` to end at ``now``."""
        return (
            self.db.query(Quota)
            .filter(
                Quota.subscription_id == subscription_id,
                Quota.cycle_start <= now,
                Quota.cycle_end > now,
            )
            .update({Quota.cycle_end: now}, synchronize_session="fetch")
        )

    def low_sessions(self, now: int, threshold: int) -> list[tuple[Quota, Member]]:
        remaining = Quota.sessions_cap - Quota.sessions_used
        return (
            self.db.query(Quota, Member)
            .join(Member, Member.id == Quota.member_id)
            .join(Subscription, Subscription.id == Quota.subscription_id)
            .filter(
                Subscription.is_active.is_(True),
                Quota.cycle_start <= now,
                Quota.cycle_end > now,
                remaining <= threshold,
                remaining > 0,
            )
            .order_by(remaining.asc())
            .all()
        )


class GuestPassRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_code(self, code: str) -> GuestPass | None:
        return self.db.query(GuestPass).filter(GuestPass.code == code.strip()).one_or_none()

    def codes_with_prefix(self, prefix: str) -> list[str]:
        rows = self.db.query(GuestPass.code).filter(GuestPass.code.startswith(prefix)).all()
        return [code for (code,) in rows]

    def list_recent(self, limit: int = 50) -> list[GuestPass]:
        return (
            self.db.query(GuestPass)
            .order_by(GuestPass.created_at.desc(), GuestPass.code.desc())
            .limit(limit)
            .all()
        )

    def add(self, guest_pass: GuestPass) -> GuestPass:
        self.db.add(guest_pass)
        self.db.flush()
        return guest_pass

    def mark_used(self, code: str, now: int) -> bool:
        """Set ``used_at`` if still unset; return whether this call consumed the pass."""
        updated = (
            self.db.query(GuestPass)
            .filter(GuestPass.code == code, GuestPass.used_at.is_(None))
            .update({GuestPass.used_at: now}, synchronize_session="fetch")
        )
        return updated == 1

    def revenue_total(self) -> float:
        total = (
            self.db.query(func.coalesce(func.sum(GuestPass.price_paid), 0.0))
            .filter(GuestPass.price_paid.isnot(None))
            .scalar()
        )
        return float(total or 0)

    def paid(self, limit: int) -> list[GuestPass]:
        return (
            self.db.query(GuestPass)
            .filter(GuestPass.price_paid.isnot(None))
            .order_by(GuestPass.created_at.desc(), GuestPass.code.desc())
            .limit(limit)
            .all()
        )


class AttendanceLogRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def add(
        self,
        *,
        member_id: str | None,
        scanned_value: str,
        method: str,
        status: str,
        reason_code: str,
        timestamp: int,
    ) -> AttendanceLog:
        entry = AttendanceLog(
            member_id=member_id,
            scanned_value=scanned_value,
            method=method,
            status=status,
            reason_code=reason_code,
            timestamp=timestamp,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def last_successful_scan(self, scanned_value: str, since: int) -> AttendanceLog | None:
        return (
            self.db.query(AttendanceLog)
            .filter(
                AttendanceLog.scanned_value == scanned_value,
                AttendanceLog.timestamp >= since,
                AttendanceLog.status.in_(SUCCESS_STATUSES),
            )
            .order_by(AttendanceLog.timestamp.desc())
            .first()
        )

    def has_success_since(self, member_id: str, since: int) -> bool:
        row = (
            self.db.query(AttendanceLog.id)
            .filter(
                AttendanceLog.member_id == member_id,
                AttendanceLog.timestamp >= since,
                AttendanceLog.status.in_(SUCCESS_STATUSES),
            )
            .first()
        )
        return row is not None

    def since(self, since: int) -> list[AttendanceLog]:
        return (
            self.db.query(AttendanceLog)
            .filter(AttendanceLog.timestamp >= since)
            .order_by(AttendanceLog.timestamp.desc(), AttendanceLog.id.desc())
            .all()
        )

    def for_member(self, member_id: str, limit: int = 100) -> list[AttendanceLog]:
        return (
            self.db.query(AttendanceLog)
            .filter(AttendanceLog.member_id == member_id)
            .order_by(AttendanceLog.timestamp.desc(), AttendanceLog.id.desc())
            .limit(limit)
            .all()
        )

    def status_counts(self, since: int) -> dict[str, int]:
        rows = (
            self.db.query(AttendanceLog.status, func.count(AttendanceLog.id))
            .filter(AttendanceLog.timestamp >= since)
            .group_by(AttendanceLog.status)
            .all()
        )
        counts = {"allowed": 0, "warning": 0, "denied": 0}
        for status, count in rows:
            if status in counts:
                counts[status] = int(count)
        return counts

    def between(self, start: int, end: int, limit: int | None = None) -> list[AttendanceLog]:
        query = (
            self.db.query(AttendanceLog)
            .filter(AttendanceLog.timestamp >= start, AttendanceLog.timestamp < end)
            .order_by(AttendanceLog.timestamp.desc(), AttendanceLog.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def daily_status_counts(self, start: int, end: int) -> list[tuple[int, str, int]]:
        """``(day_start, status, count)`` per UTC day in ``[start, end)``."""
        day = AttendanceLog.timestamp - AttendanceLog.timestamp % 86400
        rows = (
            self.db.query(day.label("day_start"), AttendanceLog.status, func.count(AttendanceLog.id))
            .filter(AttendanceLog.timestamp >= start, AttendanceLog.timestamp < end)
            .group_by("day_start", AttendanceLog.status)
            .all()
        )
        return [(int(day_start), status, int(count)) for day_start, status, count in rows]

    def hourly_success_counts(self, start: int, end: int) -> dict[int, int]:
        """Successful check-ins per UTC hour of day in ``[start, end)``."""
        seconds_into_day = AttendanceLog.timestamp % 86400 - AttendanceLog.timestamp % 3600
        rows = (
            self.db.query(seconds_into_day.label("hour_start"), func.count(AttendanceLog.id))
            .filter(
                AttendanceLog.timestamp >= start,
                AttendanceLog.timestamp < end,
                AttendanceLog.status.in_(SUCCESS_STATUSES),
            )
            .group_by("hour_start")
            .all()
        )
        return {int(seconds) // 3600: int(count) for seconds, count in rows}

    def top_members(self, since: int, limit: int) -> list[tuple[str, str, int]]:
        visits = func.count(AttendanceLog.id).label("visits")
        rows = (
            self.db.query(AttendanceLog.member_id, Member.name, visits)
            .outerjoin(Member, Member.id == AttendanceLog.member_id)
            .filter(
                AttendanceLog.timestamp >= since,
                AttendanceLog.status.in_(SUCCESS_STATUSES),
                AttendanceLog.member_id.isnot(None),
            )
            .group_by(AttendanceLog.member_id, Member.name)
            .order_by(visits.desc(), AttendanceLog.member_id.asc())
            .limit(limit)
            .all()
        )
        return [(member_id, name or "Unknown", int(count)) for member_id, name, count in rows]

    def denial_reasons(self, since: int) -> list[tuple[str, int]]:
        count = func.count(AttendanceLog.id).label("count")
        rows = (
            self.db.query(AttendanceLog.reason_code, count)
            .filter(
                AttendanceLog.timestamp >= since,
                AttendanceLog.status == "denied",
                AttendanceLog.reason_code.isnot(None),
            )
            .group_by(AttendanceLog.reason_code)
            .order_by(count.desc(), AttendanceLog.reason_code.asc())
            .all()
        )
        return [(reason, int(total)) for reason, total in rows]

    def denied_entries(self, since: int, limit: int) -> list[tuple[AttendanceLog, str | None]]:
        """Denied logs, newest first, with the member name when it still exists."""
        return (
            self.db.query(AttendanceLog, Member.name)
            .outerjoin(Member, Member.id == AttendanceLog.member_id)
            .filter(AttendanceLog.timestamp >= since, AttendanceLog.status == "denied")
            .order_by(AttendanceLog.timestamp.desc(), AttendanceLog.id.desc())
            .limit(limit)
            .all()
        )


class Store:
    """Unit of work: one session plus a repository per entity."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.members = MemberRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.freezes = FreezeRepository(db)
        self.quotas = QuotaRepository(db)
        self.guest_passes = GuestPassRepository(db)
        self.logs = AttendanceLogRepository(db)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def flush(self) -> None:
        self.db.flush()

    def refresh(self, instance) -> None:
        self.db.refresh(instance)


__all__ = [
    "AttendanceLogRepository",
    "FreezeRepository",
    "GuestPassRepository",
    "MemberRepository",
    "QuotaRepository",
    "Store",
    "SubscriptionRepository",
]
