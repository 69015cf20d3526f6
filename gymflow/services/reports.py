"""Owner-facing read models built on top of the engine's tables."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import NamedTuple

from gymflow.config import Settings
from gymflow.models import AttendanceLog
from gymflow.models.base import epoch_now
from gymflow.repositories import Store
from gymflow.services.billing_cycle import SECONDS_PER_DAY, start_of_utc_day
from gymflow.services.quotas import QuotaLedger
from gymflow.services.subscriptions import SubscriptionManager

MAX_REPORT_DAYS = 365


class ExpiringRow(NamedTuple):
    member_id: str
    name: str
    phone: str
    subscription_id: int
    end_date: int
    days_remaining: int


class LowSessionsRow(NamedTuple):
    member_id: str
    name: str
    phone: str
    sessions_remaining: int


class DailySummary(NamedTuple):
    active_subscriptions: int
    expired_subscriptions: int
    checkins: dict[str, int]
    expiring: list[ExpiringRow]
    low_sessions: list[LowSessionsRow]


class Overview(NamedTuple):
    total_members: int
    active_subscriptions: int
    expired_subscriptions: int
    total_revenue: float
    today: dict[str, int]


class DailyStatsRow(NamedTuple):
    date: str
    allowed: int
    warning: int
    denied: int


class HourlyRow(NamedTuple):
    hour: int
    count: int


class TopMemberRow(NamedTuple):
    member_id: str
    name: str
    visits: int


class DenialReasonRow(NamedTuple):
    reason_code: str
    count: int


class DeniedEntryRow(NamedTuple):
    name: str
    scanned_value: str
    timestamp: int
    reason_code: str | None


class IncomeSummary(NamedTuple):
    total_revenue: float
    expected_monthly: float


class IncomeEntry(NamedTuple):
    type: str  # subscription / guest_pass
    name: str
    phone: str | None
    amount: float
    created_at: int
    plan_months: int | None = None
    sessions_per_month: int | None = None
    code: str | None = None


def _days(days: int) -> int:
    return min(MAX_REPORT_DAYS, max(1, int(days)))


def _iso_date(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")


class ReportService:
    def __init__(self, store: Store, settings: Settings) -> None:
        self.store = store
        self.settings = settings
        self.subscriptions = SubscriptionManager(store, settings)
        self.ledger = QuotaLedger(store, settings)

    def expiring(self, days: int | None = None, now: int | None = None) -> list[ExpiringRow]:
        now = epoch_now() if now is None else int(now)
        days = self.settings.warning_days_before_expiry if days is None else days
        rows = []
        for subscription, member in self.subscriptions.expiring(days, now):
            remaining = -(-(subscription.end_date - now) // SECONDS_PER_DAY)
            rows.append(
                ExpiringRow(
                    member.id, member.name, member.phone, subscription.id, subscription.end_date, remaining
                )
            )
        return rows

    def low_sessions(self, threshold: int | None = None, now: int | None = None) -> list[LowSessionsRow]:
        threshold = self.settings.warning_sessions_remaining if threshold is None else threshold
        return [
            LowSessionsRow(member.id, member.name, member.phone, quota.sessions_cap - quota.sessions_used)
            for quota, member in self.ledger.members_with_low_sessions(threshold, now)
        ]

    def today_logs(self, now: int | None = None) -> list[AttendanceLog]:
        now = epoch_now() if now is None else int(now)
        return self.store.logs.since(start_of_utc_day(now))

    def member_logs(self, member_id: str, limit: int = 100) -> list[AttendanceLog]:
        return self.store.logs.for_member(member_id, limit)

    def today_stats(self, now: int | None = None) -> dict[str, int]:
        now = epoch_now() if now is None else int(now)
        return self.store.logs.status_counts(start_of_utc_day(now))

    def daily_summary(self, now: int | None = None) -> DailySummary:
        now = epoch_now() if now is None else int(now)
        return DailySummary(
            active_subscriptions=self.subscriptions.active_count(now),
            expired_subscriptions=self.subscriptions.expired_count(now),
            checkins=self.today_stats(now),
            expiring=self.expiring(now=now),
            low_sessions=self.low_sessions(now=now),
        )

    def overview(self, now: int | None = None) -> Overview:
        now = epoch_now() if now is None else int(now)
        return Overview(
            total_members=self.store.members.count(),
            active_subscriptions=self.subscriptions.active_count(now),
            expired_subscriptions=self.subscriptions.expired_count(now),
            total_revenue=self.income_summary().total_revenue,
            today=self.today_stats(now),
        )

    def daily_stats(self, days: int = 30, now: int | None = None) -> list[DailyStatsRow]:
        """One row per UTC day, oldest first, ending with today; empty days are zeros."""
        now = epoch_now() if now is None else int(now)
        today = start_of_utc_day(now)
        first_day = today - (_days(days) - 1) * SECONDS_PER_DAY

        counts: dict[int, dict[str, int]] = {}
        for day, status, count in self.store.logs.daily_status_counts(first_day, today + SECONDS_PER_DAY):
            counts.setdefault(day, {})[status] = count

        rows = []
        for day in range(first_day, today + SECONDS_PER_DAY, SECONDS_PER_DAY):
            by_status = counts.get(day, {})
            rows.append(
                DailyStatsRow(
                    _iso_date(day),
                    by_status.get("allowed", 0),
                    by_status.get("warning", 0),
                    by_status.get("denied", 0),
                )
            )
        return rows

    def hourly_distribution(self, now: int | None = None) -> list[HourlyRow]:
        """Today's granted check-ins by UTC hour; hours without visits are omitted."""
        now = epoch_now() if now is None else int(now)
        today = start_of_utc_day(now)
        counts = self.store.logs.hourly_success_counts(today, today + SECONDS_PER_DAY)
        return [HourlyRow(hour, counts[hour]) for hour in sorted(counts)]

    def top_members(self, days: int = 30, limit: int = 10, now: int | None = None) -> list[TopMemberRow]:
        now = epoch_now() if now is None else int(now)
        since = now - _days(days) * SECONDS_PER_DAY
        return [TopMemberRow(*row) for row in self.store.logs.top_members(since, max(1, limit))]

    def denial_reasons(self, days: int = 30, now: int | None = None) -> list[DenialReasonRow]:
        now = epoch_now() if now is None else int(now)
        since = now - _days(days) * SECONDS_PER_DAY
        return [DenialReasonRow(*row) for row in self.store.logs.denial_reasons(since)]

    def denied_entries(self, days: int = 30, limit: int = 100, now: int | None = None) -> list[DeniedEntryRow]:
        now = epoch_now() if now is None else int(now)
        since = now - _days(days) * SECONDS_PER_DAY
        return [
            DeniedEntryRow(name or log.scanned_value, log.scanned_value, log.timestamp, log.reason_code)
            for log, name in self.store.logs.denied_entries(since, max(1, limit))
        ]

    def attendance(self, days: int = 30, limit: int = 2000, now: int | None = None) -> list[AttendanceLog]:
        """Every audited scan of the last ``days`` days, newest first."""
        now = epoch_now() if now is None else int(now)
        since = now - _days(days) * SECONDS_PER_DAY
        return self.store.logs.between(since, now + 1, max(1, limit))

    def income_summary(self) -> IncomeSummary:
        subscriptions = self.store.subscriptions
        return IncomeSummary(
            total_revenue=subscriptions.revenue_total() + self.store.guest_passes.revenue_total(),
            expected_monthly=subscriptions.expected_monthly_revenue(),
        )

    def recent_income(self, limit: int = 20) -> list[IncomeEntry]:
        """Paid subscriptions and guest passes merged, newest first."""
        limit = max(1, limit)
        entries = [
            IncomeEntry(
                "subscription",
                member.name,
                member.phone,
                float(subscription.price_paid),
                subscription.created_at,
                plan_months=subscription.plan_months,
                sessions_per_month=subscription.sessions_per_month,
            )
            for subscription, member in self.store.subscriptions.paid_with_member(limit)
        ]
        entries.extend(
            IncomeEntry(
                "guest_pass",
                guest_pass.name,
                guest_pass.phone,
                float(guest_pass.price_paid),
                guest_pass.created_at,
                code=guest_pass.code,
            )
            for guest_pass in self.store.guest_passes.paid(limit)
        )
        entries.sort(key=lambda entry: entry.created_at, reverse=True)
        return entries[:limit]


__all__ = [
    "ReportService",
    "DailySummary",
    "DailyStatsRow",
    "DenialReasonRow",
    "DeniedEntryRow",
    "ExpiringRow",
    "HourlyRow",
    "IncomeEntry",
    "IncomeSummary",
    "LowSessionsRow",
    "Overview",
    "TopMemberRow",
]
