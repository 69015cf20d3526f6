"""Subscription lifecycle: create, renew, cancel.

Initial duration uses a fixed 30-day month (``plan_months * 30`` days) while
quota cycles follow calendar months (see :mod:`gymflow.services.billing_cycle`).
"""
from __future__ import annotations

import logging
import math
from numbers import Real

from gymflow.config import Settings
from gymflow.metrics import subscription_changes_total
from gymflow.models import PLAN_MONTHS, Member, Subscription
from gymflow.models.base import epoch_now
from gymflow.repositories import Store
from gymflow.services.billing_cycle import SECONDS_PER_DAY, cycle_window
from gymflow.services.errors import NotFoundError, ValidationError
from gymflow.services.quotas import QuotaLedger

logger = logging.getLogger(__name__)

DAYS_PER_PLAN_MONTH = 30


def plan_end_date(start_date: int, plan_months: int) -> int:
    return int(start_date) + plan_months * DAYS_PER_PLAN_MONTH * SECONDS_PER_DAY


def _finite_number(value, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        raise ValidationError(f"{field} must be a finite number")
    return float(value)


def _validate_plan_months(plan_months) -> int:
    if isinstance(plan_months, bool) or plan_months not in PLAN_MONTHS:
        allowed = ", ".join(str(m) for m in PLAN_MONTHS)
        raise ValidationError(f"Plan months must be one of {allowed}")
    return int(plan_months)


def validate_price_paid(price_paid) -> float | None:
    if price_paid is None:
        return None
    price = _finite_number(price_paid, "Price paid")
    if price < 0:
        raise ValidationError("Price paid must not be negative")
    return price


def _validate_sessions(sessions_per_month) -> int | None:
    if sessions_per_month is None:
        return None
    sessions = _finite_number(sessions_per_month, "Sessions per month")
    if sessions < 1:
        raise ValidationError("Sessions per month must be a positive number")
    if not sessions.is_integer():
        raise ValidationError("Sessions per month must be a whole number")
    return int(sessions)


class SubscriptionManager:
    def __init__(self, store: Store, settings: Settings, ledger: QuotaLedger | None = None) -> None:
        self.store = store
        self.settings = settings
        self.ledger = ledger or QuotaLedger(store, settings)

    def _require_member(self, member_id: str) -> Member:
        member = self.store.members.get(member_id)
        if member is None:
            raise NotFoundError(f"Member {member_id} not found")
        return member

    def get(self, subscription_id: int) -> Subscription:
        subscription = self.store.subscriptions.get(subscription_id)
        if subscription is None:
            raise NotFoundError(f"Subscription {subscription_id} not found")
        return subscription

    def get_active(self, member_id: str) -> Subscription | None:
        return self.store.subscriptions.get_active(member_id)

    def list_for_member(self, member_id: str) -> list[Subscription]:
        return self.store.subscriptions.list_for_member(member_id)

    def create_subscription(
        self,
        member_id: str,
        plan_months: int,
        price_paid: float | None = None,
        sessions_per_month: int | None = None,
        start_date: int | None = None,
        now: int | None = None,
    ) -> Subscription:
        """Replace any active subscription of the member with a new one."""
        months = _validate_plan_months(plan_months)
        price = validate_price_paid(price_paid)
        sessions = _validate_sessions(sessions_per_month)
        now = epoch_now() if now is None else int(now)
        start = now if start_date is None else int(_finite_number(start_date, "Start date"))
        self._require_member(member_id)

        try:
            self.store.subscriptions.deactivate_for_member(member_id)
            subscription = self.store.subscriptions.add(
                Subscription(
                    member_id=member_id,
                    start_date=start,
                    end_date=plan_end_date(start, months),
                    plan_months=months,
                    price_paid=price,
                    sessions_per_month=sessions,
                    is_active=True,
                    created_at=now,
                )
            )
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise

        subscription_changes_total.labels(action="create").inc()
        logger.info(
            "Subscription %s created for member %s (%s months)", subscription.id, member_id, months
        )
        return subscription

    def renew(
        self,
        member_id: str,
        plan_months: int,
        price_paid: float | None = None,
        sessions_per_month: int | None = None,
        now: int | None = None,
    ) -> Subscription:
        """Close the running cycle, retire the active subscription and start a new one.

        The new subscription starts at ``now`` and gets its first quota row in
        the same transaction.
        """
        months = _validate_plan_months(plan_months)
        price = validate_price_paid(price_paid)
        sessions = _validate_sessions(sessions_per_month)
        now = epoch_now() if now is None else int(now)
        member = self._require_member(member_id)

        try:
            previous = self.store.subscriptions.get_active(member_id)
            if previous is not None:
                self.store.subscriptions.lock(previous.id)
                self.store.quotas.close_open_cycles(previous.id, now)
            self.store.subscriptions.deactivate_for_member(member_id)

            subscription = self.store.subscriptions.add(
                Subscription(
                    member_id=member_id,
                    start_date=now,
                    end_date=plan_end_date(now, months),
                    plan_months=months,
                    price_paid=price,
                    sessions_per_month=sessions,
                    is_active=True,
                    created_at=now,
                )
            )
            window = cycle_window(subscription.start_date, subscription.end_date, now)
            self.ledger.open_cycle(member, subscription, window)
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise

        subscription_changes_total.labels(action="renew").inc()
        logger.info(
            "Subscription renewed for member %s: %s -> %s",
            member_id,
            previous.id if previous is not None else None,
            subscription.id,
        )
        return subscription

    def cancel(self, subscription_id: int) -> Subscription:
        subscription = self.get(subscription_id)
        subscription.is_active = False
        self.store.commit()
        subscription_changes_total.labels(action="cancel").inc()
        logger.info("Subscription %s cancelled", subscription_id)
        return subscription

    def update_price_paid(self, subscription_id: int, price_paid: float | None) -> Subscription:
        price = validate_price_paid(price_paid)
        subscription = self.get(subscription_id)
        subscription.price_paid = price
        self.store.commit()
        return subscription

    def expiring(self, days_threshold: int, now: int | None = None) -> list[tuple[Subscription, Member]]:
        """Active, started subscriptions ending within ``days_threshold`` days."""
        now = epoch_now() if now is None else int(now)
        return self.store.subscriptions.expiring(now, now + days_threshold * SECONDS_PER_DAY)

    def active_count(self, now: int | None = None) -> int:
        return self.store.subscriptions.count_active(epoch_now() if now is None else int(now))

    def expired_count(self, now: int | None = None) -> int:
        return self.store.subscriptions.count_expired(epoch_now() if now is None else int(now))


__all__ = ["SubscriptionManager", "plan_end_date", "validate_price_paid", "DAYS_PER_PLAN_MONTH"]
