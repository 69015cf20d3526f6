"""Subscription freezes: temporary pauses that push the end date forward."""
from __future__ import annotations

import logging

from gymflow.metrics import freezes_created_total
from gymflow.models import MAX_FREEZE_DAYS, MIN_FREEZE_DAYS, SubscriptionFreeze
from gymflow.models.base import epoch_now
from gymflow.repositories import Store
from gymflow.services.billing_cycle import SECONDS_PER_DAY
from gymflow.services.errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)


class FreezeManager:
    def __init__(self, store: Store) -> None:
        self.store = store

    def active_freeze(self, subscription_id: int, at_time: int | None = None) -> SubscriptionFreeze | None:
        """Return the freeze whose ``[start, end)`` contains ``at_time``."""
        at = epoch_now() if at_time is None else int(at_time)
        return self.store.freezes.get_active(subscription_id, at)

    def list_freezes(self, subscription_id: int) -> list[SubscriptionFreeze]:
        return self.store.freezes.list_for_subscription(subscription_id)

    def create_freeze(self, subscription_id: int, days: int, now: int | None = None) -> SubscriptionFreeze:
        """Freeze the subscription from ``now`` for ``days`` days.

        The freeze row and the end-date extension are committed together.
        """
        if isinstance(days, bool) or not isinstance(days, int):
            raise ValidationError("Freeze days must be an integer")
        if not MIN_FREEZE_DAYS <= days <= MAX_FREEZE_DAYS:
            raise ValidationError(
                f"Freeze days must be between {MIN_FREEZE_DAYS} and {MAX_FREEZE_DAYS}"
            )
        now = epoch_now() if now is None else int(now)

        subscription = self.store.subscriptions.lock(subscription_id)
        if subscription is None:
            raise ConflictError("Subscription not found")
        if not subscription.is_active:
            raise ConflictError("Subscription is not active")
        if self.store.freezes.get_active(subscription_id, now):
            raise ConflictError("Subscription already frozen")

        shift = days * SECONDS_PER_DAY
        try:
            freeze = self.store.freezes.add(
                SubscriptionFreeze(
                    subscription_id=subscription_id,
                    start_date=now,
                    end_date=now + shift,
                    days=days,
                    created_at=now,
                )
            )
            self.store.subscriptions.extend_end_date(subscription_id, shift)
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise

        freezes_created_total.inc()
        logger.info(
            "Subscription %s frozen for %s days (freeze %s)", subscription_id, days, freeze.id
        )
        return freeze


__all__ = ["FreezeManager"]
