"""Per-cycle session quotas, created lazily on first use."""
from __future__ import annotations

import logging

from gymflow.config import Settings
from gymflow.models import Member, Quota, Subscription
from gymflow.models.base import epoch_now
from gymflow.repositories import Store
from gymflow.services.billing_cycle import CycleWindow, cycle_window

logger = logging.getLogger(__name__)


class QuotaLedger:
    """Reads and materializes quota rows.

    The ledger only flushes; committing is left to the operation that owns
    the transaction (check-in, renewal, or an API handler).
    """

    def __init__(self, store: Store, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def session_cap_for(self, member: Member, subscription: Subscription) -> int:
        if subscription.sessions_per_month and subscription.sessions_per_month > 0:
            return int(subscription.sessions_per_month)
        return self.settings.default_session_cap(member.gender)

    def open_cycle(self, member: Member, subscription: Subscription, window: CycleWindow) -> Quota:
        quota = self.store.quotas.add(
            Quota(
                member_id=member.id,
                subscription_id=subscription.id,
                cycle_start=window.cycle_start,
                cycle_end=window.cycle_end,
                sessions_used=0,
                sessions_cap=self.session_cap_for(member, subscription),
            )
        )
        logger.debug(
            "Quota %s opened for subscription %s [%s, %s) cap=%s",
            quota.id,
            subscription.id,
            window.cycle_start,
            window.cycle_end,
            quota.sessions_cap,
        )
        return quota

    def get_or_create_current_quota(self, member_id: str, now: int | None = None) -> Quota | None:
        """Return the quota of the active subscription's current cycle.

        ``None`` when the member has no active subscription or it is outside
        its ``[start, end)`` period at ``now``.
        """
        now = epoch_now() if now is None else int(now)
        subscription = self.store.subscriptions.get_active(member_id)
        if subscription is None:
            return None
        # serializes cycle creation and the caller's compare-and-increment
        subscription = self.store.subscriptions.lock(subscription.id)
        if subscription is None or not subscription.is_active:
            return None
        if subscription.start_date > now or subscription.end_date <= now:
            return None

        window = cycle_window(subscription.start_date, subscription.end_date, now)
        quota = self.store.quotas.get_for_cycle(subscription.id, window.cycle_start)
        if quota is not None:
            return quota

        member = self.store.members.get(member_id)
        if member is None:
            return None
        return self.open_cycle(member, subscription, window)

    def increment_sessions_used(self, quota_id: int) -> None:
        """Add one used session; the cap is checked by the caller."""
        self.store.quotas.increment(quota_id)

    def current_quota(self, member_id: str, now: int | None = None) -> Quota | None:
        now = epoch_now() if now is None else int(now)
        return self.store.quotas.current(member_id, now)

    def quota_history(self, member_id: str) -> list[Quota]:
        return self.store.quotas.history(member_id)

    def sessions_remaining(self, member_id: str, now: int | None = None) -> int:
        quota = self.current_quota(member_id, now)
        if quota is None:
            return 0
        return max(0, quota.sessions_cap - quota.sessions_used)

    def members_with_low_sessions(self, threshold: int, now: int | None = None) -> list[tuple[Quota, Member]]:
        now = epoch_now() if now is None else int(now)
        return self.store.quotas.low_sessions(now, threshold)


__all__ = ["QuotaLedger"]
