import threading
import time

import pytest

from gymflow.db import SessionLocal
from gymflow.repositories import FreezeRepository, Store
from gymflow.services.errors import ConflictError, ValidationError
from gymflow.services.freezes import FreezeManager
from gymflow.services.quotas import QuotaLedger
from gymflow.services.subscriptions import SubscriptionManager
from tests.helpers import DAY, NOW, utc


@pytest.mark.parametrize("days", [0, 8, -1, "3", 2.0, True])
def test_freeze_days_validated(store, make_member, make_subscription, days):
    subscription = make_subscription(make_member())
    with pytest.raises(ValidationError):
        FreezeManager(store).create_freeze(subscription.id, days, now=NOW)


@pytest.mark.parametrize("days", [1, 4, 7])
def test_freeze_extends_end_date(store, make_member, make_subscription, days):
    subscription = make_subscription(make_member())
    original_end = subscription.end_date

    freeze = FreezeManager(store).create_freeze(subscription.id, days, now=NOW + DAY)
    store.refresh(subscription)

    assert subscription.end_date == original_end + days * DAY
    assert (freeze.start_date, freeze.end_date, freeze.days) == (NOW + DAY, NOW + DAY + days * DAY, days)


def test_overlapping_freeze_rejected(store, make_member, make_subscription):
    subscription = make_subscription(make_member())
    manager = FreezeManager(store)
    manager.create_freeze(subscription.id, 3, now=NOW)

    with pytest.raises(ConflictError):
        manager.create_freeze(subscription.id, 2, now=NOW + 2 * DAY)

    # the first freeze is over at NOW + 3 days
    manager.create_freeze(subscription.id, 2, now=NOW + 3 * DAY)
    store.refresh(subscription)
    assert subscription.end_date == NOW + 35 * DAY
    assert len(manager.list_freezes(subscription.id)) == 2


def test_freeze_requires_active_subscription(store, settings, make_member, make_subscription):
    subscription = make_subscription(make_member())
    SubscriptionManager(store, settings).cancel(subscription.id)
    manager = FreezeManager(store)
    with pytest.raises(ConflictError):
        manager.create_freeze(subscription.id, 3, now=NOW)
    with pytest.raises(ConflictError):
        manager.create_freeze(123456, 3, now=NOW)


def test_active_freeze_window(store, make_member, make_subscription):
    subscription = make_subscription(make_member())
    manager = FreezeManager(store)
    freeze = manager.create_freeze(subscription.id, 2, now=NOW)

    assert manager.active_freeze(subscription.id, NOW - 1) is None
    assert manager.active_freeze(subscription.id, NOW).id == freeze.id
    assert manager.active_freeze(subscription.id, NOW + 2 * DAY - 1).id == freeze.id
    assert manager.active_freeze(subscription.id, NOW + 2 * DAY) is None


def test_freeze_leaves_quota_cycle(store, settings, make_member, make_subscription):
    member = make_member()
    start = utc(2024, 1, 15)
    subscription = make_subscription(member, plan_months=1, start_date=start)
    quota = QuotaLedger(store, settings).get_or_create_current_quota(member.id, utc(2024, 1, 20))
    store.commit()
    assert (quota.cycle_start, quota.cycle_end) == (start, utc(2024, 2, 14))

    FreezeManager(store).create_freeze(subscription.id, 5, now=utc(2024, 1, 25))
    store.refresh(subscription)
    store.refresh(quota)

    assert subscription.end_date == utc(2024, 2, 19)
    assert quota.cycle_start == start


def test_concurrent_freezes_apply_once(store, make_member, make_subscription, monkeypatch):
    subscription = make_subscription(make_member())
    original_end = subscription.end_date
    store.commit()

    add = FreezeRepository.add

    def slow_add(self, freeze):
        time.sleep(0.2)
        return add(self, freeze)

    monkeypatch.setattr(FreezeRepository, "add", slow_add)
    barrier = threading.Barrier(2)
    outcomes = []

    def request():
        barrier.wait()
        with SessionLocal() as session:
            try:
                FreezeManager(Store(session)).create_freeze(subscription.id, 3, now=NOW)
                outcomes.append("frozen")
            except ConflictError:
                outcomes.append("conflict")

    threads = [threading.Thread(target=request) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(outcomes) == ["conflict", "frozen"]
    store.refresh(subscription)
    assert subscription.end_date == original_end + 3 * DAY
    assert len(FreezeManager(store).list_freezes(subscription.id)) == 1
