from gymflow.config import Settings
from gymflow.models import Quota
from gymflow.services.quotas import QuotaLedger
from tests.helpers import DAY, NOW, utc


def test_quota_created_lazily_and_idempotent(store, settings, make_member, make_subscription):
    member = make_member()
    subscription = make_subscription(member)
    ledger = QuotaLedger(store, settings)

    assert ledger.current_quota(member.id, NOW) is None
    first = ledger.get_or_create_current_quota(member.id, NOW + DAY)
    second = ledger.get_or_create_current_quota(member.id, NOW + 2 * DAY)
    store.commit()

    assert first.id == second.id
    assert first.subscription_id == subscription.id
    assert first.cycle_start == subscription.start_date
    assert first.sessions_used == 0
    assert store.db.query(Quota).count() == 1


def test_default_cap_by_gender(store, settings, make_member, make_subscription):
    ledger = QuotaLedger(store, settings)
    male = make_member(gender="male", card_code="M1")
    female = make_member(gender="female", card_code="F1")
    make_subscription(male)
    make_subscription(female)

    assert ledger.get_or_create_current_quota(male.id, NOW).sessions_cap == 26
    assert ledger.get_or_create_current_quota(female.id, NOW).sessions_cap == 30


def test_subscription_cap_overrides_default(store, make_member, make_subscription):
    ledger = QuotaLedger(store, Settings(session_cap_male=20))
    member = make_member(gender="male")
    make_subscription(member, sessions_per_month=12)
    assert ledger.get_or_create_current_quota(member.id, NOW).sessions_cap == 12


def test_settings_cap_used_without_override(store, make_member, make_subscription):
    ledger = QuotaLedger(store, Settings(session_cap_male=20))
    member = make_member(gender="male")
    make_subscription(member)
    assert ledger.get_or_create_current_quota(member.id, NOW).sessions_cap == 20


def test_no_quota_outside_subscription(store, settings, make_member, make_subscription):
    ledger = QuotaLedger(store, settings)
    member = make_member()
    assert ledger.get_or_create_current_quota(member.id, NOW) is None

    subscription = make_subscription(member, start_date=NOW + DAY)
    assert ledger.get_or_create_current_quota(member.id, NOW) is None
    assert ledger.get_or_create_current_quota(member.id, subscription.end_date) is None
    assert store.db.query(Quota).count() == 0


def test_new_cycle_opens_new_row(store, settings, make_member, make_subscription):
    ledger = QuotaLedger(store, settings)
    member = make_member()
    start = utc(2024, 1, 15)
    make_subscription(member, plan_months=3, start_date=start)

    january = ledger.get_or_create_current_quota(member.id, utc(2024, 1, 20))
    january.sessions_used = 7
    february = ledger.get_or_create_current_quota(member.id, utc(2024, 2, 20))
    store.commit()

    assert january.id != february.id
    assert (february.cycle_start, february.cycle_end) == (utc(2024, 2, 15), utc(2024, 3, 15))
    assert february.sessions_used == 0
    assert [q.id for q in ledger.quota_history(member.id)] == [february.id, january.id]


def test_increment_and_remaining(store, settings, make_member, make_subscription):
    ledger = QuotaLedger(store, settings)
    member = make_member()
    make_subscription(member, sessions_per_month=4)
    quota = ledger.get_or_create_current_quota(member.id, NOW)
    ledger.increment_sessions_used(quota.id)
    ledger.increment_sessions_used(quota.id)
    store.commit()
    store.refresh(quota)

    assert quota.sessions_used == 2
    assert ledger.sessions_remaining(member.id, NOW) == 2


def test_members_with_low_sessions(store, settings, make_member, make_subscription):
    ledger = QuotaLedger(store, settings)
    low = make_member(name="Low", card_code="L1")
    high = make_member(name="High", card_code="H1")
    make_subscription(low, sessions_per_month=5)
    make_subscription(high, sessions_per_month=20)
    ledger.get_or_create_current_quota(low.id, NOW).sessions_used = 3
    ledger.get_or_create_current_quota(high.id, NOW)
    store.commit()

    rows = ledger.members_with_low_sessions(3, NOW + DAY)
    assert [member.id for _, member in rows] == [low.id]
