from gymflow.services.checkin import CheckInEngine
from gymflow.services.guest_passes import GuestPassService
from gymflow.services.members import MemberService
from gymflow.services.quotas import QuotaLedger
from gymflow.services.reports import ReportService
from tests.helpers import DAY, NOW, utc


def test_expiring_rows(store, settings, make_member, make_subscription):
    member = make_member(name="Soon", card_code="E1")
    subscription = make_subscription(member, start_date=NOW - 28 * DAY + 3600)
    make_subscription(make_member(card_code="E2"))

    rows = ReportService(store, settings).expiring(now=NOW)
    assert len(rows) == 1
    row = rows[0]
    assert (row.member_id, row.subscription_id, row.end_date) == (member.id, subscription.id, subscription.end_date)
    assert row.days_remaining == 3


def test_today_stats_and_logs(store, settings, make_member, make_subscription):
    make_subscription(make_member(card_code="T1"), start_date=NOW - 5 * DAY)
    engine = CheckInEngine(store, settings)
    engine.check_attendance("T1", now=NOW - DAY)
    engine.check_attendance("T1", now=NOW)
    engine.check_attendance("ghost", now=NOW + 5)

    reports = ReportService(store, settings)
    assert reports.today_stats(NOW + 10) == {"allowed": 1, "warning": 0, "denied": 1}
    assert [log.scanned_value for log in reports.today_logs(NOW + 10)] == ["ghost", "T1"]


def test_daily_summary(store, settings, make_member, make_subscription):
    low = make_member(card_code="D1")
    make_subscription(low, sessions_per_month=3)
    make_subscription(make_member(card_code="D2"), start_date=NOW - 40 * DAY)
    QuotaLedger(store, settings).get_or_create_current_quota(low.id, NOW)
    store.commit()

    summary = ReportService(store, settings).daily_summary(NOW)
    assert summary.active_subscriptions == 1
    assert summary.expired_subscriptions == 1
    assert summary.expiring == []
    assert [(row.member_id, row.sessions_remaining) for row in summary.low_sessions] == [(low.id, 3)]


def _visits(store, settings, make_member, make_subscription):
    """Two members: Busy visits on three days, Once on one; plus two denials."""
    busy = make_member(name="Busy", card_code="V1")
    once = make_member(name="Once", card_code="V2")
    make_subscription(busy, start_date=NOW - 10 * DAY)
    make_subscription(once, start_date=NOW - 10 * DAY)
    engine = CheckInEngine(store, settings)
    engine.check_attendance("V1", now=NOW - 2 * DAY)
    engine.check_attendance("V1", now=NOW - DAY)
    engine.check_attendance("V1", now=NOW)
    engine.check_attendance("V2", now=NOW + 3600)
    engine.check_attendance("ghost", now=NOW - DAY)
    engine.check_attendance("ghost", now=NOW + 60)
    return busy, once


def test_daily_stats_fill_empty_days(store, settings, make_member, make_subscription):
    _visits(store, settings, make_member, make_subscription)

    rows = ReportService(store, settings).daily_stats(days=4, now=NOW)
    assert [tuple(row) for row in rows] == [
        ("2024-03-07", 0, 0, 0),
        ("2024-03-08", 1, 0, 0),
        ("2024-03-09", 1, 0, 1),
        ("2024-03-10", 2, 0, 1),
    ]
    assert len(ReportService(store, settings).daily_stats(days=1000, now=NOW)) == 365


def test_hourly_distribution_counts_granted_only(store, settings, make_member, make_subscription):
    _visits(store, settings, make_member, make_subscription)
    rows = ReportService(store, settings).hourly_distribution(now=NOW)
    assert [tuple(row) for row in rows] == [(12, 1), (13, 1)]


def test_top_members_and_denials(store, settings, make_member, make_subscription):
    busy, once = _visits(store, settings, make_member, make_subscription)
    reports = ReportService(store, settings)

    assert [tuple(row) for row in reports.top_members(days=30, now=NOW + 7200)] == [
        (busy.id, "Busy", 3),
        (once.id, "Once", 1),
    ]
    assert [row.member_id for row in reports.top_members(days=30, limit=1, now=NOW + 7200)] == [busy.id]
    assert [row.visits for row in reports.top_members(days=1, now=NOW + 7200)] == [1, 1]

    assert [tuple(row) for row in reports.denial_reasons(now=NOW + 7200)] == [("unknown_qr", 2)]
    entries = reports.denied_entries(now=NOW + 7200)
    assert [(row.name, row.timestamp) for row in entries] == [("ghost", NOW + 60), ("ghost", NOW - DAY)]
    assert len(reports.denied_entries(limit=1, now=NOW + 7200)) == 1


def test_denied_entries_use_member_name(store, settings, make_member):
    member = make_member(name="Lapsed", card_code="L1")
    CheckInEngine(store, settings).check_attendance("L1", now=NOW)
    [row] = ReportService(store, settings).denied_entries(now=NOW)
    assert (row.name, row.scanned_value, row.reason_code) == ("Lapsed", "L1", "expired")

    MemberService(store, settings).delete(member.id)
    [row] = ReportService(store, settings).denied_entries(now=NOW)
    assert row.name == "L1"


def test_attendance_range(store, settings, make_member, make_subscription):
    _visits(store, settings, make_member, make_subscription)
    logs = ReportService(store, settings).attendance(days=1, now=NOW + 7200)
    assert [(log.scanned_value, log.timestamp) for log in logs] == [
        ("V2", NOW + 3600),
        ("ghost", NOW + 60),
        ("V1", NOW),
    ]


def test_income_summary_and_recent(store, settings, make_member, make_subscription):
    first = make_member(name="Quarterly", card_code="I1")
    second = make_member(name="Free", card_code="I2")
    make_subscription(first, plan_months=3, price_paid=600, start_date=utc(2024, 3, 1))
    make_subscription(second, start_date=utc(2024, 3, 2))
    guests = GuestPassService(store, settings)
    guests.create(name="Guest", price_paid=40, now=utc(2024, 3, 5))
    guests.create(name="Comp", now=utc(2024, 3, 6))

    reports = ReportService(store, settings)
    assert reports.income_summary() == (640.0, 200.0)

    recent = reports.recent_income()
    assert [(entry.type, entry.name, entry.amount) for entry in recent] == [
        ("guest_pass", "Guest", 40.0),
        ("subscription", "Quarterly", 600.0),
    ]
    assert recent[0].code == "GP-000001"
    assert recent[1].plan_months == 3
    assert len(reports.recent_income(limit=1)) == 1


def test_overview(store, settings, make_member, make_subscription):
    _visits(store, settings, make_member, make_subscription)
    make_member(name="Prospect", card_code="P1")

    overview = ReportService(store, settings).overview(NOW + 7200)
    assert overview.total_members == 3
    assert overview.active_subscriptions == 2
    assert overview.expired_subscriptions == 0
    assert overview.total_revenue == 0
    assert overview.today == {"allowed": 2, "warning": 0, "denied": 1}
