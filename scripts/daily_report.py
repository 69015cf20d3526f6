"""Print the owner's daily summary: check-in counts, expiring and low-session members."""
import argparse
import json
import logging

from gymflow.config import Settings
from gymflow.db import SessionLocal, init_db
from gymflow.logger import setup_logging
from gymflow.repositories import Store
from gymflow.services.reports import DailySummary, ReportService


def make_report(summary: DailySummary) -> str:
    """Build a plain-text report."""
    lines = [
        f"Active subscriptions: {summary.active_subscriptions}",
        f"Expired subscriptions: {summary.expired_subscriptions}",
        "Check-ins today: "
        + ", ".join(f"{status}={count}" for status, count in summary.checkins.items()),
        f"Expiring soon ({len(summary.expiring)}):",
    ]
    for row in summary.expiring:
        lines.append(f"  {row.name} {row.phone} - {row.days_remaining}d left")
    lines.append(f"Low on sessions ({len(summary.low_sessions)}):")
    for row in summary.low_sessions:
        lines.append(f"  {row.name} {row.phone} - {row.sessions_remaining} left")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--json", action="store_true", help="emit JSON instead of text")
    parser.add_argument("--now", type=int, default=None, help="reference epoch seconds")
    args = parser.parse_args(argv)

    settings = Settings()
    setup_logging(settings.log_level)
    init_db(settings)
    with SessionLocal() as db:
        summary = ReportService(Store(db), settings).daily_summary(args.now)

    logging.info("daily report built")
    if args.json:
        payload = summary._asdict()
        payload["expiring"] = [row._asdict() for row in summary.expiring]
        payload["low_sessions"] = [row._asdict() for row in summary.low_sessions]
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(make_report(summary))


if __name__ == "__main__":
    main()
