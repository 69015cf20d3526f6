from datetime import datetime, timezone


def utc(*args) -> int:
    """Epoch seconds for a UTC calendar time."""
    return int(datetime(*args, tzinfo=timezone.utc).timestamp())


DAY = 86400
NOW = utc(2024, 3, 10, 12, 0)
