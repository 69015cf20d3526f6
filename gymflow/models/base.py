import time

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def epoch_now() -> int:
    """Current UTC time as integer epoch seconds."""
    return int(time.time())
