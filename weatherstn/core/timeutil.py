from datetime import datetime, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def epoch_seconds() -> int:
    return int(now_utc().timestamp())
