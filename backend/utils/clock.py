from datetime import datetime, timezone
from typing import Optional


# Naive UTC timestamp, the form every DateTime column stores
def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Aware datetimes are converted to UTC; naive ones are taken as UTC already
def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
