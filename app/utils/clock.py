from datetime import datetime, timedelta, timezone

# Smallest step a stored DateTime can resolve
TICK = timedelta(microseconds=1)


def utcnow():
    """Naive UTC now, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today():
    return utcnow().date()
