"""Timezone normalisation shared by scheduling and streak code."""

from datetime import datetime, timezone


def as_utc(moment: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
