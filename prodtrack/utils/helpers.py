from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp, the form every datetime column is bound with."""
    return datetime.now(timezone.utc)


def week_start_for(d: date) -> date:
    """Monday of the week containing ``d``."""
    return d - timedelta(days=d.weekday())


def round_half_up(value: Decimal) -> int:
    """
    Round like a person would (57.5 -> 58), not banker's rounding.
    """
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"
