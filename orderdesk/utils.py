from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from zoneinfo import ZoneInfo

CENTS = Decimal("0.01")


def format_money(value) -> str:
    if isinstance(value, float):
        value = Decimal(str(value))
    amount = Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)
    return f"${amount}"


def format_timestamp(value: datetime, tz: str = "UTC") -> str:
    """Render a timestamp the way en-US browsers print toLocaleString()."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    local = value.astimezone(ZoneInfo(tz))
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local.month}/{local.day}/{local.year}, {hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
