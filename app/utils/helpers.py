"""Helper utilities (display formatting, request helpers)."""
from datetime import date, datetime, timedelta
from typing import Optional

from starlette.requests import HTTPConnection


def format_duration(start: datetime, end: datetime) -> str:
    """Render elapsed time the way the dashboard shows it: "1h 24m", "45m".

    Negative spans (clock skew) collapse to "0m".
    """
    total_minutes = max(0, int((end - start).total_seconds() // 60))
    hours, minutes = divmod(total_minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_clock_time(moment: datetime) -> str:
    """12-hour clock without a leading zero, e.g. "9:32 AM"."""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def format_relative_date(moment: datetime, today: Optional[date] = None) -> str:
    today = today or datetime.utcnow().date()
    day = moment.date()
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return day.strftime("%b %d, %Y")


def get_client_ip(request: HTTPConnection) -> str:
    """Return client's IP address from request headers or connection info.

    Checks `X-Forwarded-For` first (comma-separated), then falls back to
    `request.client.host`. Returns 'unknown' if not found. Works for both
    HTTP requests and WebSocket connections.
    """
    x_forwarded_for = request.headers.get("x-forwarded-for")
    if x_forwarded_for:
        # X-Forwarded-For can contain a list of IPs
        return x_forwarded_for.split(",")[0].strip()

    client = getattr(request, "client", None)
    if client and getattr(client, "host", None):
        return client.host

    return "unknown"
