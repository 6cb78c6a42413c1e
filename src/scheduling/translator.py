"""Translation of crawl intervals and notify settings to cron expressions.

Expressions use six fields with seconds first::

    second minute hour day month day_of_week

Intervals are mapped literally. A non-hourly-multiple interval above one
hour keeps its minute remainder as a fixed minute offset: 90 minutes
becomes ``0 30 */1 * * *``, i.e. hourly at minute 30, not every 90
minutes. ``SchedulerConfig.exact_interval`` switches to a true interval
trigger instead.
"""

import re
from dataclasses import asdict, dataclass

from src.crawler.errors import InvalidInterval

MIN_INTERVAL_MINUTES = 5
MAX_INTERVAL_MINUTES = 1440

_NOTIFY_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


@dataclass(frozen=True)
class ScheduleFields:
    """A parsed six-field cron expression, keyed like CronTrigger kwargs."""

    second: str
    minute: str
    hour: str
    day: str
    month: str
    day_of_week: str

    def as_trigger_kwargs(self) -> dict[str, str]:
        return asdict(self)


def interval_to_schedule(minutes: int) -> str:
    """Map a crawl interval in minutes to a six-field cron expression.

    Raises:
        InvalidInterval: If ``minutes`` is outside [5, 1440].
    """
    if minutes < MIN_INTERVAL_MINUTES or minutes > MAX_INTERVAL_MINUTES:
        raise InvalidInterval(
            f"interval must be between {MIN_INTERVAL_MINUTES} and "
            f"{MAX_INTERVAL_MINUTES} minutes, got {minutes}"
        )

    if minutes < 60:
        return f"0 */{minutes} * * * *"

    hours, remainder = divmod(minutes, 60)
    if remainder == 0:
        return f"0 0 */{hours} * * *"
    return f"0 {remainder} */{hours} * * *"


def notify_schedule(period: str, notify_time: str = "09:00") -> str:
    """Cron expression for the notification digest.

    ``hourly`` fires at the top of every hour; ``daily`` fires once a day
    at ``notify_time`` (``HH:MM``).

    Raises:
        InvalidInterval: Unknown period or malformed notify time.
    """
    if period == "hourly":
        return "0 0 * * * *"
    if period == "daily":
        match = _NOTIFY_TIME_RE.match(notify_time.strip())
        if not match:
            raise InvalidInterval(f"notify time must be HH:MM, got {notify_time!r}")
        hour, minute = int(match.group(1)), int(match.group(2))
        return f"0 {minute} {hour} * * *"
    raise InvalidInterval(f"unknown notify period {period!r}")


def parse_schedule(expr: str) -> ScheduleFields:
    """Split a six-field cron expression into its named fields."""
    parts = expr.split()
    if len(parts) != 6:
        raise ValueError(f"expected 6 cron fields, got {len(parts)}: {expr!r}")
    return ScheduleFields(*parts)
