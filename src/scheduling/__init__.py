"""Scheduling: interval translation and periodic job wiring.

``CrawlScheduler`` lives in ``src.scheduling.scheduler``; it is not
re-exported here because the notification service imports the translator.
"""

from src.scheduling.config import SchedulerConfig
from src.scheduling.translator import (
    ScheduleFields,
    interval_to_schedule,
    notify_schedule,
    parse_schedule,
)

__all__ = [
    "ScheduleFields",
    "SchedulerConfig",
    "interval_to_schedule",
    "notify_schedule",
    "parse_schedule",
]
