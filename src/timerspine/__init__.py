"""timer-spine: schedule device state changes from cron expressions,
solar events and device state triggers."""

__version__ = "0.1.0"
