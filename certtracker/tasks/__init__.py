from .cron import *

__all__ = [
    # Scheduled/Cron Tasks
    "daily_certification_notifier_task",
]
