from .daily_certification_notifier import daily_certification_notifier_task

__all__ = [
    "daily_certification_notifier_task",
]
