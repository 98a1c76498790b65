from celery.schedules import crontab
from .settings import settings

# Basic Celery Configuration
broker_url = f"redis://:{settings.REDIS_PASSWORD}@{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"
result_backend = f"redis://:{settings.REDIS_PASSWORD}@{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"

# Task Discovery
include = ["certtracker.tasks"]

# Timezone Configuration
timezone = settings.NOTIFICATION_TIMEZONE
enable_utc = True

# Task Result Configuration
result_expires = 3600

# Task Serialization
task_serializer = "json"
accept_content = ["json"]
result_serializer = "json"

# Task Execution Configuration
task_track_started = True
task_time_limit = 30 * 60  # 30 minutes
task_soft_time_limit = 25 * 60  # 25 minutes

# Worker Configuration
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 1000

# Task Retry Configuration
task_acks_late = False
task_default_retry_delay = 60  # 60 seconds
task_max_retries = 3

# All scheduled tasks use the notification timezone (Asia/Kolkata by default)
beat_schedule = {
    # Polls every few minutes; the scheduler itself decides whether today's
    # run is due (after the trigger hour, once per local day).
    "daily-certification-notifier": {
        "task": "certtracker.tasks.cron.daily_certification_notifier.daily_certification_notifier_task",
        "schedule": crontab(minute=f"*/{settings.NOTIFICATION_POLL_MINUTES}"),
        "args": ("daily_certification_notifier_cron",),
    },
}

# Default Queue
task_default_queue = "certtracker"

# Beat Scheduler Configuration
beat_schedule_filename = "tmp/celerybeat-schedule"
