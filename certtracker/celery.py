from celery import Celery
from celery.signals import worker_shutdown

# Create Celery app
celery = Celery("certtracker")

# Load configuration from certtracker.config.celeryconfig module
celery.config_from_object("certtracker.config.celeryconfig")


@worker_shutdown.connect
def dispose_runtime_on_shutdown(**kwargs):
    from certtracker.runtime import dispose_worker_runtime

    dispose_worker_runtime()
