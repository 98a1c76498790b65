"""
Starts the API, the Celery worker and Celery beat side by side.

The worker uses the solo pool: the daily notification scheduler keeps its
last-run marker in process memory, so exactly one worker process may own it.
"""

import multiprocessing
import signal
import subprocess
import sys
import time
from pathlib import Path
from typing import List

import redis

from certtracker.config.settings import settings
from certtracker.utils.logging import get_logger

logger = get_logger()

PROJECT_ROOT = str(Path(__file__).parent.parent)

SERVICES = {
    "API": [
        "uvicorn",
        "certtracker.main:app",
        "--host",
        "0.0.0.0",
        "--port",
        "8000",
    ],
    "Worker": [
        "celery",
        "-A",
        "certtracker.celery",
        "worker",
        "--loglevel=info",
        "--pool=solo",
    ],
    "Beat": ["celery", "-A", "certtracker.celery", "beat", "--loglevel=info"],
}


def setup_signal_handlers():
    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, initiating shutdown...")
        raise KeyboardInterrupt

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)


def run_service(name: str, args: List[str]):
    """Run one service module in a child interpreter until it exits"""
    try:
        logger.info(f"Starting {name} process")
        subprocess.run([sys.executable, "-m", *args], check=True, cwd=PROJECT_ROOT)
    except subprocess.CalledProcessError as e:
        logger.error(f"{name} process failed with return code {e.returncode}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info(f"{name} process interrupted")


def check_redis_connection() -> bool:
    """Celery needs the broker before anything else starts"""
    try:
        client = redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            password=settings.REDIS_PASSWORD or None,
            socket_connect_timeout=5,
        )
        client.ping()
        logger.info("Redis connection successful")
        return True
    except redis.RedisError as e:
        logger.error(f"Redis connection failed: {e}")
        return False


def terminate_processes(processes: List[multiprocessing.Process]):
    for process in processes:
        if process.is_alive():
            logger.info(f"Terminating {process.name} process")
            process.terminate()

    for process in processes:
        process.join(timeout=10)
        if process.is_alive():
            logger.warning(f"{process.name} did not terminate gracefully, killing")
            process.kill()
            process.join()


def main():
    multiprocessing.freeze_support()
    setup_signal_handlers()

    logger.info(f"Starting {settings.NAME} services (API + Celery worker + beat)")

    if not check_redis_connection():
        logger.error("Cannot start services without Redis connection")
        sys.exit(1)

    processes: List[multiprocessing.Process] = []
    try:
        for name, args in SERVICES.items():
            process = multiprocessing.Process(
                target=run_service, args=(name, args), name=name, daemon=False
            )
            process.start()
            processes.append(process)

        while True:
            for process in processes:
                if not process.is_alive():
                    logger.error(
                        f"{process.name} exited unexpectedly with code {process.exitcode}"
                    )
                    sys.exit(1)
            time.sleep(1)

    except KeyboardInterrupt:
        logger.info("Shutdown signal received")
    finally:
        terminate_processes(processes)
        logger.info("All services stopped")


if __name__ == "__main__":
    main()
