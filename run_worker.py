"""Run background maintenance (refresh-token sweep) as a standalone process."""

import logging
import time

from dashboard_api.config import settings
from dashboard_api.services.maintenance import build_maintenance_tasks


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # The rate limiter is process-local, so only the API process can sweep it.
    tasks = build_maintenance_tasks()
    for task in tasks:
        task.run_once()
        task.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        for task in tasks:
            task.stop()


if __name__ == "__main__":
    main()
