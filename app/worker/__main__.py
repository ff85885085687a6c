"""
Budget worker entry point

    LAMBDA_LOCAL=true python -m app.worker   # long-poll SQS loop

Без LAMBDA_LOCAL worker работает в push-режиме, точка входа Lambda -
app.worker.lambda_handler.handler.
"""
import logging
import sys

from app.config import get_settings
from app.worker.container import build_container
from app.worker.local_worker import LocalWorker

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()

    if not settings.LAMBDA_LOCAL:
        logger.info("LAMBDA_LOCAL is not set: push mode is served by app.worker.lambda_handler.handler")
        return 0

    try:
        container = build_container(settings, with_queue=True)
    except Exception:
        logger.critical("Failed to initialize worker dependencies", exc_info=True)
        return 1

    worker = LocalWorker.from_container(container)
    worker.install_signal_handlers()
    logger.info("Starting local worker on %s", container.queue.queue_url)
    worker.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
