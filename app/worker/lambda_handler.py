"""
Push mode - AWS Lambda handler для SQS batch

Handler всегда возвращает успех по batch'у: идемпотентность на уровне
transaction_id, а не batch, поэтому ошибка одного события не должна
заставлять платформу передоставлять уже обработанные.
"""
import logging

from app.application.budget_spending import ProcessOutcome
from app.worker.container import get_container

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def handler(event: dict, context=None) -> dict:
    """
    Обработать SQS batch: {"Records": [{"messageId": ..., "body": ...}, ...]}

    Returns:
        Сводка {"processed", "duplicates", "malformed", "failed"}

    Raises:
        Exception: только если не удалось инициализировать зависимости
    """
    container = get_container()
    records = event.get("Records", [])
    logger.info("Processing SQS batch: %d record(s)", len(records))

    summary = {"processed": 0, "duplicates": 0, "malformed": 0, "failed": 0}
    for record in records:
        message_id = record.get("messageId")
        try:
            result = container.handle_message(record.get("body"))
        except Exception:
            summary["failed"] += 1
            logger.exception("Failed to process message %s", message_id)
            continue

        if result.outcome == ProcessOutcome.MALFORMED:
            summary["malformed"] += 1
        elif result.outcome == ProcessOutcome.DUPLICATE:
            summary["duplicates"] += 1
        else:
            summary["processed"] += 1
            logger.info("Transaction %s processed (%s)", result.transaction_id, result.outcome.value)

    logger.info("SQS batch done: %s", summary)
    return summary
