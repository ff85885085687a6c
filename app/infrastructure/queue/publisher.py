"""
TransactionEventPublisher - публикация TransactionRecorded в очередь

Публикация best-effort: запись транзакции не ждёт отправки и не
откатывается при её ошибке. Ошибка логируется и уходит в on_error.

Producer-side API: сервис записи транзакций (вне этого репозитория)
собирает publisher поверх SqsQueue и после commit транзакции вызывает

    publisher.publish(TransactionRecordedEvent.from_transaction(...))

Budget worker читает эти сообщения через app.worker.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from app.domain.transaction_event import EVENT_TYPE_TRANSACTION_RECORDED, TransactionRecordedEvent

logger = logging.getLogger(__name__)


ErrorHandler = Callable[[TransactionRecordedEvent, BaseException], None]


class TransactionEventPublisher:
    """
    Non-blocking publisher поверх очереди с методом send(body, attributes)

    Usage:
        publisher = TransactionEventPublisher(SqsQueue(client, queue_url))
        publisher.publish(TransactionRecordedEvent.from_transaction(...))
        ...
        publisher.close()
    """

    def __init__(self, queue, on_error: Optional[ErrorHandler] = None, max_workers: int = 1):
        self.queue = queue
        self.on_error = on_error
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="txn-publisher")

    def publish(self, event: TransactionRecordedEvent) -> Future:
        """
        Поставить отправку в фон и сразу вернуться

        Returns:
            Future с MessageId (или с исключением отправки)
        """
        future = self._executor.submit(self._send, event)
        future.add_done_callback(lambda f: self._report(event, f))
        return future

    def _send(self, event: TransactionRecordedEvent) -> str:
        message_id = self.queue.send(
            event.to_json(),
            attributes={"eventType": EVENT_TYPE_TRANSACTION_RECORDED},
        )
        logger.debug("Published transaction %s as message %s", event.transaction_id, message_id)
        return message_id

    def _report(self, event: TransactionRecordedEvent, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is None:
            return
        logger.error("Failed to publish transaction %s: %s", event.transaction_id, error)
        if self.on_error is not None:
            try:
                self.on_error(event, error)
            except Exception:
                logger.exception("Publish error handler failed for transaction %s", event.transaction_id)

    def close(self, wait: bool = True) -> None:
        """Дождаться отправки поставленных событий и остановить executor"""
        self._executor.shutdown(wait=wait)
