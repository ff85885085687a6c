"""
Pull mode - self-hosted long-poll loop над SQS

Сообщение удаляется из очереди только после успешной обработки.
Упавшее событие остаётся в очереди и вернётся после visibility timeout.
"""
import logging
import signal
import threading
from typing import Callable

from app.application.budget_spending import ProcessResult
from app.infrastructure.queue.sqs import QueueMessage
from app.worker.container import WorkerContainer

logger = logging.getLogger(__name__)


class LocalWorker:

    def __init__(
        self,
        handle_message: Callable[[str], ProcessResult],
        queue,
        max_messages: int = 10,
        wait_seconds: int = 10,
        backoff_seconds: float = 5.0,
    ):
        """
        Args:
            handle_message: обработка тела одного сообщения (transient ошибка - исключение)
            queue: очередь с методами receive(max_messages, wait_seconds) и delete(receipt_handle)
            max_messages: сколько сообщений забирать за один poll
            wait_seconds: long-poll ожидание
            backoff_seconds: пауза после неудачного receive
        """
        self.handle_message = handle_message
        self.queue = queue
        self.max_messages = max_messages
        self.wait_seconds = wait_seconds
        self.backoff_seconds = backoff_seconds
        self._stop = threading.Event()

    @classmethod
    def from_container(cls, container: WorkerContainer) -> "LocalWorker":
        settings = container.settings
        return cls(
            handle_message=container.handle_message,
            queue=container.queue,
            max_messages=settings.SQS_MAX_MESSAGES,
            wait_seconds=settings.SQS_WAIT_TIME_SECONDS,
            backoff_seconds=settings.SQS_RECEIVE_BACKOFF_SECONDS,
        )

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    def install_signal_handlers(self) -> None:
        """SIGINT/SIGTERM - дообработать текущий poll и выйти"""
        def _on_signal(signum, frame):
            logger.info("Received signal %d, stopping worker", signum)
            self.stop()

        signal.signal(signal.SIGINT, _on_signal)
        signal.signal(signal.SIGTERM, _on_signal)

    def run(self) -> None:
        logger.info("Local worker started (max_messages=%d, wait=%ds)", self.max_messages, self.wait_seconds)
        while not self._stop.is_set():
            self.poll_once()
        logger.info("Local worker stopped")

    def poll_once(self) -> int:
        """
        Один long-poll цикл

        Returns:
            Количество подтверждённых (удалённых) сообщений
        """
        try:
            messages = self.queue.receive(max_messages=self.max_messages, wait_seconds=self.wait_seconds)
        except Exception:
            logger.exception("Failed to receive messages, retrying in %.1fs", self.backoff_seconds)
            self._stop.wait(self.backoff_seconds)
            return 0

        acknowledged = 0
        for message in messages:
            if self._handle(message):
                acknowledged += 1
        return acknowledged

    def _handle(self, message: QueueMessage) -> bool:
        try:
            result = self.handle_message(message.body)
        except Exception:
            logger.exception("Failed to process message %s, leaving it for redelivery", message.message_id)
            return False

        logger.info("Message %s: %s", message.message_id, result.outcome.value)
        try:
            self.queue.delete(message.receipt_handle)
        except Exception:
            logger.exception("Failed to delete message %s", message.message_id)
            return False
        return True
