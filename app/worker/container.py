"""
Worker dependencies - собираются один раз при старте процесса
"""
import logging
import threading
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.orm import sessionmaker

from app.application.budget_spending import BudgetSpendingProcessor, ProcessResult
from app.config import Settings, get_settings
from app.infrastructure.db.session import create_session_factory, ping
from app.infrastructure.queue.sqs import SqsQueue, build_sqs_client, resolve_queue_url

logger = logging.getLogger(__name__)


@dataclass
class WorkerContainer:
    settings: Settings
    session_factory: sessionmaker
    queue: Optional[SqsQueue] = None

    def handle_message(self, body: str | bytes | None) -> ProcessResult:
        """Обработать одно сообщение в собственной session"""
        db = self.session_factory()
        try:
            return BudgetSpendingProcessor(db).handle_message(body)
        finally:
            db.close()


def build_container(settings: Settings, with_queue: bool = False) -> WorkerContainer:
    """
    Собрать зависимости worker'а

    Args:
        settings: настройки
        with_queue: pull-режим - нужен SQS client и URL очереди

    Raises:
        SQLAlchemyError: БД недоступна
        QueueNotConfiguredError: не задана очередь (только with_queue)
    """
    session_factory = create_session_factory(settings)
    ping(session_factory)
    logger.info("Database connection established")

    queue = None
    if with_queue:
        client = build_sqs_client(settings)
        queue = SqsQueue(client, resolve_queue_url(client, settings))

    logger.info("Worker dependencies initialized")
    return WorkerContainer(settings=settings, session_factory=session_factory, queue=queue)


_container: Optional[WorkerContainer] = None
_container_lock = threading.Lock()


def get_container() -> WorkerContainer:
    """
    Container для push-режима: инициализируется при первом вызове

    Lock защищает от двойной инициализации при параллельных вызовах
    на холодном старте; неудачная инициализация повторится в следующий раз.
    """
    global _container
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = build_container(get_settings())
    return _container
