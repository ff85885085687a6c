"""
Tests for LocalWorker (pull mode)
"""
import logging
from unittest.mock import Mock, patch

from app.application.budget_spending import ProcessOutcome, ProcessResult
from app.config import Settings
from app.infrastructure.queue.sqs import QueueMessage
from app.worker.__main__ import main
from app.worker.container import WorkerContainer
from app.worker.local_worker import LocalWorker


def _message(n: int, body: str = "{}") -> QueueMessage:
    return QueueMessage(message_id=f"m-{n}", body=body, receipt_handle=f"rh-{n}")


class FakeQueue:
    def __init__(self, batches=None, fail_delete=False):
        self.batches = list(batches or [])
        self.deleted = []
        self.fail_delete = fail_delete
        self.on_receive = None

    def receive(self, max_messages=10, wait_seconds=10):
        if self.on_receive is not None:
            self.on_receive()
        batch = self.batches.pop(0) if self.batches else []
        if isinstance(batch, Exception):
            raise batch
        return batch

    def delete(self, receipt_handle):
        if self.fail_delete:
            raise ConnectionError("queue unavailable")
        self.deleted.append(receipt_handle)


def _result(outcome: ProcessOutcome) -> ProcessResult:
    return ProcessResult(outcome=outcome, transaction_id="txn-1")


def test_successful_and_malformed_messages_are_deleted():
    queue = FakeQueue(batches=[[_message(1), _message(2), _message(3)]])
    handle = Mock(side_effect=[
        _result(ProcessOutcome.APPLIED),
        _result(ProcessOutcome.MALFORMED),
        _result(ProcessOutcome.DUPLICATE),
    ])
    worker = LocalWorker(handle, queue)

    assert worker.poll_once() == 3
    assert queue.deleted == ["rh-1", "rh-2", "rh-3"]


def test_failed_message_stays_in_queue(caplog):
    queue = FakeQueue(batches=[[_message(1), _message(2)]])
    handle = Mock(side_effect=[RuntimeError("database unavailable"), _result(ProcessOutcome.APPLIED)])
    worker = LocalWorker(handle, queue)

    assert worker.poll_once() == 1
    assert queue.deleted == ["rh-2"]
    assert "Failed to process message m-1" in caplog.text


def test_delete_failure_is_contained(caplog):
    queue = FakeQueue(batches=[[_message(1)]], fail_delete=True)
    worker = LocalWorker(Mock(return_value=_result(ProcessOutcome.APPLIED)), queue)

    assert worker.poll_once() == 0
    assert "Failed to delete message m-1" in caplog.text


def test_receive_error_backs_off():
    queue = FakeQueue(batches=[ConnectionError("network down")])
    worker = LocalWorker(Mock(), queue, backoff_seconds=0.5)

    with patch.object(worker._stop, "wait") as wait:
        assert worker.poll_once() == 0

    wait.assert_called_once_with(0.5)


def test_run_exits_after_stop():
    queue = FakeQueue(batches=[[_message(1)], []])
    handle = Mock(return_value=_result(ProcessOutcome.APPLIED))
    worker = LocalWorker(handle, queue)
    receives = []

    def stop_on_second_poll():
        receives.append(1)
        if len(receives) == 2:
            worker.stop()

    queue.on_receive = stop_on_second_poll
    worker.run()

    assert worker.stopped
    assert len(receives) == 2
    assert queue.deleted == ["rh-1"]


def test_from_container_uses_settings():
    settings = Settings(SQS_MAX_MESSAGES=5, SQS_WAIT_TIME_SECONDS=20, SQS_RECEIVE_BACKOFF_SECONDS=1.5)
    queue = FakeQueue()
    container = WorkerContainer(settings=settings, session_factory=Mock(), queue=queue)

    worker = LocalWorker.from_container(container)

    assert (worker.max_messages, worker.wait_seconds, worker.backoff_seconds) == (5, 20, 1.5)
    assert worker.queue is queue


# === Entry point ===

def test_main_without_local_flag_exits_cleanly():
    with patch("app.worker.__main__.get_settings", return_value=Settings(LAMBDA_LOCAL=False)), \
            patch("app.worker.__main__.build_container") as build:
        assert main() == 0

    build.assert_not_called()


def test_main_startup_failure_is_fatal(caplog):
    with patch("app.worker.__main__.get_settings", return_value=Settings(LAMBDA_LOCAL=True)), \
            patch("app.worker.__main__.build_container", side_effect=RuntimeError("db down")):
        with caplog.at_level(logging.CRITICAL):
            assert main() == 1

    assert "Failed to initialize worker dependencies" in caplog.text


def test_main_runs_local_worker():
    container = Mock()
    with patch("app.worker.__main__.get_settings", return_value=Settings(LAMBDA_LOCAL=True)), \
            patch("app.worker.__main__.build_container", return_value=container) as build, \
            patch("app.worker.__main__.LocalWorker") as worker_cls:
        assert main() == 0

    build.assert_called_once()
    assert build.call_args.kwargs == {"with_queue": True}
    worker_cls.from_container.assert_called_once_with(container)
    worker_cls.from_container.return_value.run.assert_called_once()
