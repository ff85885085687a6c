"""
SQS queue client - тонкая обёртка над boto3

Используется publisher'ом (send) и local worker'ом (receive/delete).
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import boto3

from app.config import Settings

logger = logging.getLogger(__name__)


class QueueNotConfiguredError(RuntimeError):
    """Не задан ни SQS_QUEUE_URL, ни SQS_QUEUE_NAME"""
    pass


@dataclass(frozen=True)
class QueueMessage:
    message_id: str
    body: str
    receipt_handle: str


def build_sqs_client(settings: Settings):
    """
    Создать boto3 SQS client из настроек

    AWS_ENDPOINT_URL - для LocalStack; статические ключи только если
    заданы оба, иначе default credential chain.
    """
    kwargs = {"region_name": settings.AWS_REGION}
    if settings.AWS_ENDPOINT_URL:
        kwargs["endpoint_url"] = settings.AWS_ENDPOINT_URL
    if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
        kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
        kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY
        if settings.AWS_SESSION_TOKEN:
            kwargs["aws_session_token"] = settings.AWS_SESSION_TOKEN
    return boto3.client("sqs", **kwargs)


def resolve_queue_url(client, settings: Settings) -> str:
    """
    URL очереди: SQS_QUEUE_URL или GetQueueUrl по SQS_QUEUE_NAME

    Raises:
        QueueNotConfiguredError: если не задано ни то, ни другое
        botocore.exceptions.ClientError: если очередь с таким именем не найдена
    """
    if settings.SQS_QUEUE_URL:
        return settings.SQS_QUEUE_URL
    if not settings.SQS_QUEUE_NAME:
        raise QueueNotConfiguredError("sqs queue url not configured")

    response = client.get_queue_url(QueueName=settings.SQS_QUEUE_NAME)
    logger.info("Resolved queue %s -> %s", settings.SQS_QUEUE_NAME, response["QueueUrl"])
    return response["QueueUrl"]


class SqsQueue:

    def __init__(self, client, queue_url: str):
        self.client = client
        self.queue_url = queue_url

    def send(self, body: str, attributes: Optional[Dict[str, str]] = None) -> str:
        """
        Отправить сообщение

        Returns:
            MessageId
        """
        params = {"QueueUrl": self.queue_url, "MessageBody": body}
        if attributes:
            params["MessageAttributes"] = {
                key: {"DataType": "String", "StringValue": value}
                for key, value in attributes.items()
            }
        response = self.client.send_message(**params)
        return response["MessageId"]

    def receive(self, max_messages: int = 10, wait_seconds: int = 10) -> List[QueueMessage]:
        """
        Long-poll: ждать до wait_seconds, вернуть до max_messages сообщений

        SQS ограничивает batch десятью сообщениями и ожидание двадцатью секундами.
        """
        response = self.client.receive_message(
            QueueUrl=self.queue_url,
            MaxNumberOfMessages=max(1, min(max_messages, 10)),
            WaitTimeSeconds=max(0, min(wait_seconds, 20)),
        )
        return [
            QueueMessage(
                message_id=m["MessageId"],
                body=m.get("Body", ""),
                receipt_handle=m["ReceiptHandle"],
            )
            for m in response.get("Messages", [])
        ]

    def delete(self, receipt_handle: str) -> None:
        self.client.delete_message(QueueUrl=self.queue_url, ReceiptHandle=receipt_handle)
