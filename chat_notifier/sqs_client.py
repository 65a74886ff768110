import logging
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import ClientError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import settings

logger = logging.getLogger(__name__)


class SQSClient:
    """SQS client for the message-created queue."""

    def __init__(self, sqs=None):
        """Initialize SQS client."""
        self.sqs = sqs or boto3.client(
            'sqs',
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key
        )
        # Receive retry policy
        self.receive_retrying = Retrying(
            retry=retry_if_exception_type(ClientError),
            stop=stop_after_attempt(settings.sqs_receive_attempts),
            wait=wait_exponential(multiplier=1, max=10),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        logger.info("SQS client initialized")

    def _receive(self, queue_url: str, max_messages: int, wait_time: int, visibility_timeout: int) -> Dict:
        return self.receive_retrying(
            self.sqs.receive_message,
            QueueUrl=queue_url,
            MaxNumberOfMessages=max_messages,
            WaitTimeSeconds=wait_time,
            VisibilityTimeout=visibility_timeout,
            AttributeNames=['All'],
            MessageAttributeNames=['All']
        )

    def receive_messages(self,
                         queue_url: Optional[str] = None,
                         max_messages: Optional[int] = None,
                         wait_time: Optional[int] = None,
                         visibility_timeout: Optional[int] = None) -> List[Dict]:
        """
        Receive messages from an SQS queue.

        Args:
            queue_url: The SQS queue URL
            max_messages: Maximum number of messages to receive (1-10)
            wait_time: Long polling wait time in seconds (0-20)
            visibility_timeout: Visibility timeout in seconds

        Returns:
            List of message dictionaries
        """
        # Use defaults from settings if not specified
        queue_url = queue_url or settings.queue_url
        max_messages = max_messages or settings.sqs_max_messages
        wait_time = settings.sqs_wait_time if wait_time is None else wait_time
        visibility_timeout = visibility_timeout or settings.sqs_visibility_timeout

        try:
            logger.debug(f"Receiving messages from {queue_url}")
            response = self._receive(queue_url, max_messages, wait_time, visibility_timeout)
        except ClientError as e:
            logger.error(f"Error receiving messages from {queue_url}: {str(e)}")
            return []

        messages = response.get('Messages', [])
        if messages:
            logger.info(f"Received {len(messages)} messages from {queue_url}")
        return messages

    def delete_message(self, receipt_handle: str, queue_url: Optional[str] = None) -> bool:
        """
        Delete a message from an SQS queue.

        Args:
            receipt_handle: The receipt handle of the message to delete
            queue_url: The SQS queue URL

        Returns:
            True if successful, False otherwise
        """
        queue_url = queue_url or settings.queue_url
        try:
            self.sqs.delete_message(
                QueueUrl=queue_url,
                ReceiptHandle=receipt_handle
            )
            logger.debug("Message deleted successfully")
            return True
        except ClientError as e:
            logger.error(f"Error deleting message: {str(e)}")
            return False
