import asyncio
import json
import logging
import signal
import sys
from typing import Dict, Optional

from .config import settings
from .event_processor import EventProcessor
from .firebase import get_firebase_app
from .log import setup_logging
from .profile_store import ProfileStore
from .push_gateway import PushGateway
from .schemas import PipelineResult
from .sqs_client import SQSClient

logger = logging.getLogger(__name__)


class NotificationConsumer:
    """Consumes message-created events from SQS and sends notifications."""

    def __init__(self,
                 sqs_client: Optional[SQSClient] = None,
                 event_processor: Optional[EventProcessor] = None):
        """Initialize the notification consumer service."""
        self.sqs_client = sqs_client or SQSClient()
        self.event_processor = event_processor or EventProcessor(
            profile_store=ProfileStore(),
            push_gateway=PushGateway(get_firebase_app()),
        )
        self.running = True
        logger.info("Notification Consumer Service initialized")

    def stop(self, *args) -> None:
        """Finish the current batch and stop polling."""
        logger.info("Shutdown signal received, finishing current batch...")
        self.running = False

    async def handle_message(self, message: Dict) -> Optional[PipelineResult]:
        """
        Process one SQS message and delete it from the queue.

        Messages are always deleted: delivery is best-effort and never retried.

        Args:
            message: SQS message dictionary

        Returns:
            PipelineResult, or None if the body could not be processed
        """
        result = None
        try:
            try:
                body = json.loads(message.get('Body') or '{}')
            except json.JSONDecodeError as e:
                logger.error(f"Invalid JSON in message body: {str(e)}")
                body = None

            if isinstance(body, dict):
                result = await self.event_processor.process_record(
                    body.get('data'),
                    params=body.get('params'),
                    document_path=body.get('document'),
                )
                logger.info(f"Event {message.get('MessageId')} finished with status {result.status.value}")
            elif body is not None:
                logger.error("Message body is not a JSON object")
        except Exception:
            logger.exception(f"Error processing message {message.get('MessageId')}")
        finally:
            receipt_handle = message.get('ReceiptHandle')
            if receipt_handle:
                await asyncio.to_thread(self.sqs_client.delete_message, receipt_handle)
            else:
                logger.error("Missing receipt handle in SQS message")

        return result

    async def process_messages(self, max_messages: Optional[int] = None) -> int:
        """
        Process a batch of messages from the queue.

        Args:
            max_messages: Maximum number of messages to process (1-10)

        Returns:
            Number of messages received
        """
        messages = await asyncio.to_thread(
            self.sqs_client.receive_messages,
            max_messages=max_messages or settings.sqs_max_messages,
        )
        if not messages:
            return 0

        # Each event is an independent pipeline run
        await asyncio.gather(*(self.handle_message(message) for message in messages))
        return len(messages)

    async def run(self) -> int:
        """Poll the queue until stopped."""
        logger.info("Starting Notification Consumer Service")

        while self.running:
            try:
                await self.process_messages()
            except Exception as e:
                logger.error(f"Error in message processing loop: {str(e)}")
                await asyncio.sleep(5)  # Sleep before retrying after error

        logger.info("Notification Consumer Service shutdown gracefully")
        return 0


async def serve() -> int:
    consumer = NotificationConsumer()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, consumer.stop)

    return await consumer.run()


def main() -> int:
    """Main entry point for the application."""
    setup_logging()
    logger.info(f"Starting Notification Consumer Service in {settings.environment} environment")

    try:
        return asyncio.run(serve())
    except Exception as e:
        logger.critical(f"Fatal error in Notification Consumer Service: {str(e)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
