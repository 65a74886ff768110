import logging
from functools import lru_cache
from typing import Any, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Request, status
from pydantic import BaseModel

from . import __version__
from .event_processor import EventProcessor
from .firebase import get_firebase_app
from .log import setup_logging
from .profile_store import ProfileStore
from .push_gateway import PushGateway

logger = logging.getLogger(__name__)


class RecordCreatedNotification(BaseModel):
    """Record-created webhook body"""
    document: Optional[Any] = None
    params: Optional[Any] = None
    data: Optional[Any] = None


@lru_cache
def get_event_processor() -> EventProcessor:
    return EventProcessor(profile_store=ProfileStore(), push_gateway=PushGateway(get_firebase_app()))


async def run_pipeline(processor: EventProcessor, notification: RecordCreatedNotification) -> None:
    try:
        result = await processor.process_record(
            notification.data,
            params=notification.params,
            document_path=notification.document,
        )
        logger.info(f"Webhook event finished with status {result.status.value}")
    except Exception:
        logger.exception("Error processing webhook event")


app = FastAPI(title="Chat Notifier", version=__version__)


@app.on_event("startup")
async def startup_event():
    setup_logging()
    logger.info("Chat Notifier webhook started")


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}


@app.post("/events/message-created", status_code=status.HTTP_202_ACCEPTED, tags=["Events"])
async def message_created(
    request: Request,
    background_tasks: BackgroundTasks,
    processor: EventProcessor = Depends(get_event_processor),
):
    """
    Accept a chat message record-created notification.

    Always acknowledges; the notification is sent in the background.
    """
    try:
        body = await request.json()
    except ValueError as e:
        logger.error(f"Invalid JSON in webhook body: {str(e)}")
        return {"accepted": True}

    if not isinstance(body, dict):
        logger.error("Webhook body is not a JSON object")
        return {"accepted": True}

    notification = RecordCreatedNotification.model_validate(body)
    background_tasks.add_task(run_pipeline, processor, notification)
    return {"accepted": True}
