import uuid
from typing import Optional

from redis import Redis
from rq import Queue

from mediadash.config import settings


def get_queue() -> Queue:
    """Return the primary RQ queue using configured Redis connection."""
    connection = Redis.from_url(str(settings.redis_url))
    return Queue("downloads", connection=connection)


def enqueue_download(request_id: uuid.UUID, *, job_timeout: Optional[int]) -> None:
    """Hand a pending download request to the worker without waiting for it."""
    queue = get_queue()
    queue.enqueue(
        "mediadash.worker.process_download",
        request_id=str(request_id),
        job_timeout=job_timeout,
    )
