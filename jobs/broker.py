"""
Dramatiq broker configuration.

Redis-based message broker for ledger background jobs.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from ledger.config.operational_constants import (
    DEFAULT_MAX_RETRIES,
    RETRY_MAX_BACKOFF_MS,
    RETRY_MIN_BACKOFF_MS,
)
from ledger.config.settings import settings

redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password if settings.redis_password else None,
    db=settings.redis_db,
)

# ShutdownNotifications: lets workers stop between messages
# CurrentMessage: exposes the current message to actors
# Retries: exponential backoff for failed jobs
redis_broker.add_middleware(ShutdownNotifications())
redis_broker.add_middleware(CurrentMessage())
redis_broker.add_middleware(
    Retries(
        max_retries=DEFAULT_MAX_RETRIES,
        min_backoff=RETRY_MIN_BACKOFF_MS,
        max_backoff=RETRY_MAX_BACKOFF_MS,
    )
)

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(
    f"Dramatiq broker initialized: "
    f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
)
