#!/usr/bin/env python3
"""
Notification Sinks - Where the engine hands committed lifecycle events.

QueueNotificationSink pushes each event onto a Redis Queue for the
notification worker; when the queue is disabled or Redis is unreachable it
falls back to processing the event synchronously (log only).

Usage:
    from notification.sink import QueueNotificationSink

    sink = QueueNotificationSink(redis_url="redis://localhost:6379/0")
    engine = MatchingEngine(sink=sink)
"""

import logging
import os
from typing import Any, Dict, List, Optional

from redis import Redis
from rq import Queue, Retry

from core.models import LifecycleEvent
from core.ports import NotificationSink
from notification.message_builder import LifecycleMessageBuilder

logger = logging.getLogger(__name__)


def process_lifecycle_event(event_data: Dict[str, Any]) -> str:
    """
    RQ task: render a lifecycle event for downstream delivery.

    Returns:
        The event type, as the job result
    """
    message = LifecycleMessageBuilder.build(event_data)
    logger.info(
        f"Lifecycle notification [{message.event_type}] to {', '.join(message.recipients) or 'nobody'}: "
        f"{message.subject} | {message.body.replace(chr(10), ' / ')}"
    )
    return message.event_type


class LoggingNotificationSink(NotificationSink):
    """Processes events in-line. Also keeps them in memory when ``record`` is set."""

    def __init__(self, record: bool = False):
        self.record = record
        self.events: List[LifecycleEvent] = []

    def on_transition(self, event: LifecycleEvent) -> None:
        if self.record:
            self.events.append(event)
        process_lifecycle_event(event.to_dict())


class QueueNotificationSink(NotificationSink):
    def __init__(
        self,
        redis_url: Optional[str] = None,
        queue_name: str = "lifecycle_events",
        use_async_queue: bool = True
    ):
        self.redis_url = redis_url or os.environ.get('REDIS_URL', 'redis://localhost:6379/0')
        self.queue_name = queue_name

        if not use_async_queue:
            logger.info("Async queue disabled via config. Using sync mode.")
            self.redis_conn = None
            self.queue = None
            self.async_mode = False
        else:
            try:
                self.redis_conn = Redis.from_url(self.redis_url)
                self.redis_conn.ping()
                self.queue = Queue(queue_name, connection=self.redis_conn)
                self.async_mode = True
                logger.info(f"Notification sink connected to Redis queue '{queue_name}'")
            except Exception as e:
                logger.error(f"Redis connection failed: {e}. Falling back to sync mode.")
                self.redis_conn = None
                self.queue = None
                self.async_mode = False

    def on_transition(self, event: LifecycleEvent) -> None:
        event_data = event.to_dict()
        if not self.async_mode:
            process_lifecycle_event(event_data)
            return

        job = self.queue.enqueue(
            process_lifecycle_event,
            event_data,
            job_timeout='1m',
            result_ttl=86400,
            retry=Retry(max=3, interval=[10, 30, 60]),
        )
        logger.debug(f"Queued {event.event_type} for {event.entity} {event.entity_id} as job {job.id}")


def build_sink(config) -> Optional[NotificationSink]:
    """Sink for a NotificationConfig; None when notifications are disabled."""
    if config is None or not config.enabled:
        return None
    return QueueNotificationSink(
        redis_url=config.redis_url,
        queue_name=config.queue_name,
        use_async_queue=config.use_async_queue,
    )
