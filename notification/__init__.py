"""
Notification Module

Receives lifecycle events from the engine and queues them for downstream
messaging collaborators.

Usage:
    from notification import QueueNotificationSink

    sink = QueueNotificationSink(redis_url='redis://localhost:6379/0')
    sink.on_transition(event)
"""

from notification.sink import (
    LoggingNotificationSink,
    QueueNotificationSink,
    build_sink,
    process_lifecycle_event,
)
from notification.message_builder import LifecycleMessage, LifecycleMessageBuilder

__all__ = [
    'LoggingNotificationSink',
    'QueueNotificationSink',
    'build_sink',
    'process_lifecycle_event',
    'LifecycleMessage',
    'LifecycleMessageBuilder',
]
