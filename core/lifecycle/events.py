import logging
from typing import Any, Iterable, Optional

from core.models import ActorRole, LifecycleEvent
from core.ports import NotificationSink

logger = logging.getLogger(__name__)


def application_event(
    event_type: str,
    record,
    owner_id: Any,
    from_status: Optional[str],
    actor_role: ActorRole,
    **payload: Any
) -> LifecycleEvent:
    return LifecycleEvent(
        event_type=event_type,
        entity='application',
        entity_id=record.id,
        posting_id=record.posting_id,
        from_status=from_status,
        to_status=record.status,
        actor_role=actor_role.value,
        recipients=[record.candidate_id, owner_id],
        payload=payload,
    )


def posting_event(
    event_type: str,
    record,
    from_status: Optional[str],
    actor_role: ActorRole,
    **payload: Any
) -> LifecycleEvent:
    return LifecycleEvent(
        event_type=event_type,
        entity='posting',
        entity_id=record.id,
        posting_id=record.id,
        from_status=from_status,
        to_status=record.status,
        actor_role=actor_role.value,
        recipients=[record.owner_id],
        payload=payload,
    )


def emit_events(sink: Optional[NotificationSink], events: Iterable[LifecycleEvent]) -> None:
    """Hand committed events to the sink. Delivery failures never propagate."""
    if sink is None:
        return
    for event in events:
        try:
            sink.on_transition(event)
        except Exception as e:
            logger.error(f"Notification sink failed for {event.event_type} on {event.entity} {event.entity_id}: {e}")
