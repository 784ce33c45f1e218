#!/usr/bin/env python3
"""
Lifecycle Message Builder - Subject/body text for lifecycle events.

Downstream messaging collaborators (email, in-app, chat) render these
fields; the engine itself never talks to a delivery channel.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class LifecycleMessage:
    subject: str
    body: str
    recipients: list
    event_type: str


_SUBJECTS = {
    'application_submitted': "New application received",
    'application_status_changed': "Application status updated",
    'application_accepted': "Congratulations, you've been hired!",
    'application_rejected': "Application update",
    'application_withdrawn': "Application withdrawn",
    'interview_scheduled': "Interview scheduled",
    'application_message': "New message on your application",
    'application_rated': "You received a new rating",
    'posting_status_changed': "Job posting status updated",
}


class LifecycleMessageBuilder:
    """Turns a serialised LifecycleEvent into a LifecycleMessage."""

    @staticmethod
    def build(event: Dict[str, Any]) -> LifecycleMessage:
        event_type = event.get('event_type', 'unknown')
        subject = _SUBJECTS.get(event_type, "Update on your activity")
        payload = event.get('payload') or {}

        lines = [f"{event.get('entity', 'item').capitalize()} {event.get('entity_id')}"]
        if event.get('from_status') and event.get('to_status') and event['from_status'] != event['to_status']:
            lines.append(f"Status: {event['from_status']} -> {event['to_status']}")
        elif event.get('to_status'):
            lines.append(f"Status: {event['to_status']}")

        if payload.get('reason') == 'position_filled':
            lines.append("The position has been filled.")
        if 'match_score' in payload:
            lines.append(f"Match score: {payload['match_score']}")
        if 'rating' in payload:
            lines.append(f"Rating: {payload['rating']}/5")
        if payload.get('content'):
            lines.append(f"Message: {payload['content']}")

        return LifecycleMessage(
            subject=subject,
            body="\n".join(lines),
            recipients=list(event.get('recipients') or []),
            event_type=event_type,
        )
