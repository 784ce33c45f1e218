"""
Transition tables for the application and posting state machines.

Each machine is a mapping from current status to the set of legal next
statuses. All status changes in the engine go through the validators below.
"""
from typing import Dict, FrozenSet

from core.exceptions import Forbidden, IllegalTransition, ValidationError
from core.models import ActorRole, ApplicationStatus, PostingStatus, parse_enum

A = ApplicationStatus
P = PostingStatus

APPLICATION_TRANSITIONS: Dict[ApplicationStatus, FrozenSet[ApplicationStatus]] = {
    A.DRAFT: frozenset({A.SUBMITTED, A.WITHDRAWN}),
    A.SUBMITTED: frozenset({A.UNDER_REVIEW, A.REJECTED, A.WITHDRAWN}),
    A.UNDER_REVIEW: frozenset({A.SHORTLISTED, A.REJECTED}),
    A.SHORTLISTED: frozenset({A.INTERVIEW_SCHEDULED, A.ACCEPTED, A.REJECTED}),
    A.INTERVIEW_SCHEDULED: frozenset({A.ACCEPTED, A.REJECTED}),
    A.ACCEPTED: frozenset({A.COMPLETED}),
    A.REJECTED: frozenset(),
    A.WITHDRAWN: frozenset(),
    A.COMPLETED: frozenset(),
}

# Who may move an application INTO each status.
# SYSTEM only rejects, and only as part of the accept-cascade.
APPLICATION_AUTHORITY: Dict[ApplicationStatus, FrozenSet[ActorRole]] = {
    A.SUBMITTED: frozenset({ActorRole.APPLICANT}),
    A.WITHDRAWN: frozenset({ActorRole.APPLICANT}),
    A.UNDER_REVIEW: frozenset({ActorRole.EMPLOYER}),
    A.SHORTLISTED: frozenset({ActorRole.EMPLOYER}),
    A.INTERVIEW_SCHEDULED: frozenset({ActorRole.EMPLOYER}),
    A.ACCEPTED: frozenset({ActorRole.EMPLOYER}),
    A.COMPLETED: frozenset({ActorRole.EMPLOYER}),
    A.REJECTED: frozenset({ActorRole.EMPLOYER, ActorRole.SYSTEM}),
    A.DRAFT: frozenset(),
}

POSTING_TRANSITIONS: Dict[PostingStatus, FrozenSet[PostingStatus]] = {
    P.DRAFT: frozenset({P.ACTIVE, P.CLOSED}),
    P.ACTIVE: frozenset({P.PAUSED, P.CLOSED, P.COMPLETED}),
    P.PAUSED: frozenset({P.ACTIVE, P.CLOSED}),
    P.CLOSED: frozenset({P.ACTIVE}),
    P.COMPLETED: frozenset(),
}

# Administrative override used only by the accept-cascade: force CLOSED.
POSTING_FORCE_CLOSE_FROM: FrozenSet[PostingStatus] = frozenset({P.DRAFT, P.ACTIVE, P.PAUSED, P.CLOSED})

# Targets allowed in bulk posting updates
POSTING_BULK_TARGETS: FrozenSet[PostingStatus] = frozenset({P.ACTIVE, P.PAUSED, P.CLOSED})


def is_terminal(status: ApplicationStatus) -> bool:
    return not APPLICATION_TRANSITIONS[status]


def allowed_application_targets(current: ApplicationStatus) -> FrozenSet[ApplicationStatus]:
    return APPLICATION_TRANSITIONS.get(current, frozenset())


def allowed_posting_targets(current: PostingStatus) -> FrozenSet[PostingStatus]:
    return POSTING_TRANSITIONS.get(current, frozenset())


def validate_application_transition(
    current: ApplicationStatus,
    target: ApplicationStatus,
    actor_role: ActorRole
) -> None:
    """
    Check authority first, then that the edge exists.

    Raises:
        Forbidden: actor_role may not move an application into ``target``
        IllegalTransition: ``current -> target`` is not in the table
    """
    if actor_role not in APPLICATION_AUTHORITY.get(target, frozenset()):
        raise Forbidden(f"{actor_role.value} may not move an application to {target.value}")

    allowed = allowed_application_targets(current)
    if target not in allowed:
        raise IllegalTransition('application', current, target, allowed)


def validate_posting_transition(current: PostingStatus, target: PostingStatus) -> None:
    """
    Raises:
        IllegalTransition: ``current -> target`` is not in the table
    """
    allowed = allowed_posting_targets(current)
    if target not in allowed:
        raise IllegalTransition('posting', current, target, allowed)


def validate_force_close(current: PostingStatus) -> None:
    """Validate the accept-cascade's override edge ``current -> closed``."""
    if current not in POSTING_FORCE_CLOSE_FROM:
        raise IllegalTransition('posting', current, P.CLOSED, POSTING_FORCE_CLOSE_FROM)


def coerce_enum(enum_cls, value, what: str):
    """Parse a status/role from API input; unknown values are a ValidationError."""
    member = parse_enum(enum_cls, value)
    if member is None:
        raise ValidationError(f"Unknown {what}: {value!r}")
    return member
