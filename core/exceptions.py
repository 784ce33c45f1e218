#!/usr/bin/env python3
"""
Engine exceptions.

Every failure the engine reports is one of the kinds below. Each kind has a
stable ``code`` so the API layer can map it to a status/message without
inspecting free text. None of them are retried inside the engine.
"""

from typing import Iterable, List, Optional


class EngineException(Exception):
    """Base exception for matching/lifecycle engine errors."""
    code = "engine_error"


class ValidationError(EngineException):
    """Raised when an operation receives malformed input."""
    code = "validation_error"


class NotFound(EngineException):
    """Raised when a candidate, posting or application id does not resolve."""
    code = "not_found"

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class NotEligible(EngineException):
    """Raised when the eligibility gate rejects an application."""
    code = "not_eligible"

    def __init__(self, reasons: Iterable[str]):
        self.reasons: List[str] = list(reasons)
        super().__init__("Not eligible to apply: " + "; ".join(self.reasons))


class DuplicateApplication(EngineException):
    """Raised when a non-withdrawn application already exists for the pair."""
    code = "duplicate_application"


class IllegalTransition(EngineException):
    """Raised when the requested edge is not in the transition table."""
    code = "illegal_transition"

    def __init__(self, machine: str, current, target, allowed: Optional[Iterable] = None):
        self.machine = machine
        self.current = current
        self.target = target
        self.allowed = sorted(getattr(s, 'value', s) for s in (allowed or ()))
        super().__init__(
            f"Cannot change {machine} status from {getattr(current, 'value', current)} "
            f"to {getattr(target, 'value', target)}"
        )


class Forbidden(EngineException):
    """Raised when the actor lacks authority for the requested edge."""
    code = "forbidden"


class AlreadyRated(EngineException):
    """Raised when a party tries to rate the same application twice."""
    code = "already_rated"


class ConcurrentAcceptConflict(EngineException):
    """Raised when another accept on the same posting won the race."""
    code = "concurrent_accept_conflict"


class UpstreamUnavailable(EngineException):
    """Raised when a collaborator (profile/posting store) times out or fails."""
    code = "upstream_unavailable"
