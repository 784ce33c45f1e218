#!/usr/bin/env python3
"""
Engine value types.

Snapshots are frozen read views handed to the engine by the profile and
posting stores. Application/Posting views are detached copies of persisted
rows, safe to use after the unit of work that produced them has closed.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Type, TypeVar

from core.exceptions import ValidationError


class UserRole(Enum):
    JUNIOR = "junior"
    SENIOR = "senior"
    ADMIN = "admin"


class AccountStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING = "pending"


class VerificationTier(Enum):
    UNVERIFIED = "unverified"
    PARTIAL = "partial"
    VERIFIED = "verified"


class RemotePreference(Enum):
    REMOTE_ONLY = "remote_only"
    FLEXIBLE = "flexible"
    ONSITE_ONLY = "onsite_only"


class LocationPreference(Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"


class BudgetType(Enum):
    FIXED = "fixed"
    HOURLY = "hourly"
    MILESTONE = "milestone"


class Visibility(Enum):
    PUBLIC = "public"
    VERIFIED_ONLY = "verified_only"
    INVITATION_ONLY = "invitation_only"


class ExperienceLevel(Enum):
    """Experience tiers, ordered from least to most senior."""
    RESIDENT = "resident"
    JUNIOR = "junior"
    MID_LEVEL = "mid-level"
    SENIOR = "senior"
    ATTENDING = "attending"

    @property
    def ordinal(self) -> int:
        return _LEVEL_ORDER.index(self) + 1


_LEVEL_ORDER = list(ExperienceLevel)


class PostingStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"
    COMPLETED = "completed"


class ApplicationStatus(Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    SHORTLISTED = "shortlisted"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    COMPLETED = "completed"


# Applications still competing for a posting; these are rejected by the accept-cascade.
OPEN_APPLICATION_STATUSES = frozenset({
    ApplicationStatus.SUBMITTED,
    ApplicationStatus.UNDER_REVIEW,
    ApplicationStatus.SHORTLISTED,
    ApplicationStatus.INTERVIEW_SCHEDULED,
})


class ActorRole(Enum):
    APPLICANT = "applicant"
    EMPLOYER = "employer"
    SYSTEM = "system"
    ADMIN = "admin"


class CommunicationType(Enum):
    STATUS_CHANGE = "status_change"
    MESSAGE = "message"
    INTERVIEW = "interview"


E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: Type[E], value: Any) -> Optional[E]:
    """Return the enum member for ``value``, or None if absent/unknown."""
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return None


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def coerce_id(value: Any, what: str) -> uuid.UUID:
    """Parse a candidate/posting/application id handed in by the API layer."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {what} id: {value!r}") from None


@dataclass(frozen=True)
class JobPreferences:
    preferred_categories: FrozenSet[str] = frozenset()
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    remote_preference: Optional[RemotePreference] = RemotePreference.REMOTE_ONLY


@dataclass(frozen=True)
class CandidateProfile:
    """Read-only candidate snapshot used for scoring and eligibility."""
    id: Any
    primary_specialty: str = ""
    subspecialties: FrozenSet[str] = frozenset()
    years_of_experience: Optional[int] = None
    skills: FrozenSet[str] = frozenset()
    verification: Optional[VerificationTier] = None
    rating: float = 0.0
    review_count: int = 0
    preferences: JobPreferences = field(default_factory=JobPreferences)
    seeking_opportunities: bool = False
    account_status: Optional[AccountStatus] = None
    role: Optional[UserRole] = None
    has_active_subscription: bool = False
    created_at: Optional[datetime] = None

    @property
    def is_verified(self) -> bool:
        return self.verification is VerificationTier.VERIFIED


@dataclass(frozen=True)
class PostingSnapshot:
    """Read-only posting snapshot used for scoring and eligibility."""
    id: Any
    owner_id: Any = None
    title: str = ""
    specialty: str = ""
    sub_specialties: FrozenSet[str] = frozenset()
    required_skills: FrozenSet[str] = frozenset()
    minimum_years: Optional[int] = None
    experience_level: Optional[ExperienceLevel] = None
    budget_amount: Optional[float] = None
    budget_type: Optional[BudgetType] = None
    location_preference: Optional[LocationPreference] = None
    category: Optional[str] = None
    visibility: Visibility = Visibility.PUBLIC
    status: PostingStatus = PostingStatus.DRAFT
    deadline: Optional[datetime] = None
    created_at: Optional[datetime] = None
    version: int = 0

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.deadline is None:
            return False
        return ensure_utc(self.deadline) <= (now or utcnow())

    def is_open(self, now: Optional[datetime] = None) -> bool:
        return self.status is PostingStatus.ACTIVE and not self.is_expired(now)


@dataclass(frozen=True)
class CommunicationEntry:
    type: CommunicationType
    content: str
    author_role: ActorRole
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'content': self.content,
            'from': self.author_role.value,
            'date': self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommunicationEntry":
        return cls(
            type=CommunicationType(data['type']),
            content=data.get('content', ''),
            author_role=ActorRole(data['from']),
            timestamp=ensure_utc(datetime.fromisoformat(data['date'])),
        )


@dataclass(frozen=True)
class Feedback:
    employer_rating: Optional[int] = None
    employer_review: str = ""
    applicant_rating: Optional[int] = None
    applicant_review: str = ""


@dataclass(frozen=True)
class Application:
    """Detached view of a persisted application."""
    id: Any
    candidate_id: Any
    posting_id: Any
    status: ApplicationStatus
    match_score: int
    proposal: Dict[str, Any] = field(default_factory=dict)
    applicant_notes: Optional[str] = None
    employer_notes: Optional[str] = None
    source: str = "search"
    feedback: Feedback = field(default_factory=Feedback)
    communication_log: List[CommunicationEntry] = field(default_factory=list)
    interview_details: Optional[Dict[str, Any]] = None
    contract_details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': str(self.id),
            'candidate_id': str(self.candidate_id),
            'posting_id': str(self.posting_id),
            'status': self.status.value,
            'match_score': self.match_score,
            'proposal': dict(self.proposal),
            'applicant_notes': self.applicant_notes,
            'employer_notes': self.employer_notes,
            'source': self.source,
            'feedback': {
                'employer_rating': self.feedback.employer_rating,
                'employer_review': self.feedback.employer_review,
                'applicant_rating': self.feedback.applicant_rating,
                'applicant_review': self.feedback.applicant_review,
            },
            'communication_log': [entry.to_dict() for entry in self.communication_log],
            'interview_details': self.interview_details,
            'contract_details': self.contract_details,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def employer_view(self) -> Dict[str, Any]:
        """Serialised application as seen by the posting owner."""
        data = self.to_dict()
        data.pop('applicant_notes', None)
        return data

    def applicant_view(self) -> Dict[str, Any]:
        """Serialised application as seen by the applicant."""
        data = self.to_dict()
        data.pop('employer_notes', None)
        return data


@dataclass(frozen=True)
class LifecycleEvent:
    """Event handed to the notification sink after a committed change."""
    event_type: str
    entity: str
    entity_id: Any
    posting_id: Any
    from_status: Optional[str] = None
    to_status: Optional[str] = None
    actor_role: Optional[str] = None
    recipients: List[Any] = field(default_factory=list)
    payload: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_type': self.event_type,
            'entity': self.entity,
            'entity_id': str(self.entity_id),
            'posting_id': str(self.posting_id),
            'from_status': self.from_status,
            'to_status': self.to_status,
            'actor_role': self.actor_role,
            'recipients': [str(r) for r in self.recipients],
            'payload': self.payload,
            'occurred_at': self.occurred_at.isoformat(),
        }
