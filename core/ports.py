"""
Collaborator Interfaces - Abstract ports consumed by the engine.

Profile/posting storage, eligibility rules and notification delivery live
outside the engine. Concrete implementations are in ``database.repositories``
(SQL-backed stores), ``core.eligibility`` (default gate) and
``notification.sink`` (RQ-backed sink).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from core.models import CandidateProfile, LifecycleEvent, PostingSnapshot


@dataclass
class EligibilityResult:
    ok: bool
    reasons: List[str] = field(default_factory=list)


class ProfileStore(ABC):
    """
    Read-only access to candidate profiles. The engine never writes profiles.
    """

    @abstractmethod
    def get_candidate(self, candidate_id: Any, timeout: Optional[float] = None) -> CandidateProfile:
        """
        Return the candidate snapshot.

        Raises:
            NotFound: unknown id
            UpstreamUnavailable: store failed or exceeded ``timeout``
        """
        pass

    @abstractmethod
    def list_seeking_candidates(self, timeout: Optional[float] = None) -> List[CandidateProfile]:
        """
        Return candidates seeking opportunities with an active account,
        in creation order.
        """
        pass


class PostingStore(ABC):
    """
    Read access to posting snapshots. Status writes belong to PostingLifecycle.
    """

    @abstractmethod
    def get_posting(self, posting_id: Any, timeout: Optional[float] = None) -> PostingSnapshot:
        """
        Return the posting snapshot.

        Raises:
            NotFound: unknown id
            UpstreamUnavailable: store failed or exceeded ``timeout``
        """
        pass

    @abstractmethod
    def list_open_postings(self, now: datetime, timeout: Optional[float] = None) -> List[PostingSnapshot]:
        """Return active postings whose deadline is after ``now``, in creation order."""
        pass


class EligibilityGate(ABC):
    """
    Decides whether a candidate may apply to a posting at all.
    """

    @abstractmethod
    def can_apply(self, candidate: CandidateProfile, posting: PostingSnapshot, applications_today: int = 0) -> EligibilityResult:
        """
        Check role, account, verification, deadline and daily quota.

        Args:
            candidate: Candidate snapshot
            posting: Posting snapshot
            applications_today: Non-draft applications the candidate submitted today
        """
        pass


class NotificationSink(ABC):
    """
    Fire-and-forget receiver of lifecycle events.
    """

    @abstractmethod
    def on_transition(self, event: LifecycleEvent) -> None:
        """Accept an event for downstream delivery. Must not block on delivery."""
        pass
