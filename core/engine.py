#!/usr/bin/env python3
"""
Matching Engine - Single entry point for the API layer.

Wires the scorer, recommendation pipeline and both lifecycles over one
unit-of-work factory and one notification sink.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from core.config_loader import AppConfig, LifecycleConfig, RecommendationConfig, ScorerConfig
from core.eligibility import DefaultEligibilityGate
from core.lifecycle import (
    AcceptResult, ApplicationLifecycle, PostingLifecycle, PostingLockRegistry, PostingOutcome,
)
from core.models import Application, PostingSnapshot, coerce_id, utcnow
from core.ports import EligibilityGate, NotificationSink
from core.recommendation import BulkScore, Recommendation, RecommendationEngine
from core.scorer import MatchBreakdown, MatchScorer
from database.uow import engine_uow

logger = logging.getLogger(__name__)


@dataclass
class ScoreResult:
    candidate_id: Any
    posting_id: Any
    score: int
    match_level: str
    breakdown: MatchBreakdown

    def to_dict(self) -> Dict[str, Any]:
        return {
            'candidate_id': str(self.candidate_id),
            'posting_id': str(self.posting_id),
            'score': self.score,
            'match_level': self.match_level,
            'breakdown': self.breakdown.to_dict(),
        }


class MatchingEngine:
    def __init__(
        self,
        scorer_config: Optional[ScorerConfig] = None,
        recommendation_config: Optional[RecommendationConfig] = None,
        lifecycle_config: Optional[LifecycleConfig] = None,
        uow_factory: Optional[Callable] = None,
        sink: Optional[NotificationSink] = None,
        gate: Optional[EligibilityGate] = None,
        clock: Callable = utcnow,
        read_timeout: Optional[float] = None
    ):
        lifecycle_config = lifecycle_config or LifecycleConfig()
        self._uow = uow_factory or engine_uow
        self.read_timeout = read_timeout

        self.scorer = MatchScorer(scorer_config)
        self.gate = gate or DefaultEligibilityGate(lifecycle_config, clock=clock)
        self.recommendations = RecommendationEngine(
            self.scorer, recommendation_config, uow_factory=self._uow, clock=clock, read_timeout=read_timeout,
        )
        self.postings = PostingLifecycle(uow_factory=self._uow, sink=sink, clock=clock)
        self.applications = ApplicationLifecycle(
            self.scorer,
            self.gate,
            self.postings,
            uow_factory=self._uow,
            sink=sink,
            locks=PostingLockRegistry(lifecycle_config.accept_lock_timeout_seconds),
            clock=clock,
        )

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        uow_factory: Optional[Callable] = None,
        sink: Optional[NotificationSink] = None
    ) -> "MatchingEngine":
        return cls(
            scorer_config=config.scorer,
            recommendation_config=config.recommendation,
            lifecycle_config=config.lifecycle,
            uow_factory=uow_factory,
            sink=sink,
            read_timeout=config.database.read_timeout_seconds,
        )

    # Scoring & recommendations

    def compute_score(self, candidate_id: Any, posting_id: Any, timeout: Optional[float] = None) -> ScoreResult:
        candidate_id = coerce_id(candidate_id, 'candidate')
        posting_id = coerce_id(posting_id, 'posting')
        timeout = timeout if timeout is not None else self.read_timeout
        with self._uow() as uow:
            candidate = uow.candidates.get_candidate(candidate_id, timeout=timeout)
            posting = uow.postings.get_posting(posting_id, timeout=timeout)

        breakdown = self.scorer.breakdown(candidate, posting)
        return ScoreResult(candidate_id, posting_id, breakdown.score, breakdown.match_level, breakdown)

    def recommend_jobs(
        self,
        candidate_id: Any,
        limit: Optional[int] = None,
        min_score: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> List[Recommendation]:
        return self.recommendations.jobs_for(candidate_id, limit, min_score, timeout)

    def recommend_candidates(
        self,
        posting_id: Any,
        limit: Optional[int] = None,
        min_score: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> List[Recommendation]:
        return self.recommendations.candidates_for(posting_id, limit, min_score, timeout)

    def bulk_score(self, candidate_id: Any, posting_ids: Iterable[Any], timeout: Optional[float] = None) -> List[BulkScore]:
        return self.recommendations.bulk_score(candidate_id, posting_ids, timeout)

    def posting_analytics(self, posting_id: Any, actor_id: Any = None) -> Dict[str, Any]:
        return self.recommendations.posting_analytics(posting_id, actor_id)

    # Applications

    def get_application(self, application_id: Any) -> Application:
        return self.applications.get(application_id)

    def submit_application(
        self,
        candidate_id: Any,
        posting_id: Any,
        proposal,
        applicant_notes: Optional[str] = None,
        source: str = "search"
    ) -> Application:
        return self.applications.submit(candidate_id, posting_id, proposal, applicant_notes, source)

    def transition_application(
        self,
        application_id: Any,
        target,
        actor_role,
        notes: Optional[str] = None,
        actor_id: Any = None
    ) -> Application:
        return self.applications.transition(application_id, target, actor_role, notes=notes, actor_id=actor_id)

    def accept_application(self, application_id: Any, contract_details=None, actor_id: Any = None) -> AcceptResult:
        return self.applications.accept(application_id, contract_details, actor_id=actor_id)

    def schedule_interview(
        self,
        application_id: Any,
        scheduled_at,
        meeting_link: str = "",
        notes: str = "",
        actor_id: Any = None
    ) -> Application:
        return self.applications.schedule_interview(
            application_id, scheduled_at, meeting_link, notes, actor_id=actor_id,
        )

    def withdraw_application(self, application_id: Any, actor_id: Any = None) -> Application:
        return self.applications.withdraw(application_id, actor_id=actor_id)

    def add_message(self, application_id: Any, author_role, content: str, actor_id: Any = None) -> Application:
        return self.applications.add_message(application_id, author_role, content, actor_id=actor_id)

    def rate_application(
        self,
        application_id: Any,
        rater_role,
        rating: int,
        review: str = "",
        actor_id: Any = None
    ) -> Application:
        return self.applications.rate(application_id, rater_role, rating, review, actor_id=actor_id)

    def recalculate_score(self, application_id: Any) -> Application:
        return self.applications.recalculate_score(application_id)

    # Postings

    def get_posting(self, posting_id: Any) -> PostingSnapshot:
        return self.postings.get(posting_id)

    def transition_posting(self, posting_id: Any, target, actor_id: Any, actor_role="employer") -> PostingSnapshot:
        return self.postings.transition(posting_id, target, actor_id, actor_role)

    def bulk_transition_postings(
        self,
        posting_ids: Iterable[Any],
        target,
        actor_id: Any,
        actor_role="employer"
    ) -> List[PostingOutcome]:
        return self.postings.bulk_transition(posting_ids, target, actor_id, actor_role)
