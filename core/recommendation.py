#!/usr/bin/env python3
"""
Recommendation Engine - Ranked jobs for a candidate, ranked candidates for a posting.

Pipeline (both directions):
1. Candidate set: open postings / seeking candidates from the stores
2. Exclude pairs that already have a non-withdrawn application
3. Score every remaining pair with MatchScorer
4. Filter by min_score, sort by score desc (ties: created_at asc, then id)
5. Truncate to limit (capped at RecommendationConfig.max_limit)

Reads run in a short read-only unit of work; nothing here writes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from core.config_loader import RecommendationConfig
from core.exceptions import EngineException, Forbidden, ValidationError
from core.models import PostingStatus, coerce_id, utcnow
from core.scorer import MatchScorer, match_level
from database.uow import engine_uow

logger = logging.getLogger(__name__)

_EPOCH = datetime.min


@dataclass
class Recommendation:
    """One ranked result: a posting (for a candidate) or a candidate (for a posting)."""
    item: Any
    score: int
    match_level: str

    @property
    def id(self) -> Any:
        return self.item.id

    def to_dict(self) -> Dict[str, Any]:
        return {'id': str(self.item.id), 'score': self.score, 'match_level': self.match_level}


@dataclass
class BulkScore:
    """Score for one posting in a bulk request. ``error`` marks a degraded entry."""
    posting_id: Any
    score: int
    match_level: str
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'posting_id': str(self.posting_id),
            'score': self.score,
            'match_level': self.match_level,
            'error': self.error,
        }


def _rank_key(rec: Recommendation) -> Tuple:
    created = rec.item.created_at
    return (-rec.score, created.replace(tzinfo=None) if created else _EPOCH, str(rec.item.id))


class RecommendationEngine:
    def __init__(
        self,
        scorer: MatchScorer,
        config: Optional[RecommendationConfig] = None,
        uow_factory: Optional[Callable] = None,
        clock: Callable[[], datetime] = utcnow,
        read_timeout: Optional[float] = None
    ):
        self.scorer = scorer
        self.config = config or RecommendationConfig()
        self._uow = uow_factory or engine_uow
        self._clock = clock
        self.read_timeout = read_timeout

    def _resolve_limit(self, limit: Optional[int], default: int) -> int:
        if limit is None:
            return min(default, self.config.max_limit)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError(f"limit must be a positive integer, got {limit!r}")
        return min(limit, self.config.max_limit)

    def _resolve_min_score(self, min_score: Optional[int], default: int) -> int:
        if min_score is None:
            return default
        if isinstance(min_score, bool) or not isinstance(min_score, (int, float)) or not 0 <= min_score <= 100:
            raise ValidationError(f"min_score must be between 0 and 100, got {min_score!r}")
        return min_score

    def _rank(self, scored: Iterable[Recommendation], min_score: int, limit: int) -> List[Recommendation]:
        kept = [r for r in scored if r.score >= min_score]
        kept.sort(key=_rank_key)
        return kept[:limit]

    def jobs_for(
        self,
        candidate_id: Any,
        limit: Optional[int] = None,
        min_score: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> List[Recommendation]:
        """
        Rank open postings for a candidate.

        Raises:
            ValidationError: bad limit/min_score
            NotFound: unknown candidate
            UpstreamUnavailable: store read failed or timed out
        """
        candidate_id = coerce_id(candidate_id, 'candidate')
        limit = self._resolve_limit(limit, self.config.jobs_default_limit)
        min_score = self._resolve_min_score(min_score, self.config.jobs_default_min_score)
        timeout = timeout if timeout is not None else self.read_timeout
        now = self._clock()

        with self._uow() as uow:
            candidate = uow.candidates.get_candidate(candidate_id, timeout=timeout)
            postings = uow.postings.list_open_postings(now, timeout=timeout)
            linked = uow.applications.linked_posting_ids(candidate_id)

        scored = []
        for posting in postings:
            if posting.id in linked or not posting.is_open(now):
                continue
            score = self.scorer.score(candidate, posting)
            scored.append(Recommendation(posting, score, match_level(score)))

        ranked = self._rank(scored, min_score, limit)
        logger.info(
            f"Recommended {len(ranked)} of {len(postings)} open postings for candidate {candidate_id} "
            f"(min_score={min_score}, limit={limit})"
        )
        return ranked

    def candidates_for(
        self,
        posting_id: Any,
        limit: Optional[int] = None,
        min_score: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> List[Recommendation]:
        """Rank seeking candidates for a posting."""
        posting_id = coerce_id(posting_id, 'posting')
        limit = self._resolve_limit(limit, self.config.candidates_default_limit)
        min_score = self._resolve_min_score(min_score, self.config.candidates_default_min_score)
        timeout = timeout if timeout is not None else self.read_timeout

        with self._uow() as uow:
            posting = uow.postings.get_posting(posting_id, timeout=timeout)
            candidates = uow.candidates.list_seeking_candidates(timeout=timeout)
            linked = uow.applications.linked_candidate_ids(posting_id)

        scored = []
        for candidate in candidates:
            if candidate.id in linked:
                continue
            score = self.scorer.score(candidate, posting)
            scored.append(Recommendation(candidate, score, match_level(score)))

        ranked = self._rank(scored, min_score, limit)
        logger.info(
            f"Recommended {len(ranked)} of {len(candidates)} seeking candidates for posting {posting_id} "
            f"(min_score={min_score}, limit={limit})"
        )
        return ranked

    def bulk_score(self, candidate_id: Any, posting_ids: Iterable[Any], timeout: Optional[float] = None) -> List[BulkScore]:
        """
        Score one candidate against several postings.

        Only the first ``bulk_max_ids`` ids are considered; postings that are
        not active are skipped. A posting that cannot be read yields score 0
        with ``error`` set instead of failing the whole call. Results are
        ordered by score, highest first.
        """
        candidate_id = coerce_id(candidate_id, 'candidate')
        posting_ids = list(posting_ids or [])
        if not posting_ids:
            raise ValidationError("posting_ids must be a non-empty list")
        if len(posting_ids) > self.config.bulk_max_ids:
            logger.info(f"Bulk score truncated from {len(posting_ids)} to {self.config.bulk_max_ids} postings")
            posting_ids = posting_ids[:self.config.bulk_max_ids]
        timeout = timeout if timeout is not None else self.read_timeout

        with self._uow() as uow:
            candidate = uow.candidates.get_candidate(candidate_id, timeout=timeout)

        results = []
        for posting_id in posting_ids:
            try:
                key = coerce_id(posting_id, 'posting')
                with self._uow() as uow:
                    posting = uow.postings.get_posting(key, timeout=timeout)
            except EngineException as e:
                logger.warning(f"Bulk score: posting {posting_id} unavailable: {e}")
                results.append(BulkScore(posting_id, 0, match_level(0), error=e.code))
                continue

            if posting.status is not PostingStatus.ACTIVE:
                continue
            score = self.scorer.score(candidate, posting)
            results.append(BulkScore(posting.id, score, match_level(score)))

        results.sort(key=lambda r: -r.score)
        return results

    def posting_analytics(self, posting_id: Any, actor_id: Any = None) -> Dict[str, Any]:
        """
        Match-score statistics over all applications to a posting.

        When ``actor_id`` is given it must be the posting owner.
        """
        posting_id = coerce_id(posting_id, 'posting')
        with self._uow() as uow:
            posting = uow.postings.get_posting(posting_id, timeout=self.read_timeout)
            if actor_id is not None and str(actor_id) != str(posting.owner_id):
                raise Forbidden(f"Not authorized to view analytics for posting {posting_id}")
            records = uow.applications.list_for_posting(posting_id)
            rows = [(r.candidate_id, r.match_score or 0, r.status) for r in records]

        distribution = {'excellent': 0, 'good': 0, 'fair': 0, 'poor': 0}
        status_breakdown: Dict[str, int] = {}
        for _, score, status in rows:
            distribution[match_level(score)] += 1
            status_breakdown[status] = status_breakdown.get(status, 0) + 1

        total = len(rows)
        top = sorted(rows, key=lambda row: -row[1])[:5]
        return {
            'posting_id': str(posting_id),
            'total_applications': total,
            'average_match_score': (sum(score for _, score, _ in rows) / total) if total else 0,
            'match_score_distribution': distribution,
            'status_breakdown': status_breakdown,
            'top_matches': [
                {'candidate_id': str(candidate_id), 'match_score': score, 'status': status}
                for candidate_id, score, status in top
            ],
        }
