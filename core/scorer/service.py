#!/usr/bin/env python3
"""
Match Scorer - Weighted compatibility score for one (candidate, posting) pair.

score = clamp(round(specialty + experience + skills + requirements + location + bonuses), 0, 100)

``score`` and ``breakdown`` run the same factor functions, so the breakdown
always explains exactly the number ``score`` returned. Pure and
deterministic: no I/O, no suspension points.
"""

from typing import Optional
import logging

from core.config_loader import ScorerConfig
from core.models import CandidateProfile, PostingSnapshot
from core.scorer.models import MatchBreakdown
from core.scorer import factors
from core.scorer.bonuses import calculate_bonuses

logger = logging.getLogger(__name__)

MIN_SCORE = 0
MAX_SCORE = 100


def match_level(score: int) -> str:
    """Human label for a match score."""
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"


class MatchScorer:
    """
    Scores candidates against postings.

    Weights and bonus amounts come from ScorerConfig; the defaults are the
    production weights (40/25/20/10/5).
    """

    def __init__(self, config: Optional[ScorerConfig] = None):
        self.config = config or ScorerConfig()

    def score(self, candidate: CandidateProfile, posting: PostingSnapshot) -> int:
        return self.breakdown(candidate, posting).score

    def breakdown(self, candidate: CandidateProfile, posting: PostingSnapshot) -> MatchBreakdown:
        config = self.config

        result = MatchBreakdown(
            specialty=factors.specialty_factor(candidate, posting, config),
            experience=factors.experience_factor(candidate, posting, config),
            skills=factors.skills_factor(candidate, posting, config),
            requirements=factors.requirement_years_factor(candidate, posting, config),
            location=factors.location_factor(candidate, posting, config),
        )

        bonus_total, bonus_lines = calculate_bonuses(candidate, posting, config)
        result.bonuses = bonus_lines

        raw = factors.round_half_up(result.base_score + bonus_total)
        result.score = max(MIN_SCORE, min(MAX_SCORE, raw))
        result.match_level = match_level(result.score)

        logger.debug(
            f"Scored candidate {candidate.id} vs posting {posting.id}: "
            f"base={result.base_score:.1f}, bonus={bonus_total}, final={result.score}"
        )
        return result
