#!/usr/bin/env python3
"""
Bonus Calculations - Additive bonuses applied after the weighted base.

Includes bonuses for:
- Verified candidate
- High candidate rating
- Posting category among the candidate's preferred categories
- Posting budget inside the candidate's preferred range
"""

from typing import List, Tuple

from core.config_loader import ScorerConfig
from core.models import CandidateProfile, PostingSnapshot
from core.scorer.models import BonusLine
from core.scorer.similarity import normalize, normalized_set


def calculate_bonuses(
    candidate: CandidateProfile,
    posting: PostingSnapshot,
    config: ScorerConfig
) -> Tuple[int, List[BonusLine]]:
    """
    Calculate total bonus with detailed breakdown.

    Returns: (total_bonus, bonus_lines)
    """
    lines: List[BonusLine] = []

    if candidate.is_verified:
        lines.append(BonusLine('verified', config.bonus_verified, "Verified account"))

    rating = candidate.rating or 0.0
    if rating >= config.rating_high_threshold:
        lines.append(BonusLine('rating', config.bonus_rating_high, f"Rating {rating:.1f}"))
    elif rating >= config.rating_good_threshold:
        lines.append(BonusLine('rating', config.bonus_rating_good, f"Rating {rating:.1f}"))

    preferences = candidate.preferences
    category = normalize(posting.category)
    if category and category in normalized_set(preferences.preferred_categories):
        lines.append(BonusLine('category', config.bonus_preferred_category, f"Preferred category {posting.category}"))

    if _budget_in_range(posting.budget_amount, preferences.budget_min, preferences.budget_max):
        lines.append(BonusLine('budget', config.bonus_budget_in_range, f"Budget {posting.budget_amount} within preferred range"))

    return sum(line.amount for line in lines), lines


def _budget_in_range(amount, budget_min, budget_max) -> bool:
    # A range needs at least one bound; a missing bound is unconstrained on that side
    if amount is None or (budget_min is None and budget_max is None):
        return False
    if budget_min is not None and amount < budget_min:
        return False
    if budget_max is not None and amount > budget_max:
        return False
    return True
