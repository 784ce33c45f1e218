#!/usr/bin/env python3
"""
Scoring Module - Candidate/posting compatibility.

Public API:
- MatchScorer: score() and breakdown() for one pair
- MatchBreakdown: per-factor decomposition
- match_level: score -> excellent/good/fair/poor

Modules:

- models.py: Data structures (FactorScore, BonusLine, MatchBreakdown)
- similarity.py: Fuzzy specialty/skill matching (containment, Levenshtein)
- factors.py: The five weighted factors
- bonuses.py: Additive bonuses
- service.py: MatchScorer orchestrator
"""

from core.scorer.models import MatchBreakdown, FactorScore, BonusLine
from core.scorer.service import MatchScorer, match_level

__all__ = ['MatchScorer', 'MatchBreakdown', 'FactorScore', 'BonusLine', 'match_level']
