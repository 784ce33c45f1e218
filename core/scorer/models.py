#!/usr/bin/env python3
"""
Scoring Models - Data structures for scoring results.
"""

from typing import List, Dict, Any
from dataclasses import dataclass, field


@dataclass
class FactorScore:
    """One weighted dimension of the match score."""
    name: str
    weight: int
    score: float = 0.0
    details: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'weight': self.weight,
            'score': self.score,
            'details': self.details,
        }


@dataclass
class BonusLine:
    """An additive bonus applied after the weighted base."""
    name: str
    amount: int
    details: str = ""


@dataclass
class MatchBreakdown:
    """Per-factor decomposition of a match score. Transient, never persisted."""
    specialty: FactorScore
    experience: FactorScore
    skills: FactorScore
    requirements: FactorScore
    location: FactorScore
    bonuses: List[BonusLine] = field(default_factory=list)
    score: int = 0
    match_level: str = "poor"

    @property
    def factors(self) -> List[FactorScore]:
        return [self.specialty, self.experience, self.skills, self.requirements, self.location]

    @property
    def base_score(self) -> float:
        return sum(f.score for f in self.factors)

    @property
    def bonus_total(self) -> int:
        return sum(b.amount for b in self.bonuses)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {f.name: f.to_dict() for f in self.factors}
        data['bonuses'] = [
            {'name': b.name, 'amount': b.amount, 'details': b.details}
            for b in self.bonuses
        ]
        data['base_score'] = self.base_score
        data['bonus_total'] = self.bonus_total
        data['score'] = self.score
        data['match_level'] = self.match_level
        return data
