#!/usr/bin/env python3
"""
Factor Calculations - The five weighted dimensions of the match score.

- Specialty alignment (40)
- Experience tier (25)
- Skills overlap (20)
- Minimum-years requirement (10)
- Location fit (5)

Every function is total: absent or malformed candidate-side input scores 0
for that factor instead of raising. An absent posting-side requirement is
treated as unconstrained.
"""

import math
from typing import Optional

from core.config_loader import ScorerConfig
from core.models import (
    CandidateProfile, PostingSnapshot, ExperienceLevel,
    LocationPreference, RemotePreference,
)
from core.scorer.models import FactorScore
from core.scorer.similarity import normalize, normalized_set, contains_either, skill_matches


def round_half_up(value: float) -> int:
    """Round .5 away from zero (Python's round() is banker's rounding)."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def experience_tier(years: Optional[int], config: ScorerConfig) -> Optional[ExperienceLevel]:
    """Map years of experience onto the ordinal tier scale."""
    if years is None or not isinstance(years, (int, float)) or years < 0:
        return None

    thresholds = config.tier_thresholds
    if years < thresholds['resident']:
        return ExperienceLevel.RESIDENT
    if years < thresholds['junior']:
        return ExperienceLevel.JUNIOR
    if years < thresholds['mid-level']:
        return ExperienceLevel.MID_LEVEL
    if years < thresholds['senior']:
        return ExperienceLevel.SENIOR
    return ExperienceLevel.ATTENDING


def specialty_factor(candidate: CandidateProfile, posting: PostingSnapshot, config: ScorerConfig) -> FactorScore:
    factor = FactorScore(name='specialty', weight=config.weight_specialty)

    candidate_specialty = normalize(candidate.primary_specialty)
    posting_specialty = normalize(posting.specialty)

    if candidate_specialty and candidate_specialty == posting_specialty:
        factor.score = config.weight_specialty
        factor.details = "Perfect specialty match"
        return factor

    for sub in normalized_set(candidate.subspecialties):
        if contains_either(sub, posting_specialty):
            factor.score = config.weight_specialty_subspecialty
            factor.details = f"Subspecialty match ({sub} ~ {posting_specialty})"
            return factor

    for sub in normalized_set(posting.sub_specialties):
        if contains_either(sub, candidate_specialty):
            factor.score = config.weight_specialty_posting_subspecialty
            factor.details = f"Specialty matches posting sub-specialty ({sub})"
            return factor

    factor.details = "No specialty match"
    return factor


def experience_factor(candidate: CandidateProfile, posting: PostingSnapshot, config: ScorerConfig) -> FactorScore:
    factor = FactorScore(name='experience', weight=config.weight_experience)

    candidate_tier = experience_tier(candidate.years_of_experience, config)
    if candidate_tier is None:
        factor.details = "Years of experience unknown"
        return factor

    required_tier = posting.experience_level or ExperienceLevel.RESIDENT
    gap = required_tier.ordinal - candidate_tier.ordinal

    if gap <= 0:
        factor.score = config.weight_experience
        factor.details = f"{candidate_tier.value} meets {required_tier.value} level"
    elif gap == 1:
        factor.score = config.weight_experience_one_below
        factor.details = f"{candidate_tier.value} is one level below {required_tier.value}"
    elif gap == 2:
        factor.score = config.weight_experience_two_below
        factor.details = f"{candidate_tier.value} is two levels below {required_tier.value}"
    else:
        factor.details = f"{candidate_tier.value} is well below {required_tier.value}"

    return factor


def skills_factor(candidate: CandidateProfile, posting: PostingSnapshot, config: ScorerConfig) -> FactorScore:
    factor = FactorScore(name='skills', weight=config.weight_skills)

    required = normalized_set(posting.required_skills)
    if not required:
        factor.score = config.skills_unconstrained_score
        factor.details = "No specific skills required"
        return factor

    candidate_skills = normalized_set(candidate.skills)
    if not candidate_skills:
        factor.details = f"0/{len(required)} skills match (no skills listed)"
        return factor

    matched = [
        skill for skill in required
        if any(skill_matches(skill, own, config.skill_max_edit_distance) for own in candidate_skills)
    ]

    factor.score = round_half_up(config.weight_skills * len(matched) / len(required))
    factor.details = f"{len(matched)}/{len(required)} skills match"
    return factor


def requirement_years_factor(candidate: CandidateProfile, posting: PostingSnapshot, config: ScorerConfig) -> FactorScore:
    factor = FactorScore(name='requirements', weight=config.weight_requirement_years)

    years = candidate.years_of_experience
    if years is None or not isinstance(years, (int, float)) or years < 0:
        factor.details = "Years of experience unknown"
        return factor

    minimum = posting.minimum_years
    if not minimum or minimum <= 0:
        factor.score = config.weight_requirement_years
        factor.details = f"{years} years (no minimum required)"
        return factor

    if years >= minimum:
        factor.score = config.weight_requirement_years
        factor.details = f"{years} years (meets {minimum} requirement)"
    else:
        ratio = min(1.0, max(0.0, years / minimum))
        factor.score = config.weight_requirement_years * ratio
        factor.details = f"{years} years (needs {minimum})"

    return factor


def location_factor(candidate: CandidateProfile, posting: PostingSnapshot, config: ScorerConfig) -> FactorScore:
    factor = FactorScore(name='location', weight=config.weight_location)

    preference = candidate.preferences.remote_preference
    location = posting.location_preference

    if location is LocationPreference.REMOTE:
        if preference in (RemotePreference.REMOTE_ONLY, RemotePreference.FLEXIBLE):
            factor.score = config.weight_location
            factor.details = "Remote posting suits remote preference"
        else:
            factor.score = config.location_remote_other
            factor.details = "Remote posting, candidate prefers onsite"
    elif location is LocationPreference.HYBRID:
        if preference is not RemotePreference.ONSITE_ONLY:
            factor.score = config.location_hybrid
            factor.details = "Hybrid posting compatible with preference"
        else:
            factor.details = "Hybrid posting, candidate is onsite only"
    elif location is LocationPreference.ONSITE:
        # Geographic matching is out of scope; onsite gets a fixed partial score
        factor.score = config.location_onsite
        factor.details = "Onsite posting (approximate)"
    else:
        factor.details = "Posting location unknown"

    return factor
