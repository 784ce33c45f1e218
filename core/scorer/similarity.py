#!/usr/bin/env python3
"""
String Similarity - Fuzzy matching of specialties and skills.

Skills and specialties are free text, so matching is case-insensitive and
tolerant of containment ("Echo" vs "Echocardiography") and small typos
(Levenshtein edit distance).
"""

from typing import Iterable, Optional


def normalize(value: Optional[str]) -> str:
    if not value:
        return ""
    return " ".join(str(value).split()).lower()


def normalized_set(values: Optional[Iterable[str]]) -> set:
    """Normalize a collection of strings, dropping blanks."""
    if not values:
        return set()
    return {n for n in (normalize(v) for v in values) if n}


def contains_either(a: str, b: str) -> bool:
    """True if either normalized string contains the other (both non-empty)."""
    if not a or not b:
        return False
    return a in b or b in a


def levenshtein_distance(s1: str, s2: str) -> int:
    """Classic edit distance (insert/delete/substitute, unit cost)."""
    if s1 == s2:
        return 0
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    # Keep the shorter string as the row to bound memory
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            if c1 == c2:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current

    return previous[-1]


def skill_matches(required: str, candidate: str, max_distance: int = 2) -> bool:
    """
    Check whether a candidate skill satisfies a required skill.

    Both arguments are expected normalized. A match is containment in either
    direction, or an edit distance of at most ``max_distance``.
    """
    if not required or not candidate:
        return False
    if contains_either(required, candidate):
        return True
    # Edit distance can't be within bound if lengths differ by more than it
    if abs(len(required) - len(candidate)) > max_distance:
        return False
    return levenshtein_distance(required, candidate) <= max_distance
