"""
Dimension Scorers

Individual scoring functions for each match dimension.
Each scorer returns points on its own fixed scale; the five scales sum to 100.
All logic is deterministic - no AI/ML components.
"""

import math
from typing import Optional

from .contracts import Criteria, Course
from .constants import (
    Difficulty,
    FACULTY_MATCH_BONUS,
    TEACHER_MATCH_BONUS,
    KEYWORD_WEIGHT,
    KEYWORD_BASELINE,
    RATING_WEIGHT,
    RATING_BASELINE,
    POPULARITY_WEIGHT,
    POPULARITY_BASELINE,
    POPULARITY_REVIEW_CAP,
    DIFFICULTY_WEIGHT,
    DIFFICULTY_MID,
    DIFFICULTY_LOW,
    DEFAULT_RATING_WEIGHT,
    DEFAULT_RATING_BASELINE,
    DEFAULT_POPULARITY_WEIGHT,
    DEFAULT_POPULARITY_BASELINE,
)
from .filters import faculty_matches, teacher_matches, matched_keywords


def popularity_term(review_count: Optional[int]) -> float:
    """
    Log-compressed review volume in [0, 1]. Caps at 100 reviews so a handful
    of heavily reviewed courses cannot dominate.
    """
    count = min(review_count or 0, POPULARITY_REVIEW_CAP)
    return min(1.0, math.log10(count + 1) / 2)


def score_specificity(course: Course, criteria: Criteria) -> float:
    """+20 for a faculty match, +10 for a teacher match (0-30)."""
    score = 0.0
    if criteria.faculty and faculty_matches(course, criteria.faculty):
        score += FACULTY_MATCH_BONUS
    if criteria.teacher and teacher_matches(course, criteria.teacher):
        score += TEACHER_MATCH_BONUS
    return score


def score_keyword_coverage(course: Course, criteria: Criteria) -> float:
    """Share of requested keywords found in the course text (0-25)."""
    if not criteria.keywords:
        return KEYWORD_BASELINE
    hits = matched_keywords(course, criteria.keywords)
    return len(hits) / len(criteria.keywords) * KEYWORD_WEIGHT


def score_rating_quality(course: Course, criteria: Criteria) -> float:
    if course.average_rating is None:
        return RATING_BASELINE
    return course.average_rating / 5.0 * RATING_WEIGHT


def score_popularity(course: Course, criteria: Criteria) -> float:
    if not course.review_count:
        return POPULARITY_BASELINE
    return popularity_term(course.review_count) * POPULARITY_WEIGHT


def score_difficulty_alignment(course: Course, criteria: Criteria) -> float:
    """
    Uses the rating as a proxy for difficulty: highly rated courses read as
    approachable, mid-rated ones as demanding (0-10).
    """
    rating = course.average_rating
    if not criteria.difficulty or rating is None:
        return DIFFICULTY_MID

    if criteria.difficulty == Difficulty.EASY:
        if rating >= 4.0:
            return DIFFICULTY_WEIGHT
        if rating >= 3.5:
            return DIFFICULTY_MID
        return DIFFICULTY_LOW
    if criteria.difficulty == Difficulty.HARD:
        return DIFFICULTY_WEIGHT if 3.0 <= rating <= 4.0 else DIFFICULTY_MID
    if criteria.difficulty == Difficulty.MEDIUM:
        return DIFFICULTY_WEIGHT if 3.5 <= rating <= 4.5 else DIFFICULTY_MID

    return DIFFICULTY_MID


DIMENSION_SCORERS = [
    ("specificity", score_specificity),
    ("keyword_coverage", score_keyword_coverage),
    ("rating_quality", score_rating_quality),
    ("popularity", score_popularity),
    ("difficulty_alignment", score_difficulty_alignment),
]


def score_default(course: Course) -> float:
    """Rating-and-popularity score used when no criteria are set."""
    if course.average_rating is None:
        score = DEFAULT_RATING_BASELINE
    else:
        score = course.average_rating / 5.0 * DEFAULT_RATING_WEIGHT

    if not course.review_count:
        score += DEFAULT_POPULARITY_BASELINE
    else:
        score += popularity_term(course.review_count) * DEFAULT_POPULARITY_WEIGHT

    return score
