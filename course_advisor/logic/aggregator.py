"""
Score Aggregator

Combines individual dimension scores into an overall match score.
Normalizes the raw sum against the ceiling attainable for the request.
"""

from typing import List, Dict

from .contracts import Criteria, Course, ScoredCourse
from .dimension_scorers import DIMENSION_SCORERS, score_default
from .constants import (
    BASE_SCORE_CEILING,
    FACULTY_MATCH_BONUS,
    TEACHER_MATCH_BONUS,
    DEFAULT_RATING_WEIGHT,
    DEFAULT_POPULARITY_WEIGHT,
)


def score_ceiling(criteria: Criteria) -> float:
    """Highest raw score any course can reach for these criteria."""
    ceiling = BASE_SCORE_CEILING
    if criteria.faculty:
        ceiling += FACULTY_MATCH_BONUS
    if criteria.teacher:
        ceiling += TEACHER_MATCH_BONUS
    return ceiling


def _to_match_score(raw: float, ceiling: float) -> float:
    return round(max(0.0, min(100.0, raw / ceiling * 100.0)), 1)


def aggregate_scores(criteria: Criteria, course: Course) -> ScoredCourse:
    """
    Compute all dimension scores and aggregate into a match score.

    Args:
        criteria: Merged search criteria
        course: Catalog entry to score

    Returns:
        ScoredCourse with the raw sum, the 0-100 match score and the breakdown
    """
    dimension_scores: Dict[str, float] = {}
    for dimension, scorer in DIMENSION_SCORERS:
        dimension_scores[dimension] = scorer(course, criteria)

    raw = sum(dimension_scores.values())

    return ScoredCourse(
        course=course,
        raw_score=raw,
        match_score=_to_match_score(raw, score_ceiling(criteria)),
        dimension_scores=dimension_scores,
    )


def aggregate_default(course: Course) -> ScoredCourse:
    """Score a course for the default (no criteria) popularity ranking."""
    raw = score_default(course)
    return ScoredCourse(
        course=course,
        raw_score=raw,
        match_score=_to_match_score(raw, DEFAULT_RATING_WEIGHT + DEFAULT_POPULARITY_WEIGHT),
        dimension_scores={"default": raw},
    )


def batch_aggregate(criteria: Criteria, courses: List[Course]) -> List[ScoredCourse]:
    return [aggregate_scores(criteria, c) for c in courses]
