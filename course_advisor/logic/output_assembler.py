"""
Output Assembler

Builds the user-facing explanation for each recommended course and the
follow-up hint listing criteria the user has not given yet.
"""

from typing import List

from .contracts import Criteria, ScoredCourse
from .constants import HIGH_RATING_THRESHOLD, POPULAR_REVIEW_THRESHOLD
from .filters import faculty_matches, teacher_matches, matched_keywords

GENERIC_REASON = "符合您的基本要求"
REASON_SEPARATOR = "，"

# (criteria attribute, how to ask for it)
FOLLOW_UP_DIMENSIONS = [
    ("faculty", "感兴趣的学院或专业方向"),
    ("course_type", "课程类型（必修/选修）"),
    ("keywords", "感兴趣的领域关键词"),
    ("teacher", "偏好的授课教师"),
]


def explain_recommendation(scored: ScoredCourse, criteria: Criteria) -> str:
    """
    Build the reason string for one course.

    Args:
        scored: Course picked by the rule engine
        criteria: Criteria it was picked for

    Returns:
        Clauses joined with a Chinese comma, or a generic phrase when none apply
    """
    course = scored.course
    clauses: List[str] = []

    if criteria.faculty and faculty_matches(course, criteria.faculty):
        clauses.append(f"来自{course.faculty_name}")

    if criteria.teacher and teacher_matches(course, criteria.teacher):
        clauses.append(f"由您指定的{course.teacher_name}老师授课")

    if course.average_rating is not None and course.average_rating >= HIGH_RATING_THRESHOLD:
        clauses.append(f"评分{course.average_rating:.1f}分，学生评价优秀")

    if criteria.keywords:
        hits = matched_keywords(course, criteria.keywords)
        if hits:
            clauses.append(f"与您感兴趣的{'、'.join(hits)}相关")

    if course.review_count is not None and course.review_count >= POPULAR_REVIEW_THRESHOLD:
        clauses.append(f"已有{course.review_count}位同学评价")

    if not clauses:
        return GENERIC_REASON
    return REASON_SEPARATOR.join(clauses)


def suggest_next_question(criteria: Criteria) -> str:
    """Hint naming the criteria dimensions that are still unset."""
    missing = [
        label for attribute, label in FOLLOW_UP_DIMENSIONS
        if not getattr(criteria, attribute)
    ]
    if missing:
        return f"💡 您还可以告诉我{'、'.join(missing)}等信息，我会为您进一步精准筛选！"
    return "如果您还有其他要求，请随时告诉我！"


def attach_reasons(ranked: List[ScoredCourse], criteria: Criteria) -> List[ScoredCourse]:
    return [
        scored.model_copy(update={"reason": explain_recommendation(scored, criteria)})
        for scored in ranked
    ]
