"""
Ranker

Ranks scored courses and applies the teacher/faculty diversity rule so a
single lecturer or department does not fill the whole recommendation list.
"""

from typing import List, Set

from .contracts import ScoredCourse
from .constants import MAX_RECOMMENDATIONS


def rank_courses(scored_courses: List[ScoredCourse]) -> List[ScoredCourse]:
    """
    Rank courses by raw score (descending).

    sorted() is stable, so equal scores keep catalog order.

    Args:
        scored_courses: List of scored courses

    Returns:
        Sorted list by score
    """
    return sorted(scored_courses, key=lambda x: x.raw_score, reverse=True)


def diversify(
    ranked: List[ScoredCourse],
    limit: int = MAX_RECOMMENDATIONS
) -> List[ScoredCourse]:
    """
    Two-pass selection over a ranked list.

    First pass takes courses whose teacher and faculty have both not been seen
    yet. Second pass fills the remaining slots from the top of the ranked list,
    skipping courses already picked.

    Args:
        ranked: Courses sorted best first
        limit: Maximum number of picks

    Returns:
        Diversified list, at most `limit` long
    """
    picked: List[ScoredCourse] = []
    picked_ids: Set[int] = set()
    seen_teachers: Set[str] = set()
    seen_faculties: Set[str] = set()

    for scored in ranked:
        if len(picked) >= limit:
            break
        teacher = scored.course.teacher_name
        faculty = scored.course.faculty_name
        if teacher in seen_teachers or faculty in seen_faculties:
            continue
        picked.append(scored)
        picked_ids.add(scored.course.id)
        if teacher:
            seen_teachers.add(teacher)
        if faculty:
            seen_faculties.add(faculty)

    for scored in ranked:
        if len(picked) >= limit:
            break
        if scored.course.id in picked_ids:
            continue
        picked.append(scored)
        picked_ids.add(scored.course.id)

    return picked


def get_final_ranked_list(
    ranked: List[ScoredCourse],
    max_total: int = MAX_RECOMMENDATIONS
) -> List[ScoredCourse]:
    return ranked[:max_total]
