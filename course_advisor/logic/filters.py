"""
Candidate Filters

Hard filter (every requested constraint holds) and soft filter (any one
requested constraint holds) over the course catalog.
"""

from typing import List, Optional

from .contracts import Criteria, Course
from .constants import CREDITS_TOLERANCE, FACULTY_TOPICS


def _contains_either(course_value: Optional[str], requested: Optional[str]) -> bool:
    """Case-insensitive containment in either direction; tolerates abbreviations."""
    if not course_value or not requested:
        return False
    course_value = course_value.lower()
    requested = requested.lower()
    return requested in course_value or course_value in requested


def faculty_matches(course: Course, faculty: Optional[str]) -> bool:
    return _contains_either(course.faculty_name, faculty)


def teacher_matches(course: Course, teacher: Optional[str]) -> bool:
    return _contains_either(course.teacher_name, teacher)


def credits_match(course: Course, credits: float) -> bool:
    return abs(course.credits - credits) <= CREDITS_TOLERANCE


def matched_keywords(course: Course, keywords: List[str]) -> List[str]:
    """Keywords found in the course's composite search text, in request order."""
    text = course.search_text()
    return [kw for kw in keywords if kw.lower() in text]


def soft_filter_terms(criteria: Criteria) -> List[str]:
    """
    Terms for the soft filter's keyword path: the requested keywords followed
    by the subject-area terms of the requested faculty.
    """
    terms = list(criteria.keywords)
    for term in FACULTY_TOPICS.get(criteria.faculty, []):
        if term not in terms:
            terms.append(term)
    return terms


def hard_filter(criteria: Criteria, courses: List[Course]) -> List[Course]:
    """Keep courses satisfying ALL set constraints."""
    def keep(course: Course) -> bool:
        if criteria.course_type and course.type != criteria.course_type:
            return False
        if criteria.credits and not credits_match(course, criteria.credits):
            return False
        if criteria.faculty and not faculty_matches(course, criteria.faculty):
            return False
        if criteria.teacher and not teacher_matches(course, criteria.teacher):
            return False
        return True

    return [course for course in courses if keep(course)]


def soft_filter(criteria: Criteria, courses: List[Course]) -> List[Course]:
    """Keep courses satisfying ANY ONE of the set constraints."""
    terms = soft_filter_terms(criteria)

    def keep(course: Course) -> bool:
        if criteria.faculty and faculty_matches(course, criteria.faculty):
            return True
        if criteria.teacher and teacher_matches(course, criteria.teacher):
            return True
        if criteria.course_type and course.type == criteria.course_type:
            return True
        if terms and matched_keywords(course, terms):
            return True
        return False

    return [course for course in courses if keep(course)]
