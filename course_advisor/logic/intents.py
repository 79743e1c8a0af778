"""
Intent Classification

Deterministic intent rules used by the keyword extractor, plus resolution of
the courses a detail or compare request refers to (by name or by position
in the last recommendation).
"""

import re
from typing import List, Optional, Sequence

from .contracts import Course, CourseRecommendation, Criteria
from .constants import (
    IntentType,
    COMPARE_TRIGGERS,
    DETAIL_TRIGGERS,
    REFERENCE_TRIGGERS,
    CHAT_TRIGGERS,
    COURSE_REQUEST_TRIGGERS,
    ORDINAL_PATTERN,
    CHINESE_NUMERALS,
)


def _contains_any(text: str, triggers: List[str]) -> bool:
    return any(trigger in text for trigger in triggers)


def ordinal_references(text: str) -> List[int]:
    """1-based positions such as "第一门" / "第2个", in order of appearance."""
    positions = []
    for token in re.findall(ORDINAL_PATTERN, text or ""):
        if token.isdigit():
            value = int(token)
        else:
            value = CHINESE_NUMERALS.get(token)
        if value and value not in positions:
            positions.append(value)
    return positions


def classify_intent(text: str, matched_any: bool, prior: Criteria) -> IntentType:
    """
    Rule order:
    1. Compare words win over everything else
    2. Detail words or an ordinal ("第一门") ask about one course
    3. Words pointing back at the last list refine it
    4. Greetings and thanks with no course request are small talk
    5. Anything else is a new query, or a supplement when it adds
       conditions to criteria already known
    """
    lowered = (text or "").strip().lower()

    if _contains_any(lowered, COMPARE_TRIGGERS):
        return IntentType.COMPARE
    if _contains_any(lowered, DETAIL_TRIGGERS) or ordinal_references(lowered):
        return IntentType.DETAIL
    if _contains_any(lowered, REFERENCE_TRIGGERS):
        return IntentType.REFINE
    if (
        not matched_any
        and _contains_any(lowered, CHAT_TRIGGERS)
        and not _contains_any(lowered, COURSE_REQUEST_TRIGGERS)
    ):
        return IntentType.CHAT
    if matched_any and not prior.is_empty():
        return IntentType.SUPPLEMENT
    return IntentType.NEW_QUERY


# =============================================================================
# COURSE REFERENCES
# =============================================================================

def find_course_by_name(name: str, catalog: Sequence[Course]) -> Optional[Course]:
    """Exact name match first, then containment in either direction."""
    name = (name or "").strip()
    if not name:
        return None
    for course in catalog:
        if course.name == name:
            return course
    for course in catalog:
        if course.name in name or name in course.name:
            return course
    return None


def mentioned_courses(text: str, catalog: Sequence[Course]) -> List[Course]:
    """Catalog courses whose full name appears in `text`, in order of appearance."""
    positions = []
    for course in catalog:
        index = text.find(course.name)
        if index >= 0:
            positions.append((index, course.id, course))
    positions.sort(key=lambda item: (item[0], item[1]))
    return [course for _, _, course in positions]


def resolve_courses(
    text: str,
    refs: List[str],
    catalog: Sequence[Course],
    recent: List[CourseRecommendation],
) -> List[Course]:
    """
    Courses a detail/compare request is about, without duplicates.

    Named references (from the extractor) are looked up first, then course
    names written in the utterance, then ordinals into the last
    recommendation. Returns an empty list when nothing can be resolved;
    the caller decides whether the last recommendation is a usable default.
    """
    by_id = {course.id: course for course in catalog}
    resolved: List[Course] = []

    def add(course: Optional[Course]) -> None:
        if course is not None and all(c.id != course.id for c in resolved):
            resolved.append(course)

    for ref in refs:
        add(find_course_by_name(ref, catalog))
    if not resolved:
        for course in mentioned_courses(text, catalog):
            add(course)
    if not resolved:
        for position in ordinal_references(text):
            if 1 <= position <= len(recent):
                add(by_id.get(recent[position - 1].id))
    return resolved
