"""
Criteria Extraction

Strategy interface for turning one utterance into a criteria delta, plus the
deterministic keyword strategy that is always available.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from .contracts import Criteria, ExtractionResult
from .constants import (
    CourseType,
    Difficulty,
    FACULTIES,
    TEACHERS,
    TOPIC_VOCABULARY,
    COMPULSORY_TRIGGERS,
    ELECTIVE_TRIGGERS,
    EASY_TRIGGERS,
    HARD_TRIGGERS,
    CREDIT_PATTERNS,
)
from .intents import classify_intent
from .output_assembler import FOLLOW_UP_DIMENSIONS

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.4
CONFIDENCE_PER_FIELD = 0.15
NO_MATCH_CONFIDENCE = 0.2


class CriteriaExtractor(ABC):
    """Turns an utterance (plus the criteria known so far) into a delta."""

    name = "extractor"

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    async def extract(
        self,
        utterance: str,
        prior: Criteria,
        recent_courses: Sequence[str] = (),
    ) -> ExtractionResult:
        """`recent_courses` are the names shown in the last recommendation."""
        ...


def clarifying_question(criteria: Criteria) -> str:
    """Question asking for the dimensions the user has not mentioned yet."""
    missing = [
        label for attribute, label in FOLLOW_UP_DIMENSIONS
        if not getattr(criteria, attribute)
    ]
    return f"能再具体说说您的需求吗？比如{'、'.join(missing)}。"


# =============================================================================
# KEYWORD MATCHING
# =============================================================================

def _first_contained(text: str, options: List[str]) -> Optional[str]:
    for option in options:
        if option in text:
            return option
    return None


def match_course_type(text: str) -> Optional[CourseType]:
    lowered = text.lower()
    if any(trigger in lowered for trigger in COMPULSORY_TRIGGERS):
        return CourseType.COMPULSORY
    if any(trigger in lowered for trigger in ELECTIVE_TRIGGERS):
        return CourseType.ELECTIVE
    return None


def match_credits(text: str) -> Optional[float]:
    lowered = text.lower()
    for pattern in CREDIT_PATTERNS:
        match = re.search(pattern, lowered)
        if match:
            value = float(match.group(1))
            if value > 0:
                return value
    return None


def match_difficulty(text: str) -> Optional[Difficulty]:
    lowered = text.lower()
    if any(trigger in lowered for trigger in EASY_TRIGGERS):
        return Difficulty.EASY
    if any(trigger in lowered for trigger in HARD_TRIGGERS):
        return Difficulty.HARD
    return None


def match_topics(text: str) -> List[str]:
    """Topic vocabulary terms in order of first appearance."""
    # faculty names contain topic terms ("管理", "艺术") that are not requests
    for faculty in FACULTIES:
        text = text.replace(faculty, " ")

    positions = []
    for term in TOPIC_VOCABULARY:
        index = text.find(term)
        if index >= 0:
            positions.append((index, term))
    positions.sort(key=lambda item: item[0])
    return [term for _, term in positions]


class KeywordCriteriaExtractor(CriteriaExtractor):
    """
    Deterministic extractor based on trigger substrings and the closed
    faculty/teacher lists. Never raises and never calls a service.
    """

    name = "keyword"

    async def extract(
        self,
        utterance: str,
        prior: Criteria,
        recent_courses: Sequence[str] = (),
    ) -> ExtractionResult:
        return self.extract_sync(utterance, prior)

    def extract_sync(self, utterance: str, prior: Criteria) -> ExtractionResult:
        text = utterance or ""

        fields: Dict[str, Any] = {
            "course_type": match_course_type(text),
            "credits": match_credits(text),
            "difficulty": match_difficulty(text),
            "faculty": _first_contained(text, FACULTIES),
            "teacher": _first_contained(text, list(TEACHERS)),
        }
        topics = match_topics(text)
        if topics:
            fields["keywords"] = topics

        matched = {name: value for name, value in fields.items() if value}
        delta = Criteria(**matched)

        if matched:
            confidence = min(1.0, BASE_CONFIDENCE + CONFIDENCE_PER_FIELD * len(matched))
        else:
            confidence = NO_MATCH_CONFIDENCE

        need_more_info = not matched and prior.is_empty()
        intent = classify_intent(text, bool(matched), prior)

        logger.info(
            f"🔑 Keyword extraction matched {sorted(matched)} "
            f"(intent {intent.value}, confidence {confidence:.2f})"
        )

        return ExtractionResult(
            delta=delta,
            confidence=confidence,
            need_more_info=need_more_info,
            clarifying_question=clarifying_question(prior) if need_more_info else None,
            intent=intent,
            source=self.name,
        )
