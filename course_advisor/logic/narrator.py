"""
Narrative Generation

Strategy interface for wrapping ranked courses in a conversational reply,
plus the deterministic template strategy used whenever the LLM is unavailable.
"""

from abc import ABC, abstractmethod
from typing import List

from .contracts import Criteria, Narrative, ScoredCourse

GREETING = "根据您的需求，我为您推荐以下课程："
DEFAULT_GREETING = "您还没有提出具体要求，先为您推荐几门热门高分课程："


class Narrator(ABC):
    name = "narrator"

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    async def narrate(self, criteria: Criteria, ranked: List[ScoredCourse]) -> Narrative:
        ...


class TemplateNarrator(Narrator):
    """Fixed greeting plus the rule engine's own reasons."""

    name = "template"

    async def narrate(self, criteria: Criteria, ranked: List[ScoredCourse]) -> Narrative:
        return self.narrate_sync(criteria, ranked)

    def narrate_sync(self, criteria: Criteria, ranked: List[ScoredCourse]) -> Narrative:
        greeting = DEFAULT_GREETING if criteria.is_empty() else GREETING
        return Narrative(
            greeting=greeting,
            reasons={scored.course.id: scored.reason for scored in ranked},
            suggestion="",
            source=self.name,
        )
