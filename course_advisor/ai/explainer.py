import logging
from typing import List, Optional

from pydantic import BaseModel, ValidationError, field_validator

from ..logic.contracts import Criteria, Narrative, ScoredCourse
from ..logic.errors import NarrationUnavailable, ServiceUnavailable
from ..logic.narrator import Narrator, GREETING, DEFAULT_GREETING
from .client import TextGenerationClient
from .prompt_builder import build_narration_system_prompt, build_narration_user_prompt

logger = logging.getLogger(__name__)


class CourseReason(BaseModel):
    course_id: int
    reason: str

    @field_validator("reason")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class NarrationResponse(BaseModel):
    """Expected shape of the narration reply. `greeting` and `courses` are required."""
    greeting: str
    courses: List[CourseReason]
    suggestion: Optional[str] = None


class LLMNarrator(Narrator):
    """
    Reply generation backed by the external text-generation service.

    Courses the reply does not mention (or mentions with an empty reason) keep
    the rule engine's reason; ids that were not recommended are ignored.
    """

    name = "llm"

    def __init__(self, client: Optional[TextGenerationClient] = None):
        self.client = client or TextGenerationClient()
        self.temperature = 0.7
        self.max_tokens = 800

    @property
    def available(self) -> bool:
        return self.client.available

    async def narrate(self, criteria: Criteria, ranked: List[ScoredCourse]) -> Narrative:
        system_prompt = build_narration_system_prompt()
        user_prompt = build_narration_user_prompt(criteria, ranked)

        try:
            payload = await self.client.complete_json(
                system_prompt,
                user_prompt,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except ServiceUnavailable as e:
            raise NarrationUnavailable(str(e)) from e

        try:
            response = NarrationResponse.model_validate(payload)
        except ValidationError as e:
            raise NarrationUnavailable(f"Narration reply does not match schema: {e}") from e

        reasons = {scored.course.id: scored.reason for scored in ranked}
        rewritten = 0
        for item in response.courses:
            if item.course_id in reasons and item.reason:
                reasons[item.course_id] = item.reason
                rewritten += 1

        logger.info(f"🤖 LLM narration rewrote {rewritten}/{len(ranked)} reasons")

        fallback_greeting = DEFAULT_GREETING if criteria.is_empty() else GREETING
        return Narrative(
            greeting=response.greeting.strip() or fallback_greeting,
            reasons=reasons,
            suggestion=(response.suggestion or "").strip(),
            source=self.name,
        )
