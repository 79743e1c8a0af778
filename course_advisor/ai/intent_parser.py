import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError

from ..logic.contracts import Criteria, ExtractionResult
from ..logic.constants import IntentType
from ..logic.errors import ExtractionUnavailable, ServiceUnavailable
from ..logic.extractor import CriteriaExtractor
from .client import TextGenerationClient
from .prompt_builder import build_intent_system_prompt, build_intent_user_prompt

logger = logging.getLogger(__name__)

DEFAULT_LLM_CONFIDENCE = 0.8


class IntentResponse(BaseModel):
    """
    Expected shape of the extraction reply. `parameters` is required, so a
    reply without it is rejected as a whole; parameter values are checked
    later, field by field.
    """
    parameters: Dict[str, Any]
    intent: Optional[str] = None
    confidence: Optional[float] = None
    need_more_info: Optional[bool] = Field(default=None, alias="needMoreInfo")
    next_question: Optional[str] = Field(default=None, alias="nextQuestion")
    course_to_query: Optional[str] = Field(default=None, alias="courseToQuery")
    courses_to_compare: Optional[List[str]] = Field(default=None, alias="coursesToCompare")

    class Config:
        populate_by_name = True


def parse_intent(value: Optional[str]) -> IntentType:
    """Unknown or missing intent labels are treated as a new query."""
    try:
        return IntentType((value or "").strip().upper())
    except ValueError:
        return IntentType.NEW_QUERY


class LLMCriteriaExtractor(CriteriaExtractor):
    """Criteria extraction backed by the external text-generation service."""

    name = "llm"

    def __init__(self, client: Optional[TextGenerationClient] = None):
        self.client = client or TextGenerationClient()
        self.temperature = 0.3
        self.max_tokens = 500

    @property
    def available(self) -> bool:
        return self.client.available

    async def extract(
        self,
        utterance: str,
        prior: Criteria,
        recent_courses: Sequence[str] = (),
    ) -> ExtractionResult:
        system_prompt = build_intent_system_prompt()
        user_prompt = build_intent_user_prompt(utterance, prior, recent_courses)

        try:
            payload = await self.client.complete_json(
                system_prompt,
                user_prompt,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except ServiceUnavailable as e:
            raise ExtractionUnavailable(str(e)) from e

        try:
            response = IntentResponse.model_validate(payload)
        except ValidationError as e:
            raise ExtractionUnavailable(f"Extraction reply does not match schema: {e}") from e

        delta = Criteria.from_untrusted(response.parameters)
        intent = parse_intent(response.intent)
        confidence = DEFAULT_LLM_CONFIDENCE if response.confidence is None else response.confidence

        course_refs = [name for name in [response.course_to_query] if name]
        course_refs += [name for name in response.courses_to_compare or [] if name and name not in course_refs]

        logger.info(
            f"🤖 LLM extraction set {delta.set_fields()} "
            f"(intent {intent.value}, confidence {confidence:.2f})"
        )

        return ExtractionResult(
            delta=delta,
            confidence=max(0.0, min(1.0, confidence)),
            need_more_info=bool(response.need_more_info),
            clarifying_question=response.next_question,
            intent=intent,
            course_refs=course_refs,
            source=self.name,
        )
