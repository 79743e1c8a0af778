"""
LLM-backed extraction and narration against stub completion clients.
"""

import asyncio
import json

import httpx
import openai
import pytest

from course_advisor.ai.client import TextGenerationClient
from course_advisor.ai.explainer import LLMNarrator
from course_advisor.ai.intent_parser import LLMCriteriaExtractor, parse_intent
from course_advisor.ai.prompt_builder import build_intent_system_prompt, build_intent_user_prompt
from course_advisor.logic.aggregator import aggregate_scores
from course_advisor.logic.contracts import Criteria
from course_advisor.logic.constants import CourseType, IntentType
from course_advisor.logic.errors import ExtractionUnavailable, NarrationUnavailable, ServiceUnavailable
from course_advisor.settings import Settings, PLACEHOLDER_API_KEY

from .factories import StubCompletions, make_course, make_stub_client


def _intent_payload(**parameters):
    return json.dumps({
        "intent": "query",
        "parameters": parameters,
        "confidence": 0.9,
        "needMoreInfo": False,
        "nextQuestion": None,
    })


# =============================================================================
# SETTINGS / CLIENT
# =============================================================================

def test_llm_unavailable_without_real_key():
    config = Settings()
    config.llm_enabled = True
    config.llm_api_key = PLACEHOLDER_API_KEY
    assert config.llm_available is False

    config.llm_api_key = None
    assert config.llm_available is False

    config.llm_api_key = "sk-test"
    config.llm_enabled = False
    assert config.llm_available is False


def test_unconfigured_client_raises_service_unavailable():
    config = Settings()
    config.llm_enabled = False
    client = TextGenerationClient(config)

    assert client.available is False
    with pytest.raises(ServiceUnavailable):
        asyncio.run(client.complete_json("system", "user", temperature=0.3, max_tokens=10))


def test_client_wraps_api_errors():
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://llm.invalid/v1/chat/completions"))
    client = make_stub_client(StubCompletions(error=error))

    with pytest.raises(ServiceUnavailable):
        asyncio.run(client.complete_json("system", "user", temperature=0.3, max_tokens=10))


def test_client_rejects_non_object_json():
    client = make_stub_client(StubCompletions(content="[1, 2, 3]"))
    with pytest.raises(ServiceUnavailable):
        asyncio.run(client.complete_json("system", "user", temperature=0.3, max_tokens=10))


# =============================================================================
# EXTRACTION
# =============================================================================

def test_llm_extraction_builds_delta_and_request():
    completions = StubCompletions(content=_intent_payload(
        courseType="ELECTIVE", credits=3, keywords=["编程"], faculty="创新工程学院",
    ))
    extractor = LLMCriteriaExtractor(make_stub_client(completions))

    result = asyncio.run(extractor.extract("想学编程的选修课，3学分", Criteria()))

    assert result.source == "llm"
    assert result.confidence == 0.9
    assert result.delta.course_type == CourseType.ELECTIVE
    assert result.delta.credits == 3
    assert result.delta.faculty == "创新工程学院"
    assert result.delta.keywords == ["编程"]

    request = completions.calls[0]
    assert request["temperature"] == 0.3
    assert request["max_tokens"] == 500
    assert request["response_format"] == {"type": "json_object"}
    assert request["messages"][0]["role"] == "system"
    assert "想学编程的选修课" in request["messages"][1]["content"]


def test_llm_extraction_drops_malformed_fields():
    completions = StubCompletions(content=_intent_payload(
        courseType="SEMINAR", credits="many", faculty="火星学院", teacher="周梅",
    ))
    extractor = LLMCriteriaExtractor(make_stub_client(completions))

    result = asyncio.run(extractor.extract("周梅老师的课", Criteria()))

    assert result.delta.set_fields() == ["teacher"]
    assert result.delta.teacher == "周梅"


def test_llm_extraction_invalid_json_is_unavailable():
    extractor = LLMCriteriaExtractor(make_stub_client(StubCompletions(content="not json {")))
    with pytest.raises(ExtractionUnavailable):
        asyncio.run(extractor.extract("选修课", Criteria()))


def test_llm_extraction_schema_mismatch_is_unavailable():
    payload = json.dumps({"parameters": ["ELECTIVE"], "confidence": "high"})
    extractor = LLMCriteriaExtractor(make_stub_client(StubCompletions(content=payload)))
    with pytest.raises(ExtractionUnavailable):
        asyncio.run(extractor.extract("选修课", Criteria()))


@pytest.mark.parametrize("payload", [{}, {"answer": "ok"}, {"intent": "NEW_QUERY", "parameters": None}])
def test_llm_extraction_without_parameters_is_unavailable(payload):
    extractor = LLMCriteriaExtractor(make_stub_client(StubCompletions(content=json.dumps(payload))))
    with pytest.raises(ExtractionUnavailable):
        asyncio.run(extractor.extract("我想要3学分的选修课", Criteria()))


def test_llm_extraction_reads_intent_and_course_names():
    payload = json.dumps({
        "intent": "compare",
        "parameters": {},
        "courseToQuery": None,
        "coursesToCompare": ["投资学", "财务会计"],
    })
    extractor = LLMCriteriaExtractor(make_stub_client(StubCompletions(content=payload)))

    result = asyncio.run(extractor.extract("投资学和财务会计哪个更好", Criteria()))

    assert result.intent == IntentType.COMPARE
    assert result.course_refs == ["投资学", "财务会计"]
    assert result.delta.is_empty()


def test_unknown_intent_label_is_new_query():
    assert parse_intent("query") == IntentType.NEW_QUERY
    assert parse_intent(None) == IntentType.NEW_QUERY
    assert parse_intent("detail") == IntentType.DETAIL


def test_llm_extraction_timeout_is_unavailable():
    completions = StubCompletions(content=_intent_payload(), delay=0.5)
    extractor = LLMCriteriaExtractor(make_stub_client(completions, timeout=0.05))
    with pytest.raises(ExtractionUnavailable):
        asyncio.run(extractor.extract("选修课", Criteria()))


def test_intent_prompts_carry_closed_lists_and_prior_context():
    system_prompt = build_intent_system_prompt()
    assert "创新工程学院" in system_prompt
    assert "孙丽丽（医学院，副教授）" in system_prompt
    assert '"needMoreInfo"' in system_prompt

    user_prompt = build_intent_user_prompt("还有别的吗", Criteria(course_type=CourseType.ELECTIVE, credits=3))
    assert "用户消息：还有别的吗" in user_prompt
    assert "课程类型：选修课" in user_prompt
    assert "学分：3" in user_prompt

    assert "已知的用户需求" not in build_intent_user_prompt("你好", Criteria())

    with_recent = build_intent_user_prompt("第一门怎么样", Criteria(), ["人工智能导论", "投资学"])
    assert "上次推荐的课程：\n- 人工智能导论\n- 投资学" in with_recent
    assert "REFINE" in system_prompt


# =============================================================================
# NARRATION
# =============================================================================

def _ranked(criteria):
    courses = [
        make_course(1, average_rating=4.6, review_count=40),
        make_course(2, teacher_name="周梅", faculty_name="商学院"),
    ]
    return [
        aggregate_scores(criteria, c).model_copy(update={"reason": f"规则理由{c.id}"})
        for c in courses
    ]


def test_llm_narration_rewrites_known_courses_only():
    payload = json.dumps({
        "greeting": "为您精选了以下课程：",
        "courses": [
            {"course_id": 1, "reason": "评分很高，适合入门"},
            {"course_id": 99, "reason": "不存在的课程"},
        ],
        "suggestion": "建议优先考虑第一门。",
    })
    completions = StubCompletions(content=payload)
    narrator = LLMNarrator(make_stub_client(completions))
    criteria = Criteria(course_type=CourseType.ELECTIVE)

    narrative = asyncio.run(narrator.narrate(criteria, _ranked(criteria)))

    assert narrative.source == "llm"
    assert narrative.greeting == "为您精选了以下课程："
    assert narrative.reasons == {1: "评分很高，适合入门", 2: "规则理由2"}
    assert narrative.suggestion == "建议优先考虑第一门。"

    request = completions.calls[0]
    assert request["temperature"] == 0.7
    assert request["max_tokens"] == 800
    assert "课程ID: 1" in request["messages"][1]["content"]


def test_llm_narration_without_greeting_is_unavailable():
    narrator = LLMNarrator(make_stub_client(StubCompletions(content=json.dumps({"courses": []}))))
    criteria = Criteria(course_type=CourseType.ELECTIVE)

    with pytest.raises(NarrationUnavailable):
        asyncio.run(narrator.narrate(criteria, _ranked(criteria)))


def test_llm_narration_empty_object_is_unavailable():
    narrator = LLMNarrator(make_stub_client(StubCompletions(content="{}")))
    with pytest.raises(NarrationUnavailable):
        asyncio.run(narrator.narrate(Criteria(), _ranked(Criteria())))


def test_llm_narration_blank_greeting_uses_default():
    payload = json.dumps({"greeting": "  ", "courses": []})
    narrator = LLMNarrator(make_stub_client(StubCompletions(content=payload)))

    narrative = asyncio.run(narrator.narrate(Criteria(), _ranked(Criteria())))

    assert narrative.greeting == "您还没有提出具体要求，先为您推荐几门热门高分课程："
    assert narrative.reasons == {1: "规则理由1", 2: "规则理由2"}


def test_llm_narration_failure_is_unavailable():
    narrator = LLMNarrator(make_stub_client(StubCompletions(content="")))
    with pytest.raises(NarrationUnavailable):
        asyncio.run(narrator.narrate(Criteria(), _ranked(Criteria())))

    bad_shape = json.dumps({"courses": [{"course_id": "first"}]})
    narrator = LLMNarrator(make_stub_client(StubCompletions(content=bad_shape)))
    with pytest.raises(NarrationUnavailable):
        asyncio.run(narrator.narrate(Criteria(), _ranked(Criteria())))
