"""
Keyword extraction, intent rules, criteria sanitizing and merge tests.
"""

import asyncio

import pytest

from course_advisor.logic.contracts import Criteria, CourseRecommendation
from course_advisor.logic.constants import CourseType, Difficulty, IntentType
from course_advisor.logic.extractor import KeywordCriteriaExtractor
from course_advisor.logic.intents import classify_intent, ordinal_references, resolve_courses
from course_advisor.logic.orchestrator import merge_criteria, derive_title

from .factories import make_course


def _extract(utterance, prior=None):
    extractor = KeywordCriteriaExtractor()
    return asyncio.run(extractor.extract(utterance, prior or Criteria()))


def test_elective_with_credits():
    result = _extract("我想要3学分的选修课")

    assert result.delta.course_type == CourseType.ELECTIVE
    assert result.delta.credits == 3
    assert result.delta.set_fields() == ["course_type", "credits"]
    assert result.need_more_info is False
    assert result.source == "keyword"


def test_compulsory_trigger_wins_over_elective():
    result = _extract("必修还是选修都可以")
    assert result.delta.course_type == CourseType.COMPULSORY


def test_english_credits_and_type():
    result = _extract("Any elective worth 4 credits?")
    assert result.delta.course_type == CourseType.ELECTIVE
    assert result.delta.credits == 4


def test_easy_checked_before_hard():
    assert _extract("想要简单一点的，不要太难").delta.difficulty == Difficulty.EASY
    assert _extract("我想挑战一下自己").delta.difficulty == Difficulty.HARD


def test_faculty_and_teacher_from_closed_lists():
    result = _extract("陈伟老师在创新工程学院开的课")
    assert result.delta.teacher == "陈伟"
    assert result.delta.faculty == "创新工程学院"


def test_faculty_name_does_not_leak_topic_keywords():
    result = _extract("酒店与旅游管理学院有什么课")
    assert result.delta.faculty == "酒店与旅游管理学院"
    assert result.delta.keywords == []


def test_topic_keywords_in_order_of_appearance():
    result = _extract("我对数据库和人工智能都感兴趣")
    assert result.delta.keywords == ["数据库", "人工智能"]


def test_nothing_matched_asks_for_more_info():
    result = _extract("你好")

    assert result.delta.is_empty()
    assert result.confidence == 0.2
    assert result.need_more_info is True
    assert "感兴趣的学院或专业方向" in result.clarifying_question


def test_nothing_matched_with_known_criteria_does_not_ask():
    result = _extract("还有别的吗", Criteria(course_type=CourseType.ELECTIVE))
    assert result.need_more_info is False
    assert result.clarifying_question is None


def test_confidence_grows_with_matched_fields():
    one = _extract("选修课")
    two = _extract("3学分的选修课")
    assert one.confidence < two.confidence <= 1.0


# =============================================================================
# CRITERIA SANITIZING
# =============================================================================

def test_untrusted_criteria_drops_only_bad_fields():
    criteria = Criteria.from_untrusted({
        "courseType": "LAB",
        "credits": -1,
        "faculty": "火星学院",
        "teacher": "陈伟",
        "keywords": ["AI", "AI", " "],
        "difficulty": "Medium",
    })

    assert criteria.course_type is None
    assert criteria.credits is None
    assert criteria.faculty is None
    assert criteria.teacher == "陈伟"
    assert criteria.keywords == ["AI"]
    assert criteria.difficulty == Difficulty.MEDIUM


def test_untrusted_criteria_accepts_snake_case_and_empty_input():
    assert Criteria.from_untrusted(None).is_empty()
    assert Criteria.from_untrusted({}).is_empty()
    assert Criteria.from_untrusted({"course_type": "elective"}).course_type == CourseType.ELECTIVE


def test_context_round_trips_through_wire_form():
    criteria = Criteria(course_type=CourseType.ELECTIVE, credits=3, keywords=["编程"])
    context = criteria.to_context()

    assert context["courseType"] == "ELECTIVE"
    assert Criteria.from_untrusted(context) == criteria


# =============================================================================
# MERGE
# =============================================================================

def test_merge_keeps_prior_for_unset_delta_fields():
    prior = Criteria(course_type=CourseType.ELECTIVE, credits=3)
    delta = Criteria(faculty="商学院")

    merged = merge_criteria(prior, delta)

    assert merged.course_type == CourseType.ELECTIVE
    assert merged.credits == 3
    assert merged.faculty == "商学院"


def test_merge_with_empty_delta_equals_prior():
    prior = Criteria(course_type=CourseType.COMPULSORY, keywords=["会计"])
    assert merge_criteria(prior, Criteria()) == prior


def test_merge_with_full_delta_equals_delta():
    prior = Criteria(course_type=CourseType.COMPULSORY, credits=2, keywords=["会计"],
                     difficulty=Difficulty.HARD, faculty="商学院", teacher="周梅")
    delta = Criteria(course_type=CourseType.ELECTIVE, credits=3, keywords=["编程"],
                     difficulty=Difficulty.EASY, faculty="创新工程学院", teacher="陈伟")
    assert merge_criteria(prior, delta) == delta


def test_merge_replaces_keywords():
    merged = merge_criteria(Criteria(keywords=["会计"]), Criteria(keywords=["投资"]))
    assert merged.keywords == ["投资"]


# =============================================================================
# TITLE
# =============================================================================

def test_title_truncated_to_twenty_characters():
    utterance = "我想找一门关于人工智能和机器学习的选修课程，最好是三个学分的"
    title = derive_title(utterance)
    assert title == utterance[:20] + "..."
    assert derive_title("推荐选修课") == "推荐选修课"
    assert derive_title("   ") == "新对话"


# =============================================================================
# INTENTS
# =============================================================================

@pytest.mark.parametrize("utterance, prior, expected", [
    ("我想要3学分的选修课", Criteria(), IntentType.NEW_QUERY),
    ("换成商学院的", Criteria(course_type=CourseType.ELECTIVE), IntentType.SUPPLEMENT),
    ("谢谢", Criteria(course_type=CourseType.ELECTIVE), IntentType.CHAT),
    ("你好", Criteria(), IntentType.CHAT),
    ("你好，推荐几门课", Criteria(), IntentType.NEW_QUERY),
    ("第一门课怎么样", Criteria(), IntentType.DETAIL),
    ("这门课难吗", Criteria(), IntentType.DETAIL),
    ("这些课程里有选修课吗", Criteria(faculty="商学院"), IntentType.REFINE),
    ("投资学和财务会计有什么区别", Criteria(), IntentType.COMPARE),
])
def test_keyword_intent(utterance, prior, expected):
    assert _extract(utterance, prior).intent == expected


def test_ordinals_in_order_of_appearance():
    assert ordinal_references("第三门和第1门比一下") == [3, 1]
    assert ordinal_references("第二个怎么样") == [2]
    assert ordinal_references("这门课怎么样") == []


def test_resolve_courses_by_reference_name_then_ordinal():
    catalog = [
        make_course(1, name="人工智能导论"),
        make_course(2, name="投资学"),
        make_course(3, name="财务会计"),
    ]
    recent = [CourseRecommendation(id=3, code="C3", name="财务会计", credits=3, type=CourseType.ELECTIVE),
              CourseRecommendation(id=1, code="C1", name="人工智能导论", credits=3, type=CourseType.ELECTIVE)]

    assert [c.id for c in resolve_courses("", ["投资"], catalog, recent)] == [2]
    assert [c.id for c in resolve_courses("财务会计和投资学", [], catalog, recent)] == [3, 2]
    assert [c.id for c in resolve_courses("第二门怎么样", [], catalog, recent)] == [1]
    assert resolve_courses("这门课怎么样", [], catalog, recent) == []
    assert resolve_courses("第五门", [], catalog, recent) == []


def test_classify_needs_known_criteria_for_supplement():
    assert classify_intent("选修课", True, Criteria()) == IntentType.NEW_QUERY
    assert classify_intent("选修课", True, Criteria(credits=3)) == IntentType.SUPPLEMENT
