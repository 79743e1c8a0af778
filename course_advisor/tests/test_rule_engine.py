"""
Rule engine tests: filtering, scoring, ranking, diversification and reasons.
"""

import pytest

from course_advisor.logic.contracts import Criteria
from course_advisor.logic.constants import CourseType, Difficulty
from course_advisor.logic.engine import RuleEngine, recommend
from course_advisor.logic.aggregator import aggregate_scores, score_ceiling
from course_advisor.logic.dimension_scorers import (
    popularity_term,
    score_difficulty_alignment,
    score_rating_quality,
    score_default,
)
from course_advisor.logic.filters import hard_filter, soft_filter
from course_advisor.logic.output_assembler import explain_recommendation, suggest_next_question

from .factories import make_course


def _catalog():
    return [
        make_course(1, average_rating=4.9, review_count=100, teacher_name="陈伟", faculty_name="创新工程学院"),
        make_course(2, average_rating=3.2, review_count=5, teacher_name="林晓明", faculty_name="创新工程学院", type="COMPULSORY"),
        make_course(3, average_rating=4.4, review_count=60, teacher_name="黄建华", faculty_name="商学院"),
        make_course(4, average_rating=None, review_count=None, teacher_name="周梅", faculty_name="商学院", type="COMPULSORY"),
        make_course(5, average_rating=4.0, review_count=12, teacher_name="王艺琳", faculty_name="人文艺术学院"),
        make_course(6, average_rating=2.5, review_count=3, teacher_name="张红", faculty_name="酒店与旅游管理学院"),
        make_course(7, average_rating=4.6, review_count=80, teacher_name="赵明德", faculty_name="医学院", type="COMPULSORY"),
    ]


# =============================================================================
# DEFAULT PATH
# =============================================================================

def test_empty_criteria_returns_top_five_by_default_score():
    results = recommend(Criteria(), _catalog())

    assert len(results) == 5
    scores = [r.raw_score for r in results]
    assert scores == sorted(scores, reverse=True)
    assert results[0].course.id == 1
    assert results[0].raw_score == pytest.approx(score_default(results[0].course))


def test_empty_catalog_returns_nothing():
    assert recommend(Criteria(), []) == []
    assert recommend(Criteria(course_type=CourseType.ELECTIVE), []) == []


def test_default_score_uses_baselines_when_data_missing():
    course = make_course(1, average_rating=None, review_count=None)
    assert score_default(course) == pytest.approx(40.0)

    best = make_course(2, average_rating=5.0, review_count=500)
    assert score_default(best) == pytest.approx(100.0)


# =============================================================================
# FILTERING
# =============================================================================

def test_course_type_constraint_holds_on_hard_path():
    criteria = Criteria(course_type=CourseType.COMPULSORY)
    results = recommend(criteria, _catalog())

    assert results
    assert all(r.course.type == CourseType.COMPULSORY for r in results)


def test_hard_filter_credits_tolerance():
    catalog = [make_course(1, credits=3), make_course(2, credits=3.5), make_course(3, credits=4)]
    kept = hard_filter(Criteria(credits=3), catalog)
    assert [c.id for c in kept] == [1, 2]


def test_faculty_matching_is_bidirectional_and_ignores_empty_values():
    catalog = [
        make_course(1, faculty_name="创新工程学院"),
        make_course(2, faculty_name="创新工程"),
        make_course(3, faculty_name=None),
        make_course(4, faculty_name="商学院"),
    ]
    kept = hard_filter(Criteria(faculty="创新工程学院"), catalog)
    assert [c.id for c in kept] == [1, 2]


def test_soft_filter_keeps_course_matching_faculty_subject_area():
    catalog = [
        make_course(1, name="商业智能", code="BA101", faculty_name="商学院", teacher_name="周梅",
                    description="人工智能在商业分析中的应用"),
        make_course(2, name="内科学", code="MD101", faculty_name="医学院", teacher_name="赵明德",
                    description="内科常见疾病的诊断与治疗"),
    ]
    criteria = Criteria(faculty="创新工程学院")

    assert hard_filter(criteria, catalog) == []
    assert [c.id for c in soft_filter(criteria, catalog)] == [1]

    results = recommend(criteria, catalog)
    assert [r.course.id for r in results] == [1]


def test_falls_back_to_default_when_nothing_matches():
    catalog = _catalog()
    results = recommend(Criteria(teacher="孙丽丽"), catalog)

    assert len(results) == 5
    assert [r.course.id for r in results] == [r.course.id for r in recommend(Criteria(), catalog)]


# =============================================================================
# SCORING
# =============================================================================

def test_elective_three_credit_course_scores_above_eighty():
    catalog = [
        make_course(1, credits=3, type="ELECTIVE", average_rating=4.6, review_count=40),
        make_course(2, credits=4, type="COMPULSORY", average_rating=4.9, review_count=90),
    ]
    criteria = Criteria(credits=3, course_type=CourseType.ELECTIVE)

    results = recommend(criteria, catalog)

    assert len(results) == 1
    assert results[0].course.id == 1
    assert results[0].match_score > 80
    assert results[0].match_score == pytest.approx(82.5, abs=0.1)


def test_match_score_normalized_to_requested_ceiling():
    course = make_course(1, faculty_name="创新工程学院", average_rating=5.0, review_count=100)
    criteria = Criteria(faculty="创新工程学院")

    scored = aggregate_scores(criteria, course)

    assert score_ceiling(criteria) == 90.0
    assert scored.dimension_scores["specificity"] == 20.0
    assert scored.raw_score == pytest.approx(20 + 20 + 25 + 10 + 20 / 3)
    assert scored.match_score == pytest.approx(90.7, abs=0.05)


def test_keyword_coverage_is_share_of_matched_keywords():
    course = make_course(1, description="Python 编程与算法")
    scored = aggregate_scores(Criteria(keywords=["编程", "算法", "设计", "艺术"]), course)
    assert scored.dimension_scores["keyword_coverage"] == pytest.approx(12.5)


def test_zero_rating_counts_as_present():
    course = make_course(1, average_rating=0.0)
    assert score_rating_quality(course, Criteria()) == 0.0


def test_popularity_term_is_capped():
    assert popularity_term(0) == 0.0
    assert popularity_term(None) == 0.0
    assert popularity_term(1000) == 1.0


@pytest.mark.parametrize("difficulty,rating,expected", [
    (Difficulty.EASY, 4.2, 10.0),
    (Difficulty.EASY, 3.6, 20 / 3),
    (Difficulty.EASY, 3.0, 10 / 3),
    (Difficulty.HARD, 3.5, 10.0),
    (Difficulty.HARD, 4.5, 20 / 3),
    (Difficulty.MEDIUM, 4.0, 10.0),
    (Difficulty.MEDIUM, 4.8, 20 / 3),
    (None, 4.0, 20 / 3),
    (Difficulty.EASY, None, 20 / 3),
])
def test_difficulty_alignment(difficulty, rating, expected):
    course = make_course(1, average_rating=rating)
    assert score_difficulty_alignment(course, Criteria(difficulty=difficulty)) == pytest.approx(expected)


# =============================================================================
# RANKING
# =============================================================================

def test_recommend_is_idempotent():
    criteria = Criteria(course_type=CourseType.ELECTIVE, keywords=["课程"])
    catalog = _catalog()
    first = recommend(criteria, catalog)
    second = recommend(criteria, catalog)
    assert [(r.course.id, r.match_score, r.reason) for r in first] == \
        [(r.course.id, r.match_score, r.reason) for r in second]


def test_ties_keep_catalog_order():
    catalog = [make_course(i, teacher_name=None, faculty_name=None) for i in range(1, 5)]
    results = recommend(Criteria(course_type=CourseType.ELECTIVE), catalog)
    assert [r.course.id for r in results] == [1, 2, 3, 4]


def test_diversification_spreads_teachers_and_faculties():
    catalog = [
        make_course(1, average_rating=4.9, teacher_name="陈伟", faculty_name="创新工程学院"),
        make_course(2, average_rating=4.8, teacher_name="陈伟", faculty_name="创新工程学院"),
        make_course(3, average_rating=4.7, teacher_name="陈伟", faculty_name="创新工程学院"),
        make_course(4, average_rating=4.0, teacher_name="周梅", faculty_name="商学院"),
        make_course(5, average_rating=3.5, teacher_name="张红", faculty_name="酒店与旅游管理学院"),
        make_course(6, average_rating=3.0, teacher_name="周梅", faculty_name="商学院"),
    ]
    results = recommend(Criteria(course_type=CourseType.ELECTIVE), catalog)

    assert [r.course.id for r in results] == [1, 4, 5, 2, 3]
    first_pass = [r.course.teacher_name for r in results[:3]]
    assert len(set(first_pass)) == 3


def test_no_diversification_when_faculty_requested():
    catalog = [
        make_course(1, average_rating=4.9, teacher_name="陈伟"),
        make_course(2, average_rating=4.8, teacher_name="陈伟"),
        make_course(3, average_rating=4.7, teacher_name="林晓明"),
    ]
    results = recommend(Criteria(faculty="创新工程学院"), catalog)
    assert [r.course.id for r in results] == [1, 2, 3]


def test_results_truncated_to_max():
    catalog = [make_course(i, teacher_name=None, faculty_name=None) for i in range(1, 12)]
    assert len(RuleEngine().recommend(Criteria(course_type=CourseType.ELECTIVE), catalog)) == 5
    assert len(RuleEngine(max_results=3).recommend(Criteria(course_type=CourseType.ELECTIVE), catalog)) == 3


# =============================================================================
# REASONS
# =============================================================================

def test_reason_lists_clauses_in_fixed_order():
    course = make_course(
        1, faculty_name="创新工程学院", teacher_name="陈伟",
        average_rating=4.6, review_count=40, description="人工智能基础",
    )
    criteria = Criteria(faculty="创新工程学院", teacher="陈伟", keywords=["人工智能"])
    scored = aggregate_scores(criteria, course)

    assert explain_recommendation(scored, criteria) == (
        "来自创新工程学院，由您指定的陈伟老师授课，评分4.6分，学生评价优秀，"
        "与您感兴趣的人工智能相关，已有40位同学评价"
    )


def test_reason_falls_back_to_generic_phrase():
    course = make_course(1, average_rating=3.0, review_count=2)
    scored = aggregate_scores(Criteria(), course)
    assert explain_recommendation(scored, Criteria()) == "符合您的基本要求"


def test_engine_attaches_reasons():
    results = recommend(Criteria(course_type=CourseType.ELECTIVE), _catalog())
    assert all(r.reason for r in results)


def test_suggestion_lists_unset_dimensions():
    hint = suggest_next_question(Criteria(course_type=CourseType.ELECTIVE))
    assert "感兴趣的学院或专业方向" in hint
    assert "课程类型" not in hint
    assert "偏好的授课教师" in hint

    full = Criteria(
        faculty="商学院", course_type=CourseType.ELECTIVE, keywords=["投资"], teacher="黄建华"
    )
    assert suggest_next_question(full) == "如果您还有其他要求，请随时告诉我！"
