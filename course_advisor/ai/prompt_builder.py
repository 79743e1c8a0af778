from typing import List, Sequence

from ..logic.contracts import Criteria, ScoredCourse
from ..logic.constants import CourseType, FACULTIES, FACULTY_TOPICS, TEACHERS
from .prompt_rules import (
    INTENT_ROLE_DEFINITION,
    INTENT_PARAMETER_DOCS,
    FACULTY_MAPPING_RULES,
    INTENT_RULES,
    INTENT_TYPE_DOCS,
    INTENT_TYPE_RULES,
    INTENT_OUTPUT_FORMAT,
    NARRATION_ROLE_DEFINITION,
    NARRATION_RULES,
    NARRATION_OUTPUT_FORMAT,
)

DIFFICULTY_LABELS = {"easy": "简单", "medium": "中等", "hard": "困难"}
DESCRIPTION_PREVIEW_LENGTH = 100


def _bullets(lines: List[str]) -> str:
    return "\n".join([f"- {line}" for line in lines])


def _numbered(lines: List[str]) -> str:
    return "\n".join([f"{i}. {line}" for i, line in enumerate(lines, start=1)])


def _course_type_label(course_type) -> str:
    return "必修课" if course_type == CourseType.COMPULSORY else "选修课"


def build_intent_system_prompt() -> str:
    """Constructs the static system prompt for criteria extraction."""
    faculties = _bullets([
        f"{name}：包含{'、'.join(FACULTY_TOPICS[name])}等相关课程" for name in FACULTIES
    ])
    teachers = _bullets([
        f"{name}（{faculty}，{title}）：{expertise}"
        for name, (faculty, title, expertise) in TEACHERS.items()
    ])

    return f"""{INTENT_ROLE_DEFINITION}

## 可用的学院列表（你需要将用户的模糊表达智能映射到具体学院）：
{faculties}

## 可用的教师列表：
{teachers}

## 可提取的参数：
{_bullets(INTENT_PARAMETER_DOCS)}

## 智能映射规则：
{_numbered(FACULTY_MAPPING_RULES)}

## 意图类型（intent 字段只能取以下值之一）：
{_bullets(INTENT_TYPE_DOCS)}

## 意图分类规则：
{_numbered(INTENT_TYPE_RULES)}

## 规则：
{_numbered(INTENT_RULES)}

必须严格按照以下JSON格式输出：
{INTENT_OUTPUT_FORMAT}"""


def render_criteria(criteria: Criteria) -> str:
    """Bullet list of the known criteria, empty string when nothing is known."""
    lines = []
    if criteria.course_type:
        lines.append(f"课程类型：{_course_type_label(criteria.course_type)}")
    if criteria.credits:
        lines.append(f"学分：{criteria.credits:g}")
    if criteria.keywords:
        lines.append(f"兴趣关键词：{'、'.join(criteria.keywords)}")
    if criteria.difficulty:
        lines.append(f"难度偏好：{DIFFICULTY_LABELS.get(criteria.difficulty.value, criteria.difficulty.value)}")
    if criteria.faculty:
        lines.append(f"学院：{criteria.faculty}")
    if criteria.teacher:
        lines.append(f"教师：{criteria.teacher}")
    return _bullets(lines)


def build_intent_user_prompt(utterance: str, prior: Criteria, recent_courses: Sequence[str] = ()) -> str:
    prompt = f"用户消息：{utterance}\n\n"

    if recent_courses:
        prompt += f"上次推荐的课程：\n{_bullets(list(recent_courses))}\n\n"

    known = render_criteria(prior)
    if known:
        prompt += f"已知的用户需求：\n{known}\n\n"

    prompt += "请分析用户消息，提取新的需求参数（特别注意将用户的模糊表达映射到具体学院），判断用户意图，并判断是否需要询问更多信息。"
    return prompt


def build_narration_system_prompt() -> str:
    """Constructs the static system prompt for reply generation."""
    return f"""{NARRATION_ROLE_DEFINITION}

要求：
{_numbered(NARRATION_RULES)}

必须严格按照以下JSON格式输出：
{NARRATION_OUTPUT_FORMAT}"""


def build_narration_user_prompt(criteria: Criteria, ranked: List[ScoredCourse]) -> str:
    """
    Constructs the user prompt from the criteria and the engine's picks.
    Descriptions are truncated to save tokens.
    """
    known = render_criteria(criteria)
    prompt = f"用户需求：\n{known or '- 暂无具体要求'}\n\n推荐的课程列表：\n"

    for index, scored in enumerate(ranked, start=1):
        course = scored.course
        prompt += f"{index}. {course.name} ({course.code})\n"
        prompt += f"   - 课程ID: {course.id}\n"
        prompt += f"   - 学分: {course.credits:g}\n"
        prompt += f"   - 类型: {'必修' if course.type == CourseType.COMPULSORY else '选修'}\n"
        if course.average_rating is not None:
            prompt += f"   - 评分: {course.average_rating:.1f}/5.0\n"
        if course.review_count:
            prompt += f"   - 评价数: {course.review_count}条\n"
        if course.teacher_name:
            prompt += f"   - 授课教师: {course.teacher_name}\n"
        if course.description:
            prompt += f"   - 简介: {course.description[:DESCRIPTION_PREVIEW_LENGTH]}...\n"
        prompt += f"   - 匹配度: {scored.match_score}\n\n"

    prompt += "请为这些课程生成友好的介绍文案和个性化推荐理由。"
    return prompt
