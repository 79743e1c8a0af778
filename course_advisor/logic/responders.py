"""
Text replies for turns that do not produce a course list: small talk,
course details and course comparisons. All replies are templates built from
catalog data.
"""

from typing import List

from .contracts import Course
from .constants import CourseType

# first trigger contained in the message wins
CHAT_REPLIES = [
    ("你好", "你好！👋 我是课程推荐助手，很高兴为您服务。请告诉我您想学习什么类型的课程，我来为您推荐！"),
    ("hello", "Hello! 👋 欢迎使用课程推荐系统，请告诉我您的学习需求。"),
    ("hi", "Hi! 👋 我是课程推荐助手，请问有什么可以帮您的？"),
    ("谢谢", "不客气！😊 如果还有其他问题，随时可以问我。祝您学习愉快！"),
    ("感谢", "很高兴能帮到您！😊 如果需要更多推荐，随时告诉我。"),
    ("再见", "再见！👋 祝您学习进步，有需要随时回来找我！"),
    ("拜拜", "拜拜！👋 期待下次为您服务！"),
    ("好的", "好的！如果您有其他问题或想了解更多课程，随时告诉我。😊"),
    ("可以", "好的，收到！有什么其他需要帮助的吗？"),
    ("嗯", "好的，还有什么可以帮您的吗？比如推荐某个领域的课程？"),
]
CHAT_FALLBACK = "我是课程推荐助手，主要帮您推荐合适的课程。请告诉我您想学习什么领域的知识，我来为您推荐！😊"

DETAIL_ASK = "请告诉我您想了解哪门课程的详情。"
COMPARE_ASK = "请告诉我您想比较哪些课程。例如：\"比较人工智能导论和数据库系统\""
COMPARE_NOT_FOUND = "抱歉，我找不到您提到的某些课程。请确认课程名称是否正确。"
REFINE_NO_MATCH = "上次推荐的课程中没有符合新条件的。您可以放宽一些条件，或者让我重新为您推荐。"

UNKNOWN = "未知"


def chat_reply(utterance: str) -> str:
    text = (utterance or "").strip().lower()
    for trigger, reply in CHAT_REPLIES:
        if trigger in text:
            return reply
    return CHAT_FALLBACK


def _type_label(course_type: CourseType) -> str:
    return "必修课" if course_type == CourseType.COMPULSORY else "选修课"


def _rating_label(course: Course) -> str:
    if course.average_rating is None:
        return "暂无评分"
    return f"{course.average_rating:.1f} ⭐"


def describe_course(course: Course) -> str:
    lines = [
        f"📚 **{course.name}**",
        "",
        "**基本信息**",
        f"- 课程代码：{course.code}",
        f"- 所属学院：{course.faculty_name or UNKNOWN}",
        f"- 学分：{course.credits:g}",
        f"- 类型：{_type_label(course.type)}",
        f"- 授课教师：{course.teacher_name or UNKNOWN}",
        f"- 综合评分：{_rating_label(course)}",
        f"- 评价数：{course.review_count or 0}",
    ]
    if course.description:
        lines += ["", "**课程简介**", course.description]
    return "\n".join(lines)


def compare_courses(courses: List[Course]) -> str:
    lines = ["📊 **课程对比分析**", ""]
    for course in courses:
        lines += [
            f"**{course.name}**",
            f"- 学院：{course.faculty_name or UNKNOWN}",
            f"- 学分：{course.credits:g}",
            f"- 类型：{_type_label(course.type)}",
            f"- 评分：{_rating_label(course)}（{course.review_count or 0}条评价）",
            "",
        ]

    rated = [c for c in courses if c.average_rating is not None]
    if rated:
        best = max(rated, key=lambda c: (c.average_rating, c.review_count or 0))
        lines.append(f"⭐ 从学生评价来看，《{best.name}》的口碑最好。")
    lines.append("💡 建议您根据自己的学习目标和时间安排来选择适合的课程。")
    return "\n".join(lines)


def course_not_found(name: str) -> str:
    return f"抱歉，我找不到\"{name}\"这门课程。请确认课程名称是否正确。"
