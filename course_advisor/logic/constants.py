"""
Rule Engine Constants

Closed vocabularies, score weights, thresholds and enums used by the
criteria extractor and the rule engine.
All values are deterministic with no AI/ML components.
"""

from enum import Enum
from typing import Dict, List


# =============================================================================
# ENUMS
# =============================================================================

class CourseType(str, Enum):
    """Course type as recorded in the catalog."""
    COMPULSORY = "COMPULSORY"
    ELECTIVE = "ELECTIVE"


class Difficulty(str, Enum):
    """Requested course difficulty."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MessageType(str, Enum):
    TEXT = "text"
    RECOMMENDATION = "recommendation"


class IntentType(str, Enum):
    """What the user wants from this turn."""
    NEW_QUERY = "NEW_QUERY"      # fresh recommendation request
    REFINE = "REFINE"            # narrow down the last recommended courses
    SUPPLEMENT = "SUPPLEMENT"    # add or change conditions, then recommend again
    COMPARE = "COMPARE"
    DETAIL = "DETAIL"
    CHAT = "CHAT"                # small talk, no course list


# =============================================================================
# CLOSED VOCABULARIES
# =============================================================================

FACULTIES: List[str] = [
    "创新工程学院",
    "商学院",
    "人文艺术学院",
    "酒店与旅游管理学院",
    "医学院",
]

# name -> (faculty, title, expertise)
TEACHERS: Dict[str, tuple] = {
    "陈伟": ("创新工程学院", "教授", "人工智能与机器学习专家"),
    "林晓明": ("创新工程学院", "副教授", "软件工程与系统架构专家"),
    "黄建华": ("商学院", "教授", "财务管理与投资分析专家"),
    "周梅": ("商学院", "副教授", "市场营销策略专家"),
    "王艺琳": ("人文艺术学院", "教授", "设计与艺术评论家"),
    "刘芳": ("人文艺术学院", "副教授", "文化研究与创意写作专家"),
    "张红": ("酒店与旅游管理学院", "教授", "酒店管理专家"),
    "李强": ("酒店与旅游管理学院", "副教授", "旅游经济学专家"),
    "赵明德": ("医学院", "教授", "内科主任医师"),
    "孙丽丽": ("医学院", "副教授", "临床药理学专家"),
}

# Subject-area terms per faculty, used for concept -> faculty mapping
FACULTY_TOPICS: Dict[str, List[str]] = {
    "创新工程学院": ["计算机", "软件", "编程", "IT", "人工智能", "AI", "算法", "数据结构", "数据库"],
    "商学院": ["经济", "金融", "会计", "管理", "营销", "投资", "商业"],
    "人文艺术学院": ["艺术", "设计", "文化", "写作", "媒体", "创意"],
    "酒店与旅游管理学院": ["酒店", "旅游", "会展", "餐饮", "服务"],
    "医学院": ["医学", "医疗", "临床", "药理", "解剖", "生理", "健康"],
}

TOPIC_VOCABULARY: List[str] = [term for terms in FACULTY_TOPICS.values() for term in terms]

# =============================================================================
# EXTRACTION TRIGGERS
# =============================================================================

COMPULSORY_TRIGGERS = ["必修", "compulsory", "required"]
ELECTIVE_TRIGGERS = ["选修", "elective", "optional"]

EASY_TRIGGERS = ["简单", "容易", "轻松", "easy"]
HARD_TRIGGERS = ["难", "有挑战", "挑战", "hard", "challenging"]

CREDIT_PATTERNS = [
    r"(\d+)\s*个?学分",
    r"(\d+)\s*credits?\b",
]

# =============================================================================
# INTENT TRIGGERS
# =============================================================================

COMPARE_TRIGGERS = ["比较", "对比", "区别", "哪个更好", "哪门更好", "哪个好"]
DETAIL_TRIGGERS = ["怎么样", "讲什么", "讲些什么", "介绍一下", "详细介绍", "详情", "难吗", "好过吗"]
# words that point back at the previous recommendation
REFERENCE_TRIGGERS = ["上述", "刚才", "这些", "其中", "里面", "上面"]
CHAT_TRIGGERS = ["你好", "hi", "hello", "谢谢", "感谢", "再见", "拜拜", "好的", "可以", "嗯"]
COURSE_REQUEST_TRIGGERS = ["课", "推荐"]

ORDINAL_PATTERN = r"第\s*([一二三四五六七八九十\d]+)\s*[门个]"
CHINESE_NUMERALS = {"一": 1, "二": 2, "两": 2, "三": 3, "四": 4, "五": 5, "六": 6, "七": 7, "八": 8, "九": 9, "十": 10}

# =============================================================================
# SCORING WEIGHTS (match score, ceiling 100)
# =============================================================================

FACULTY_MATCH_BONUS = 20.0
TEACHER_MATCH_BONUS = 10.0

KEYWORD_WEIGHT = 25.0
KEYWORD_BASELINE = 20.0          # no keywords requested

RATING_WEIGHT = 25.0
RATING_BASELINE = 10.0           # course has no rating yet

POPULARITY_WEIGHT = 10.0
POPULARITY_BASELINE = 10.0 / 3   # course has no reviews yet
POPULARITY_REVIEW_CAP = 100

DIFFICULTY_WEIGHT = 10.0
DIFFICULTY_MID = 20.0 / 3
DIFFICULTY_LOW = 10.0 / 3

# Ceiling a course can reach when neither faculty nor teacher is requested
BASE_SCORE_CEILING = KEYWORD_WEIGHT + RATING_WEIGHT + POPULARITY_WEIGHT + DIFFICULTY_WEIGHT

# =============================================================================
# DEFAULT (POPULARITY) PATH
# =============================================================================

DEFAULT_RATING_WEIGHT = 60.0
DEFAULT_RATING_BASELINE = 30.0
DEFAULT_POPULARITY_WEIGHT = 40.0
DEFAULT_POPULARITY_BASELINE = 10.0

# =============================================================================
# FILTERING / RANKING CONFIGURATION
# =============================================================================

CREDITS_TOLERANCE = 0.5
MAX_RECOMMENDATIONS = 5

HIGH_RATING_THRESHOLD = 4.0
POPULAR_REVIEW_THRESHOLD = 10

# =============================================================================
# CONVERSATION DEFAULTS
# =============================================================================

DEFAULT_CONVERSATION_TITLE = "新对话"
TITLE_MAX_LENGTH = 20
TITLE_ELLIPSIS = "..."
