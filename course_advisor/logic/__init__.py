"""
Course Advisor Logic Module

Provides the deterministic rule engine, the keyword extractor, the template
narrator and the conversation orchestrator.
"""

from .contracts import (
    Criteria,
    Course,
    ScoredCourse,
    ExtractionResult,
    Narrative,
    CourseRecommendation,
    Message,
    Conversation,
    ConversationSummary,
    ChatReply,
)
from .engine import RuleEngine, recommend
from .constants import CourseType, Difficulty, MessageRole, MessageType

__all__ = [
    # Main engine
    "RuleEngine",
    "recommend",

    # Contracts
    "Criteria",
    "Course",
    "ScoredCourse",
    "ExtractionResult",
    "Narrative",
    "CourseRecommendation",
    "Message",
    "Conversation",
    "ConversationSummary",
    "ChatReply",

    # Enums
    "CourseType",
    "Difficulty",
    "MessageRole",
    "MessageType",
]
