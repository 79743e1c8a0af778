# Export all course advisor models for easy imports
from .base import Base
from .conversation import ConversationRecord, MessageRecord
from .course import CourseRecord

__all__ = [
    "Base",
    "ConversationRecord",
    "MessageRecord",
    "CourseRecord",
]
