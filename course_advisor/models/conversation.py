from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from .base import Base
from ..logic.contracts import utc_now


class ConversationRecord(Base):
    __tablename__ = "ai_conversations"

    id = Column(Integer, primary_key=True)
    conversation_id = Column(String(64), unique=True, index=True, nullable=False)
    user_id = Column(String(64), index=True, nullable=False)
    title = Column(String(64), nullable=False, default="新对话")
    criteria = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, nullable=False)

    messages = relationship(
        "MessageRecord",
        back_populates="conversation",
        order_by="MessageRecord.id",
        cascade="all, delete-orphan",
    )


class MessageRecord(Base):
    __tablename__ = "ai_messages"

    id = Column(Integer, primary_key=True)
    message_id = Column(String(64), unique=True, nullable=False)
    conversation_pk = Column(Integer, ForeignKey("ai_conversations.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(16), nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(String(16), nullable=False, default="text")
    courses = Column(JSON)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    conversation = relationship("ConversationRecord", back_populates="messages")
