"""
Conversation Store

SQLAlchemy persistence for conversations, their messages and accumulated
criteria. Every database error surfaces as PersistenceFailure.
"""

import logging
from contextlib import contextmanager
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .contracts import (
    Conversation,
    ConversationSummary,
    CourseRecommendation,
    Criteria,
    Message,
    utc_now,
)
from .constants import DEFAULT_CONVERSATION_TITLE
from .errors import ConversationNotFound, PersistenceFailure
from ..models import ConversationRecord, MessageRecord

logger = logging.getLogger(__name__)


def _to_message(record: MessageRecord) -> Message:
    courses = None
    if record.courses:
        courses = [CourseRecommendation.model_validate(c) for c in record.courses]
    return Message(
        id=record.message_id,
        role=record.role,
        content=record.content,
        type=record.message_type,
        courses=courses,
        timestamp=record.created_at,
    )


def _to_conversation(record: ConversationRecord) -> Conversation:
    return Conversation(
        id=record.conversation_id,
        user_id=record.user_id,
        title=record.title,
        messages=[_to_message(m) for m in record.messages],
        criteria=Criteria.from_untrusted(record.criteria),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _to_summary(record: ConversationRecord) -> ConversationSummary:
    return ConversationSummary(
        id=record.conversation_id,
        title=record.title,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _to_message_record(message: Message) -> MessageRecord:
    courses = None
    if message.courses:
        courses = [c.model_dump(by_alias=True, mode="json") for c in message.courses]
    return MessageRecord(
        message_id=message.id,
        role=message.role.value,
        content=message.content,
        message_type=message.type.value,
        courses=courses,
        created_at=message.timestamp,
    )


class SqlConversationStore:
    """
    Args:
        session_factory: Callable returning a new Session
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    @contextmanager
    def _session(self, action: str):
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"❌ Conversation store failed to {action}: {e}")
            raise PersistenceFailure(f"Failed to {action}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _require(session: Session, conversation_id: str) -> ConversationRecord:
        record = (
            session.query(ConversationRecord)
            .filter(ConversationRecord.conversation_id == conversation_id)
            .first()
        )
        if record is None:
            raise ConversationNotFound(conversation_id)
        return record

    # =========================================================================
    # CONVERSATIONS
    # =========================================================================

    def create(self, conversation_id: str, user_id: str) -> Conversation:
        now = utc_now()
        with self._session("create conversation") as session:
            record = ConversationRecord(
                conversation_id=conversation_id,
                user_id=user_id,
                title=DEFAULT_CONVERSATION_TITLE,
                criteria={},
                created_at=now,
                updated_at=now,
            )
            session.add(record)
            session.flush()
            conversation = _to_conversation(record)
        logger.info(f"🆕 Created conversation {conversation_id} for user {user_id}")
        return conversation

    def get(self, conversation_id: str) -> Optional[Conversation]:
        with self._session("load conversation") as session:
            record = (
                session.query(ConversationRecord)
                .filter(ConversationRecord.conversation_id == conversation_id)
                .first()
            )
            return _to_conversation(record) if record else None

    def list_all(self, user_id: str) -> List[ConversationSummary]:
        """Conversations of a user, most recently updated first."""
        with self._session("list conversations") as session:
            records = (
                session.query(ConversationRecord)
                .filter(ConversationRecord.user_id == user_id)
                .order_by(ConversationRecord.updated_at.desc(), ConversationRecord.id.desc())
                .all()
            )
            return [_to_summary(r) for r in records]

    def delete(self, conversation_id: str) -> bool:
        with self._session("delete conversation") as session:
            record = (
                session.query(ConversationRecord)
                .filter(ConversationRecord.conversation_id == conversation_id)
                .first()
            )
            if record is None:
                return False
            session.delete(record)
        logger.info(f"🗑️ Deleted conversation {conversation_id}")
        return True

    def delete_all(self, user_id: str) -> int:
        with self._session("delete conversations") as session:
            records = (
                session.query(ConversationRecord)
                .filter(ConversationRecord.user_id == user_id)
                .all()
            )
            for record in records:
                session.delete(record)
            count = len(records)
        logger.info(f"🗑️ Deleted {count} conversations for user {user_id}")
        return count

    # =========================================================================
    # UPDATES
    # =========================================================================

    def append_message(self, conversation_id: str, message: Message) -> None:
        with self._session("append message") as session:
            record = self._require(session, conversation_id)
            record.messages.append(_to_message_record(message))
            record.updated_at = utc_now()

    def update_criteria(self, conversation_id: str, criteria: Criteria) -> None:
        with self._session("update criteria") as session:
            record = self._require(session, conversation_id)
            record.criteria = criteria.to_context()
            record.updated_at = utc_now()

    def update_title(self, conversation_id: str, title: str) -> None:
        with self._session("update title") as session:
            record = self._require(session, conversation_id)
            record.title = title
            record.updated_at = utc_now()

    def record_reply(self, conversation_id: str, message: Message, criteria: Criteria) -> None:
        """Append the assistant message and store the merged criteria in one transaction."""
        with self._session("record reply") as session:
            record = self._require(session, conversation_id)
            record.messages.append(_to_message_record(message))
            record.criteria = criteria.to_context()
            record.updated_at = utc_now()
