"""
Conversation Orchestrator

Runs one conversational turn end to end:
extract -> route by intent -> merge -> filter/score -> narrate -> persist.
Turns on the same conversation are serialized; different conversations
run concurrently. Store and catalog calls are synchronous SQLAlchemy work
and run in the threadpool so they do not block the event loop.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Sequence

from fastapi.concurrency import run_in_threadpool

from .catalog import CourseCatalog
from .contracts import (
    ChatReply,
    Conversation,
    ConversationSummary,
    Course,
    CourseRecommendation,
    Criteria,
    ExtractionResult,
    Message,
    Narrative,
    ScoredCourse,
    new_conversation_id,
)
from .constants import (
    IntentType,
    MessageRole,
    MessageType,
    DEFAULT_CONVERSATION_TITLE,
    TITLE_MAX_LENGTH,
    TITLE_ELLIPSIS,
)
from .engine import RuleEngine
from .errors import CatalogUnavailable, ConversationNotFound, ServiceUnavailable
from .extractor import CriteriaExtractor, KeywordCriteriaExtractor
from .filters import hard_filter
from .intents import resolve_courses
from .narrator import Narrator, TemplateNarrator
from .output_assembler import suggest_next_question
from .responders import (
    chat_reply,
    compare_courses,
    course_not_found,
    describe_course,
    COMPARE_ASK,
    COMPARE_NOT_FOUND,
    DETAIL_ASK,
    REFINE_NO_MATCH,
)
from .store import SqlConversationStore

logger = logging.getLogger(__name__)

CATALOG_APOLOGY = "抱歉，课程数据暂时无法加载，请稍后再试。"
NO_MATCH_REPLY = "抱歉，暂时没有找到符合您要求的课程。您可以换个说法或放宽一些条件试试。"

# intents answered with text about courses; criteria stay as they were
LOOKUP_INTENTS = (IntentType.DETAIL, IntentType.COMPARE)


def merge_criteria(prior: Criteria, delta: Criteria) -> Criteria:
    """
    Per field, the delta wins when it carries a value, otherwise the prior
    value is kept. Keywords are replaced, not unioned.
    """
    merged = {}
    for name in Criteria.model_fields:
        value = getattr(delta, name)
        merged[name] = value if value not in (None, []) else getattr(prior, name)
    return Criteria(**merged)


def derive_title(utterance: str) -> str:
    text = " ".join((utterance or "").split())
    if not text:
        return DEFAULT_CONVERSATION_TITLE
    if len(text) > TITLE_MAX_LENGTH:
        return text[:TITLE_MAX_LENGTH] + TITLE_ELLIPSIS
    return text


class ConversationOrchestrator:
    """
    Args:
        store: Conversation persistence
        catalog: Source of candidate courses
        extractor: Preferred extraction strategy (usually the LLM one)
        narrator: Preferred narration strategy (usually the LLM one)
        engine: Rule engine, defaults to a standard RuleEngine
    """

    def __init__(
        self,
        store: SqlConversationStore,
        catalog: CourseCatalog,
        extractor: Optional[CriteriaExtractor] = None,
        narrator: Optional[Narrator] = None,
        engine: Optional[RuleEngine] = None,
    ):
        self.store = store
        self.catalog = catalog
        self.extractor = extractor
        self.narrator = narrator
        self.engine = engine or RuleEngine()
        self.fallback_extractor = KeywordCriteriaExtractor()
        self.fallback_narrator = TemplateNarrator()
        # a lock lives only while a turn for its conversation runs or waits
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def _conversation_lock(self, conversation_id: str):
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        self._lock_users[conversation_id] = self._lock_users.get(conversation_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[conversation_id] -= 1
            if not self._lock_users[conversation_id]:
                del self._lock_users[conversation_id]
                del self._locks[conversation_id]

    # =========================================================================
    # TURN
    # =========================================================================

    async def submit_turn(
        self,
        conversation_id: Optional[str],
        user_id: str,
        utterance: str,
    ) -> ChatReply:
        """
        Process one user utterance and return the assistant reply.

        Args:
            conversation_id: Existing conversation, or None to start a new one
            user_id: Calling user
            utterance: Free-text message

        Returns:
            ChatReply with the reply text, recommended courses and merged criteria

        Raises:
            PersistenceFailure: The store could not be read or written
            ConversationNotFound: The id belongs to another user
        """
        conversation_id = conversation_id or new_conversation_id()
        async with self._conversation_lock(conversation_id):
            return await self._run_turn(conversation_id, user_id, utterance)

    async def _run_turn(self, conversation_id: str, user_id: str, utterance: str) -> ChatReply:
        conversation = await run_in_threadpool(self.store.get, conversation_id)
        if conversation is None:
            conversation = await run_in_threadpool(self.store.create, conversation_id, user_id)
        elif conversation.user_id != user_id:
            raise ConversationNotFound(conversation_id)

        is_first_message = not conversation.has_user_message()
        user_message = Message(role=MessageRole.USER, content=utterance)
        await run_in_threadpool(self.store.append_message, conversation_id, user_message)
        if is_first_message:
            await run_in_threadpool(self.store.update_title, conversation_id, derive_title(utterance))

        recent = conversation.last_recommended()
        extraction = await self._extract(utterance, conversation.criteria, [c.name for c in recent])

        intent = extraction.intent
        if intent == IntentType.REFINE and not recent:
            intent = IntentType.SUPPLEMENT
        logger.info(f"🧭 [{conversation_id}] Intent {intent.value} ({extraction.source})")

        if intent == IntentType.CHAT:
            return await self._reply_text(conversation_id, chat_reply(utterance), conversation.criteria)

        if intent in LOOKUP_INTENTS:
            criteria = conversation.criteria
        else:
            criteria = merge_criteria(conversation.criteria, extraction.delta)
            logger.info(f"🧩 [{conversation_id}] Criteria after merge: {criteria.to_context()}")

        try:
            catalog = await run_in_threadpool(self.catalog.get_all)
        except CatalogUnavailable as e:
            logger.error(f"❌ [{conversation_id}] Catalog unavailable: {e}")
            return await self._reply_text(conversation_id, CATALOG_APOLOGY, criteria)

        if intent == IntentType.DETAIL:
            content = self._detail(utterance, extraction, catalog, recent)
            return await self._reply_text(conversation_id, content, criteria)
        if intent == IntentType.COMPARE:
            content = self._comparison(utterance, extraction, catalog, recent)
            return await self._reply_text(conversation_id, content, criteria)

        if intent == IntentType.REFINE:
            pool = hard_filter(criteria, _recent_in_catalog(recent, catalog))
            if not pool:
                return await self._reply_text(conversation_id, REFINE_NO_MATCH, criteria)
            ranked = self.engine.recommend(criteria, pool)
        else:
            ranked = self.engine.recommend(criteria, catalog)
            if not ranked:
                return await self._reply_text(conversation_id, NO_MATCH_REPLY, criteria)

        narrative = await self._narrate(criteria, ranked)
        return await self._reply_recommendation(conversation_id, criteria, ranked, narrative, extraction)

    async def _extract(self, utterance: str, prior: Criteria, recent_courses: Sequence[str]) -> ExtractionResult:
        if self.extractor is not None and self.extractor.available:
            try:
                return await self.extractor.extract(utterance, prior, recent_courses)
            except ServiceUnavailable as e:
                logger.warning(f"⚠️ LLM extraction unavailable, using keyword matching: {e}")
        return await self.fallback_extractor.extract(utterance, prior, recent_courses)

    async def _narrate(self, criteria: Criteria, ranked: List[ScoredCourse]) -> Narrative:
        if self.narrator is not None and self.narrator.available:
            try:
                return await self.narrator.narrate(criteria, ranked)
            except ServiceUnavailable as e:
                logger.warning(f"⚠️ LLM narration unavailable, using template: {e}")
        return await self.fallback_narrator.narrate(criteria, ranked)

    def _detail(
        self,
        utterance: str,
        extraction: ExtractionResult,
        catalog: List[Course],
        recent: List[CourseRecommendation],
    ) -> str:
        courses = resolve_courses(utterance, extraction.course_refs, catalog, recent)
        if not courses and extraction.course_refs:
            return course_not_found(extraction.course_refs[0])
        if not courses:
            # "这门课怎么样" refers to the top of the last list
            courses = _recent_in_catalog(recent, catalog)[:1]
        if not courses:
            return DETAIL_ASK
        return describe_course(courses[0])

    def _comparison(
        self,
        utterance: str,
        extraction: ExtractionResult,
        catalog: List[Course],
        recent: List[CourseRecommendation],
    ) -> str:
        courses = resolve_courses(utterance, extraction.course_refs, catalog, recent)
        if not courses and not extraction.course_refs:
            courses = _recent_in_catalog(recent, catalog)[:2]
        if len(courses) < 2:
            return COMPARE_NOT_FOUND if extraction.course_refs else COMPARE_ASK
        return compare_courses(courses)

    async def _reply_text(self, conversation_id: str, content: str, criteria: Criteria) -> ChatReply:
        message = Message(role=MessageRole.ASSISTANT, content=content, type=MessageType.TEXT)
        await run_in_threadpool(self.store.record_reply, conversation_id, message, criteria)
        return ChatReply(
            type=MessageType.TEXT,
            content=content,
            updated_context=criteria,
            conversation_id=conversation_id,
        )

    async def _reply_recommendation(
        self,
        conversation_id: str,
        criteria: Criteria,
        ranked: List[ScoredCourse],
        narrative: Narrative,
        extraction: ExtractionResult,
    ) -> ChatReply:
        courses = [
            CourseRecommendation.from_scored(scored, narrative.reasons.get(scored.course.id))
            for scored in ranked
        ]

        suggestion = narrative.suggestion
        if not suggestion and extraction.need_more_info and extraction.clarifying_question:
            suggestion = extraction.clarifying_question
        if not suggestion:
            suggestion = suggest_next_question(criteria)
        content = f"{narrative.greeting}\n\n{suggestion}"

        message = Message(
            role=MessageRole.ASSISTANT,
            content=content,
            type=MessageType.RECOMMENDATION,
            courses=courses,
        )
        await run_in_threadpool(self.store.record_reply, conversation_id, message, criteria)
        logger.info(
            f"💬 [{conversation_id}] Replied with {len(courses)} courses "
            f"({extraction.source} extraction, {narrative.source} narration)"
        )

        return ChatReply(
            type=MessageType.RECOMMENDATION,
            content=content,
            courses=courses,
            updated_context=criteria,
            conversation_id=conversation_id,
        )

    # =========================================================================
    # CONVERSATION MANAGEMENT
    # =========================================================================

    def create_conversation(self, user_id: str) -> Conversation:
        return self.store.create(new_conversation_id(), user_id)

    def get_conversation(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = self.store.get(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            raise ConversationNotFound(conversation_id)
        return conversation

    def list_conversations(self, user_id: str) -> List[ConversationSummary]:
        return self.store.list_all(user_id)

    def delete_conversation(self, conversation_id: str, user_id: str) -> None:
        self.get_conversation(conversation_id, user_id)
        self.store.delete(conversation_id)

    def delete_all_conversations(self, user_id: str) -> int:
        return self.store.delete_all(user_id)


def _recent_in_catalog(recent: List[CourseRecommendation], catalog: List[Course]) -> List[Course]:
    """Catalog entries of the last recommended courses, in their shown order."""
    by_id = {course.id: course for course in catalog}
    return [by_id[c.id] for c in recent if c.id in by_id]
