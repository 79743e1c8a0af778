"""
Pipeline Runner

Wires the conversation orchestrator to its collaborators:
1. Conversation store and course catalog on a session factory
2. LLM strategies on one shared text-generation client
3. Deterministic fallbacks (inside the orchestrator)

This is a pure wiring layer - NO scoring, NO DB queries, NO business logic.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from .catalog import CatalogCache, SqlCourseCatalog
from .orchestrator import ConversationOrchestrator
from .store import SqlConversationStore
from ..ai.client import TextGenerationClient
from ..ai.explainer import LLMNarrator
from ..ai.intent_parser import LLMCriteriaExtractor
from ..settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def build_orchestrator(
    session_factory: Callable[[], Session],
    config: Optional[Settings] = None,
    client: Optional[TextGenerationClient] = None,
) -> ConversationOrchestrator:
    """
    Build a fully wired orchestrator.

    Args:
        session_factory: Callable returning a new Session
        config: Settings, defaults to the environment
        client: Text-generation client shared by both LLM strategies

    Returns:
        ConversationOrchestrator
    """
    config = config or default_settings
    client = client or TextGenerationClient(config)

    cache = CatalogCache(ttl_seconds=config.catalog_cache_ttl_seconds)
    orchestrator = ConversationOrchestrator(
        store=SqlConversationStore(session_factory),
        catalog=SqlCourseCatalog(session_factory, cache),
        extractor=LLMCriteriaExtractor(client),
        narrator=LLMNarrator(client),
    )

    if client.available:
        logger.info(f"🤖 LLM strategies enabled (model {client.model})")
    else:
        logger.info("🔑 LLM not configured, using keyword extraction and template replies")

    return orchestrator
