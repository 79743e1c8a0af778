from .client import TextGenerationClient
from .intent_parser import LLMCriteriaExtractor
from .explainer import LLMNarrator

__all__ = ["TextGenerationClient", "LLMCriteriaExtractor", "LLMNarrator"]
