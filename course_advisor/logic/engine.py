"""
Rule Engine

Deterministic pipeline that turns merged criteria and a course catalog into
a short, ranked list of recommendations.
This is the primary entry point for candidate selection.
"""

import logging
import time
from typing import List

from .contracts import Criteria, Course, ScoredCourse
from .filters import hard_filter, soft_filter
from .aggregator import batch_aggregate, aggregate_default
from .ranker import rank_courses, diversify, get_final_ranked_list
from .output_assembler import attach_reasons
from .constants import MAX_RECOMMENDATIONS

logger = logging.getLogger(__name__)


class RuleEngine:
    """
    Pipeline flow:
    1. Validity check - empty criteria go straight to the default ranking
    2. Hard filter - every requested constraint must hold
    3. Soft filter - any one constraint holds (only when 2 is empty)
    4. Scoring - five dimension scores, normalized to a match score
    5. Ranking - stable sort, then teacher/faculty diversity
    6. Truncation and reasons
    """

    def __init__(self, max_results: int = MAX_RECOMMENDATIONS):
        self.max_results = max_results

    def recommend(self, criteria: Criteria, catalog: List[Course]) -> List[ScoredCourse]:
        """
        Select and rank courses for the given criteria.

        Never raises for well-formed input; identical input yields identical
        output.

        Args:
            criteria: Merged criteria for the conversation
            catalog: Full list of candidate courses

        Returns:
            At most `max_results` scored courses, best first
        """
        start_time = time.perf_counter()

        if not catalog:
            logger.info("📭 Empty catalog, nothing to recommend")
            return []

        if criteria.is_empty():
            results = self.recommend_default(catalog)
            logger.info(f"⭐ Default recommendations: {len(results)} courses")
            return results

        candidates = hard_filter(criteria, catalog)
        if candidates:
            logger.info(f"🎯 Hard filter kept {len(candidates)}/{len(catalog)} courses")
        else:
            candidates = soft_filter(criteria, catalog)
            logger.info(f"🔍 Hard filter empty, soft filter kept {len(candidates)} courses")

        if not candidates:
            logger.info("↩️ No course matches any constraint, using default ranking")
            return self.recommend_default(catalog)

        ranked = rank_courses(batch_aggregate(criteria, candidates))

        if not (criteria.faculty or criteria.teacher):
            ranked = diversify(ranked, self.max_results)

        results = attach_reasons(get_final_ranked_list(ranked, self.max_results), criteria)

        elapsed = (time.perf_counter() - start_time) * 1000
        logger.info(f"✅ Recommended {len(results)} courses in {elapsed:.2f}ms")
        return results

    def recommend_default(self, catalog: List[Course]) -> List[ScoredCourse]:
        """Rank the whole catalog by rating and popularity."""
        ranked = rank_courses([aggregate_default(c) for c in catalog])
        return attach_reasons(get_final_ranked_list(ranked, self.max_results), Criteria())


def recommend(criteria: Criteria, catalog: List[Course]) -> List[ScoredCourse]:
    """Convenience function using a default RuleEngine."""
    return RuleEngine().recommend(criteria, catalog)
