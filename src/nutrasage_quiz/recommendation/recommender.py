"""
recommender.py

Quiz answers -> product recommendation, on top of the Supabase quiz schema.

Pipeline (a short, sequential series of reads; nothing is written):
  1. answers -> tag names + matched option ids           (tag_extractor)
  2. tag names -> best answer_key rule                    (rule_matcher)
  3. rule product names -> active products, else fallback (fallback)
  4. option ids -> tag display objects (name + icon) for the results page

Every failure along the way ends in a fallback result; recommend() never
raises. The path taken is visible on RecommendationResult.source.

The result is derived at read time from current rules/products, so viewing a
saved result later can show a different recommendation if reference data
changed in between.
"""
from __future__ import annotations

from typing import List, Sequence

from nutrasage_quiz.errors import QuizFunnelError
from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.models import RecommendationResult, RecommendationSource, Tag
from nutrasage_quiz.quiz.results import load_answers
from nutrasage_quiz.recommendation.fallback import build_result, fallback_result, resolve_products
from nutrasage_quiz.recommendation.rule_matcher import describe_match, match_rule
from nutrasage_quiz.recommendation.tag_extractor import AnswersInput, TagExtractor
from nutrasage_quiz.repository import QuizRepository

logger = get_logger(__name__)


class QuizRecommender:
    def __init__(self, repository: QuizRepository) -> None:
        self.repository = repository
        self.extractor = TagExtractor(repository)

    # ------------------------------------------------------------------
    # Public APIs
    # ------------------------------------------------------------------
    def recommend(self, answers: AnswersInput) -> RecommendationResult:
        """
        Recommend products for one quiz session.

        Returns:
            RecommendationResult; source tells MATCHED / FALLBACK_CATALOG /
            FALLBACK_HARDCODED apart.
        """
        try:
            return self._recommend(answers)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Recommendation failed, using fallback products: %s",
                exc,
                extra={
                    "invoking_func": "recommend",
                    "invoking_purpose": "Answer -> product recommendation",
                    "next_step": "Return fallback products",
                    "resolution": "See preceding repository error for the failing table",
                },
            )
            return fallback_result(self.repository)

    def recommend_for_response(self, response_id: int) -> RecommendationResult:
        """Recompute the recommendation for a stored quiz response."""
        try:
            answers = load_answers(self.repository, response_id)
        except QuizFunnelError as exc:
            logger.warning(
                "Could not load answers for response %s: %s",
                response_id,
                exc,
                extra={"invoking_func": "recommend_for_response", "next_step": "Return fallback products"},
            )
            return fallback_result(self.repository)
        return self.recommend(answers)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _recommend(self, answers: AnswersInput) -> RecommendationResult:
        extraction = self.extractor.extract(answers)
        tags = self._display_tags(extraction.option_ids)

        if not extraction.tag_names:
            logger.info(
                "recommend_no_tags",
                extra={"invoking_func": "_recommend", "next_step": "Use fallback products"},
            )
            return fallback_result(self.repository, tags)

        rules = self.repository.fetch_rules()
        match = match_rule(extraction.tag_names, rules)
        logger.info(
            describe_match(match, extraction.tag_names),
            extra={"invoking_func": "_recommend", "next_step": "Resolve recommended products"},
        )
        if match is None:
            return fallback_result(self.repository, tags)

        catalog = self.repository.fetch_active_products(order_by="name")
        products = resolve_products(match.rule.product_names, catalog)
        if not products:
            logger.warning(
                "Rule %s matched but none of its products resolved",
                match.rule.id,
                extra={
                    "invoking_func": "_recommend",
                    "next_step": "Use fallback products",
                    "resolution": "Check answer_key.recommended_products against products.name",
                },
            )
            return fallback_result(self.repository, tags)

        return build_result(products, RecommendationSource.MATCHED, rule=match.rule, tags=tags)

    def _display_tags(self, option_ids: Sequence[int]) -> List[Tag]:
        if not option_ids:
            return []
        try:
            return self.repository.fetch_tags_for_options(option_ids)
        except QuizFunnelError as exc:
            # Display-only; the recommendation itself can still proceed
            logger.warning(
                "Could not load tag display objects: %s",
                exc,
                extra={"invoking_func": "_display_tags", "next_step": "Continue without tags"},
            )
            return []


def recommend(repository: QuizRepository, answers: AnswersInput) -> RecommendationResult:
    return QuizRecommender(repository).recommend(answers)
