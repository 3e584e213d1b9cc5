"""
rules.py

Authoring helpers for answer_key rules.

Keys are always written in canonical form (trimmed, de-duplicated, sorted,
comma-joined) and product lists trimmed, so what the admin types as
"stress, low-energy,stress" is stored as "low-energy,stress".
"""
from __future__ import annotations

from typing import Iterable, Optional, Union

from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.models import Rule, split_csv
from nutrasage_quiz.recommendation.rule_matcher import tag_key
from nutrasage_quiz.repository import QuizRepository

logger = get_logger(__name__)


def normalize_tag_combination(tags: Union[str, Iterable[str]]) -> str:
    if isinstance(tags, str):
        tags = split_csv(tags)
    return tag_key(tags)


def normalize_product_list(products: Union[str, Iterable[str]]) -> str:
    if isinstance(products, str):
        products = split_csv(products)
    out = []
    for name in products:
        name = name.strip()
        if name and name not in out:
            out.append(name)
    return ",".join(out)


def save_rule(
    repository: QuizRepository,
    tag_combination: Union[str, Iterable[str]],
    recommended_products: Union[str, Iterable[str]],
    *,
    coupon_code: Optional[str] = None,
    discount_percentage: Optional[float] = None,
    rule_id: Optional[int] = None,
) -> Rule:
    """Insert (or update, when rule_id is given) a rule with a canonical key."""
    key = normalize_tag_combination(tag_combination)
    products = normalize_product_list(recommended_products)
    if not key:
        raise ValueError("tag_combination needs at least one tag")
    if not products:
        raise ValueError("recommended_products needs at least one product name")
    if discount_percentage is not None and not 0 <= float(discount_percentage) <= 100:
        raise ValueError("discount_percentage must be between 0 and 100")

    payload = {
        "tag_combination": key,
        "recommended_products": products,
        "coupon_code": (coupon_code or "").strip() or None,
        "discount_percentage": discount_percentage,
    }
    if rule_id is None:
        row = repository.insert_rule(payload)
    else:
        row = repository.update_rule(rule_id, payload)

    logger.info(
        "Saved rule %s [%s] -> %s",
        row.get("id", rule_id),
        key,
        products,
        extra={"invoking_func": "save_rule"},
    )
    return Rule.from_row(row)


def delete_rule(repository: QuizRepository, rule_id: int) -> None:
    repository.delete_rule(rule_id)
    logger.info("Deleted rule %s", rule_id, extra={"invoking_func": "delete_rule"})
