"""
fallback.py

Turn a matched rule (or no rule) into a presentable product list, and price it.

Fallback ladder:
  rule products resolved by name  -> MATCHED
  first 3 active products by id   -> FALLBACK_CATALOG
  fixed placeholder triple        -> FALLBACK_HARDCODED (cannot fail)
"""
from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from nutrasage_quiz.errors import ReferenceDataError
from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.models import Product, RecommendationResult, RecommendationSource, Rule, Tag
from nutrasage_quiz.repository import QuizRepository

logger = get_logger(__name__)

FALLBACK_PRODUCT_COUNT = 3

PLACEHOLDER_IMAGE_URL = (
    "https://images.pexels.com/photos/4021775/pexels-photo-4021775.jpeg?auto=compress&cs=tinysrgb&w=400"
)

HARDCODED_PRODUCTS: Tuple[Product, ...] = (
    Product(id=None, name="Daily Energy Boost", description="Natural energy enhancement",
            image_url=PLACEHOLDER_IMAGE_URL, srp=999),
    Product(id=None, name="Stress Relief Complex", description="Adaptogenic herbs for stress",
            image_url=PLACEHOLDER_IMAGE_URL, srp=899),
    Product(id=None, name="Recovery & Immunity", description="Support natural healing",
            image_url=PLACEHOLDER_IMAGE_URL, srp=1099),
)


def _norm(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def round_half_up(value: float) -> int:
    # round() is banker's rounding; prices are rounded half-up
    return int(math.floor(value + 0.5))


def resolve_products(names: Iterable[str], catalog: Sequence[Product]) -> List[Product]:
    """
    Map recommended names to active catalog products (trimmed, case-insensitive,
    exact text). Unknown names are dropped; order follows the rule.
    """
    by_name: Dict[str, Product] = {}
    for product in catalog:
        if product.is_active:
            by_name.setdefault(_norm(product.name), product)

    out: List[Product] = []
    for name in names:
        product = by_name.get(_norm(name))
        if product is None:
            logger.warning(
                "Recommended product %r not found among active products; dropped",
                name,
                extra={
                    "invoking_func": "resolve_products",
                    "next_step": "Continue with remaining names",
                    "resolution": "Fix the product name in answer_key or re-activate the product",
                },
            )
            continue
        if product not in out:
            out.append(product)
    return out


def catalog_fallback(repository: QuizRepository) -> Optional[List[Product]]:
    """First three active products by id, or None when the catalog can't provide three."""
    try:
        products = repository.fetch_active_products(order_by="id", limit=FALLBACK_PRODUCT_COUNT)
    except ReferenceDataError as exc:
        logger.warning(
            "Catalog fallback query failed: %s",
            exc,
            extra={"invoking_func": "catalog_fallback", "next_step": "Use hardcoded products"},
        )
        return None

    if len(products) < FALLBACK_PRODUCT_COUNT:
        logger.warning(
            "Only %d active products in catalog; need %d",
            len(products),
            FALLBACK_PRODUCT_COUNT,
            extra={"invoking_func": "catalog_fallback", "next_step": "Use hardcoded products"},
        )
        return None
    return products[:FALLBACK_PRODUCT_COUNT]


def price_products(
    products: Sequence[Product], discount_percentage: Optional[float] = None
) -> Tuple[float, float, float, float]:
    """
    Returns (total, list_total, savings, discount_percentage).

    With a rule discount the discount applies to the summed list price;
    otherwise the total is the sum of sale prices and the percentage is
    derived from the gap to the list price.
    """
    list_total = sum(p.list_price for p in products)
    if discount_percentage:
        total = round_half_up(list_total * (1 - float(discount_percentage) / 100))
        pct = discount_percentage
    else:
        total = sum(p.display_price for p in products)
        pct = round_half_up((list_total - total) / list_total * 100) if list_total else 0
    return total, list_total, list_total - total, pct


def build_result(
    products: Sequence[Product],
    source: RecommendationSource,
    *,
    rule: Optional[Rule] = None,
    tags: Sequence[Tag] = (),
) -> RecommendationResult:
    discount = rule.discount_percentage if rule is not None else None
    total, list_total, savings, pct = price_products(products, discount)
    return RecommendationResult(
        products=tuple(products),
        total_price=total,
        list_price=list_total,
        savings=savings,
        discount_percentage=pct,
        source=source,
        coupon_code=rule.coupon_code if rule is not None else None,
        rule=rule,
        tags=tuple(tags),
    )


def fallback_result(repository: Optional[QuizRepository], tags: Sequence[Tag] = ()) -> RecommendationResult:
    """Catalog fallback if possible, else the hardcoded triple. Never raises."""
    products = catalog_fallback(repository) if repository is not None else None
    if products:
        return build_result(products, RecommendationSource.FALLBACK_CATALOG, tags=tags)
    return build_result(HARDCODED_PRODUCTS, RecommendationSource.FALLBACK_HARDCODED, tags=tags)
