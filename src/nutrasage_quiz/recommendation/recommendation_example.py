"""
recommendation_example.py

Example usage of the QuizRecommender.

Run:
  python -m nutrasage_quiz.recommendation.recommendation_example --response-id 42
  python -m nutrasage_quiz.recommendation.recommendation_example --result-id 42-1718000000000

Requires:
  SUPABASE_URL
  SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY with RLS policies that allow the reads)
"""
from __future__ import annotations

import argparse

from nutrasage_quiz.config import build_context
from nutrasage_quiz.errors import QuizFunnelError
from nutrasage_quiz.logging_utils import RUN_ID, log_error
from nutrasage_quiz.quiz.results import parse_result_id
from nutrasage_quiz.recommendation.recommender import QuizRecommender


def main() -> int:
    ap = argparse.ArgumentParser()
    group = ap.add_mutually_exclusive_group(required=True)
    group.add_argument("--response-id", type=int)
    group.add_argument("--result-id")
    args = ap.parse_args()

    try:
        response_id = args.response_id if args.response_id is not None else parse_result_id(args.result_id)
        ctx = build_context()
    except QuizFunnelError as exc:
        log_error(
            "Cannot start recommendation example",
            invoking_function="main",
            invoking_purpose="CLI demo of the recommender",
            resolution="Check the id format and SUPABASE_* env vars",
            exc=exc,
        )
        return 1

    result = QuizRecommender(ctx.repository).recommend_for_response(response_id)

    print(f"run={RUN_ID} response={response_id} source={result.source.value}")
    if result.rule is not None:
        print(f"rule {result.rule.id}: [{result.rule.tag_combination}]")
    if result.tags:
        print("tags: " + ", ".join(t.title or t.name for t in result.tags))
    for i, p in enumerate(result.products, start=1):
        print(f"{i:02d}. {p.name}  ₹{p.display_price:g}")
    print(f"total ₹{result.total_price:g} (list ₹{result.list_price:g}, save ₹{result.savings:g}, {result.discount_percentage:g}% off)")
    if result.coupon_code:
        print(f"coupon: {result.coupon_code}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
