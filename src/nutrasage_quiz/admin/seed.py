from __future__ import annotations
"""
seed.py

Purpose:
    Seed the Supabase database with the core health-concern tags that quiz
    options and answer_key rules refer to.

Usage:
    python -m nutrasage_quiz.admin.seed

Safe to run multiple times (upsert on tags.name).
"""

from typing import Dict, List, Optional

from nutrasage_quiz.config import build_context
from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.repository import QuizRepository

logger = get_logger("seed")

# -----------------------------------------------------------------------------
# Core tags
# -----------------------------------------------------------------------------
# NOTE:
# - Names MUST match the names used in answer_key.tag_combination; rule
#   matching compares names exactly (after trimming).
# - Icons are managed from the admin panel, so they are not seeded here.
# -----------------------------------------------------------------------------
SEED_TAGS: List[Dict[str, str]] = [
    dict(name="low-energy", title="Low Energy"),
    dict(name="stress", title="Stress & Anxiety"),
    dict(name="poor-sleep", title="Poor Sleep"),
    dict(name="joint-pain", title="Joint Pain"),
    dict(name="skin-health", title="Skin Health"),
    dict(name="digestive-issues", title="Digestive Issues"),
    dict(name="low-immunity", title="Low Immunity"),
    dict(name="sedentary", title="Sedentary Lifestyle"),
    dict(name="active-lifestyle", title="Active Lifestyle"),
]


def ensure_tag(repository: QuizRepository, name: str, title: Optional[str] = None) -> Optional[int]:
    """Upsert a tag by name and return its id."""
    row = repository.upsert_tag(name.strip(), title=title)
    return row.get("id")


def seed_core_tags(repository: QuizRepository) -> Dict[str, Optional[int]]:
    ids: Dict[str, Optional[int]] = {}
    for tag in SEED_TAGS:
        ids[tag["name"]] = ensure_tag(repository, tag["name"], tag.get("title"))
    return ids


if __name__ == "__main__":
    ctx = build_context()
    seeded = seed_core_tags(ctx.repository)
    logger.info(
        "Core tags seeded: %d",
        len(seeded),
        extra={
            "invoking_func": "__main__",
            "invoking_purpose": "Seed core health tags",
            "next_step": "Exit",
            "resolution": "",
        },
    )
