"""
cleanup.py

Remove duplicate quiz responses: several rows with the same contact number
collapse to the most recent one.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from nutrasage_quiz.errors import QuizFunnelError
from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.repository import QuizRepository, Row

logger = get_logger(__name__)


@dataclass
class DuplicateGroup:
    contact: str
    latest_id: int
    duplicate_ids: List[int]


def find_duplicate_responses(repository: QuizRepository) -> List[DuplicateGroup]:
    # fetch_responses() is newest first, so the first row per contact is the one kept
    groups: Dict[str, List[Row]] = {}
    for row in repository.fetch_responses():
        contact = (row.get("contact") or "").strip()
        if not contact:
            continue
        groups.setdefault(contact, []).append(row)

    out: List[DuplicateGroup] = []
    for contact, rows in groups.items():
        if len(rows) < 2:
            continue
        out.append(
            DuplicateGroup(
                contact=contact,
                latest_id=rows[0]["id"],
                duplicate_ids=[r["id"] for r in rows[1:]],
            )
        )
    return out


def cleanup_duplicate_responses(repository: QuizRepository) -> int:
    """Delete older duplicates; returns how many rows were removed."""
    duplicates = find_duplicate_responses(repository)
    if not duplicates:
        logger.info("No duplicate responses found", extra={"invoking_func": "cleanup_duplicate_responses"})
        return 0

    removed = 0
    for group in duplicates:
        try:
            repository.delete_responses(group.duplicate_ids)
        except QuizFunnelError as exc:
            logger.error(
                "Error deleting duplicates for %s: %s",
                group.contact,
                exc,
                extra={"invoking_func": "cleanup_duplicate_responses", "next_step": "Continue with next contact"},
            )
            continue
        removed += len(group.duplicate_ids)

    logger.info(
        "Duplicate cleanup removed %d responses across %d contacts",
        removed,
        len(duplicates),
        extra={"invoking_func": "cleanup_duplicate_responses"},
    )
    return removed
