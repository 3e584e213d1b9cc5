"""
rule_matcher.py

Pick the single answer_key rule that best fits a user's tag set.

Priority (each tier runs only if the previous one found nothing):
  1. exact   : rule tag set == user tag set
  2. subset  : user tags all appear in the rule; fewest rule tags wins
  3. partial : most shared tags (at least one)
Ties in tiers 2 and 3 go to the rule that comes first in the list.

Tag keys are compared as sets in every tier, so a rule stored as
"low-energy,joint-pain" still matches {"joint-pain", "low-energy"} exactly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Iterable, Optional, Sequence

from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.models import Rule

logger = get_logger(__name__)

EXACT = "exact"
SUBSET = "subset"
PARTIAL = "partial"


@dataclass(frozen=True)
class RuleMatch:
    rule: Rule
    kind: str           # exact / subset / partial
    overlap: int


def tag_key(tags: Iterable[str]) -> str:
    """Canonical rule key: trimmed, de-duplicated, sorted, comma-joined."""
    return ",".join(sorted({t.strip() for t in tags if t and t.strip()}))


def match_rule(user_tags: AbstractSet[str], rules: Sequence[Rule]) -> Optional[RuleMatch]:
    user = frozenset(t.strip() for t in user_tags if t and t.strip())
    if not user:
        return None

    parsed = [(rule, rule.tag_set) for rule in rules]

    for rule, tags in parsed:
        if tags == user:
            return RuleMatch(rule=rule, kind=EXACT, overlap=len(user))

    best_subset: Optional[Rule] = None
    best_subset_size = 0
    for rule, tags in parsed:
        if user <= tags and (best_subset is None or len(tags) < best_subset_size):
            best_subset = rule
            best_subset_size = len(tags)
    if best_subset is not None:
        return RuleMatch(rule=best_subset, kind=SUBSET, overlap=len(user))

    best_partial: Optional[Rule] = None
    max_overlap = 0
    for rule, tags in parsed:
        overlap = len(user & tags)
        if overlap > max_overlap:
            best_partial = rule
            max_overlap = overlap
    if best_partial is not None:
        return RuleMatch(rule=best_partial, kind=PARTIAL, overlap=max_overlap)

    return None


def describe_match(match: Optional[RuleMatch], user_tags: AbstractSet[str]) -> str:
    if match is None:
        return f"no rule for [{tag_key(user_tags)}]"
    return f"{match.kind} match [{tag_key(user_tags)}] -> rule {match.rule.id} [{match.rule.tag_combination}]"
