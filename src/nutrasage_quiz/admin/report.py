"""
report.py

Aggregate quiz responses for the admin analytics view:
  - total responses
  - age distribution (18-25 / 26-35 / 36-45 / 46+)
  - per question: how often each answer was chosen
    (personal questions such as name/email/contact are left out)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.repository import QuizRepository

logger = get_logger(__name__)

AGE_BUCKETS = ("18-25", "26-35", "36-45", "46+")
PERSONAL_QUESTION_WORDS = ("name", "email", "contact", "phone")


@dataclass
class QuizReport:
    total_responses: int = 0
    age_distribution: Dict[str, int] = field(default_factory=lambda: {b: 0 for b in AGE_BUCKETS})
    question_stats: Dict[str, Dict[str, int]] = field(default_factory=dict)


def age_bucket(age: int) -> str:
    if age <= 25:
        return "18-25"
    if age <= 35:
        return "26-35"
    if age <= 45:
        return "36-45"
    return "46+"


def is_personal_question(text: str) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in PERSONAL_QUESTION_WORDS)


def build_quiz_report(repository: QuizRepository) -> QuizReport:
    responses = repository.fetch_responses()
    report = QuizReport(total_responses=len(responses))
    if not responses:
        return report

    for response in responses:
        try:
            age = int(response.get("age") or 0)
        except (TypeError, ValueError):
            age = 0
        report.age_distribution[age_bucket(age)] += 1

    question_texts = repository.fetch_question_texts()
    answers = repository.fetch_answers(r["id"] for r in responses)
    for row in answers:
        text = question_texts.get(row.get("question_id"))
        if not text or is_personal_question(text):
            continue
        answer_text = row.get("answer_text") or ""
        counts = report.question_stats.setdefault(text, {})
        counts[answer_text] = counts.get(answer_text, 0) + 1

    logger.info(
        "Built quiz report over %d responses / %d answers",
        report.total_responses,
        len(answers),
        extra={"invoking_func": "build_quiz_report"},
    )
    return report
