"""
results.py

Reload a saved quiz result so the results page can be shown again.

Result ids handed to the user look like "<responseId>-<timestamp>"; only the
response id matters here.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from nutrasage_quiz.errors import ResultNotFoundError
from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.models import QuizAnswers, UserInfo
from nutrasage_quiz.repository import QuizRepository

logger = get_logger(__name__)


@dataclass
class SavedResults:
    response_id: int
    answers: QuizAnswers
    user_info: UserInfo


def parse_result_id(result_id: str) -> int:
    head = (result_id or "").strip().split("-")[0]
    if not head.isdigit():
        raise ResultNotFoundError(f"Invalid result ID format: {result_id!r}")
    return int(head)


def answers_from_rows(rows: List[Dict[str, Any]]) -> QuizAnswers:
    out = QuizAnswers()
    for row in rows:
        question_id = row.get("question_id")
        if question_id is None:
            continue
        out.set_answer(int(question_id), row.get("answer_text") or "")
        if row.get("additional_info"):
            out.details[int(question_id)] = row["additional_info"]
    return out


def load_answers(repository: QuizRepository, response_id: int) -> QuizAnswers:
    return answers_from_rows(repository.fetch_answers([response_id]))


def load_saved_results(repository: QuizRepository, result_id: str) -> SavedResults:
    response_id = parse_result_id(result_id)

    response = repository.fetch_response(response_id)
    if response is None:
        logger.warning(
            "No quiz response with id %s",
            response_id,
            extra={"invoking_func": "load_saved_results", "resolution": "Take a new assessment"},
        )
        raise ResultNotFoundError(f"Results not found for response {response_id}")

    answers = load_answers(repository, response_id)
    answers.user_info = UserInfo(
        name=response.get("name") or "",
        email=response.get("email") or "",
        contact=response.get("contact") or "",
        age=str(response.get("age") or ""),
    )
    logger.info(
        "Loaded saved results for response %s (%d answers)",
        response_id,
        len(answers.answers),
        extra={"invoking_func": "load_saved_results", "next_step": "Recompute recommendation"},
    )
    return SavedResults(response_id=response_id, answers=answers, user_info=answers.user_info)
