"""
submission.py

Validate and store a completed quiz in one go (the non-progressive path).

  1. validate personal details (name, email, contact, age)
  2. insert quiz_responses
  3. insert quiz_answers for every answer whose question is active

Returns the new response id; the caller then asks QuizRecommender for the
results. Attaching an uploaded lab report is the caller's job: pass its URL
and the question it belongs to.
"""
from __future__ import annotations

import datetime
import re
from typing import Any, Dict, List, Mapping, Optional, Union

from nutrasage_quiz.errors import QuizValidationError
from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.models import QuizAnswers, UserInfo
from nutrasage_quiz.quiz.progressive_save import MAX_ANSWER_CHARS, MAX_DETAILS_CHARS, STATUS_COMPLETED
from nutrasage_quiz.quiz.questions import EMAIL_RE
from nutrasage_quiz.repository import QuizRepository

logger = get_logger(__name__)

TEN_DIGITS_RE = re.compile(r"^[0-9]{10}$")


def clean_contact(contact: str) -> str:
    return re.sub(r"^\+91", "", (contact or "").strip()).strip()


def validate_user_info(info: UserInfo) -> Dict[str, Any]:
    """Return the cleaned insert payload or raise QuizValidationError."""
    name = (info.name or "").strip()
    email = (info.email or "").strip()
    contact = clean_contact(info.contact)
    age_text = str(info.age or "").strip()

    missing: List[str] = []
    if len(name) < 2:
        missing.append("name")
    if "@" not in email:
        missing.append("email")
    if len(contact) != 10:
        missing.append("contact")
    if not age_text.isdigit() or int(age_text) < 1:
        missing.append("age")
    if missing:
        raise QuizValidationError(
            f"Missing required fields: {', '.join(missing)}. "
            "Please ensure all personal information questions are answered correctly.",
            fields=missing,
        )

    if not EMAIL_RE.match(email):
        raise QuizValidationError("Please enter a valid email address", fields=["email"])
    if not TEN_DIGITS_RE.match(contact):
        raise QuizValidationError("Please enter a valid 10-digit phone number", fields=["contact"])
    age = int(age_text)
    if age > 120:
        raise QuizValidationError("Please enter a valid age between 1 and 120", fields=["age"])

    return {"name": name, "email": email, "contact": contact, "age": age}


def submit_quiz(
    repository: QuizRepository,
    answers: Union[QuizAnswers, Mapping[str, str]],
    *,
    file_url: Optional[str] = None,
    file_question_id: Optional[int] = None,
) -> int:
    if not isinstance(answers, QuizAnswers):
        answers = QuizAnswers.from_mapping(answers)

    payload = validate_user_info(answers.user_info)
    payload["status"] = STATUS_COMPLETED
    payload["completed_at"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    response_id = repository.create_response(payload)

    active_ids = {q.id for q in repository.fetch_active_questions()}

    rows: List[Dict[str, Any]] = []
    for answer in answers.answers:
        text = (answer.value or "").strip()
        if not text:
            continue
        if answer.question_id not in active_ids:
            logger.warning(
                "Could not map answer key %s to any active question. Skipping.",
                answer.question_id,
                extra={"invoking_func": "submit_quiz", "next_step": "Next answer"},
            )
            continue
        details = answers.details.get(answer.question_id)
        rows.append(
            {
                "response_id": response_id,
                "question_id": answer.question_id,
                "answer_text": text[:MAX_ANSWER_CHARS],
                "additional_info": details[:MAX_DETAILS_CHARS] if details else None,
                "file_url": file_url if file_url and answer.question_id == file_question_id else None,
            }
        )

    repository.insert_answers(rows)
    logger.info(
        "Saved quiz response %s with %d answers",
        response_id,
        len(rows),
        extra={"invoking_func": "submit_quiz", "next_step": "Compute recommendation"},
    )
    return response_id
