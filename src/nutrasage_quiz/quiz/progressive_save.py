"""
progressive_save.py

Save a quiz session step by step while it is being answered, so abandoned
sessions still leave a partial quiz_responses row behind.

Flow:
  - the first personal detail creates the response row. If it isn't the
    email, a placeholder email (temp_<ms>@placeholder.com) is used and
    swapped for the real one once the user types it
  - later details update that row
  - each answer replaces any earlier answer to the same question
  - complete() marks the row completed

Calls that need a response row log an error and return None when none exists
yet. Store failures propagate as PersistenceError.
"""
from __future__ import annotations

import datetime
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from nutrasage_quiz.errors import QuizValidationError
from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.repository import QuizRepository

logger = get_logger(__name__)

PLACEHOLDER_EMAIL_DOMAIN = "placeholder.com"
MAX_ANSWER_CHARS = 500
MAX_DETAILS_CHARS = 1000

STATUS_PARTIAL = "partial"
STATUS_COMPLETED = "completed"


@dataclass
class ProgressiveSaveData:
    response_id: Optional[int] = None
    email: Optional[str] = None
    name: Optional[str] = None
    contact: Optional[str] = None
    age: Optional[int] = None

    @property
    def has_placeholder_email(self) -> bool:
        return bool(self.email) and PLACEHOLDER_EMAIL_DOMAIN in self.email


def placeholder_email() -> str:
    return f"temp_{int(time.time() * 1000)}@{PLACEHOLDER_EMAIL_DOMAIN}"


def _parse_age(value: Union[str, int, None]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise QuizValidationError(f"Invalid age: {value!r}", fields=["age"]) from exc


class ProgressiveSaveSession:
    def __init__(self, repository: QuizRepository, data: Optional[ProgressiveSaveData] = None) -> None:
        self.repository = repository
        self.data = data or ProgressiveSaveData()

    def _create_partial_response(self, email: str) -> int:
        response_id = self.repository.create_response(
            {"email": email, "name": "", "contact": "", "age": 0, "status": STATUS_PARTIAL}
        )
        logger.info(
            "Created partial response %s",
            response_id,
            extra={"invoking_func": "_create_partial_response", "next_step": "Keep saving answers"},
        )
        return response_id

    def save_email(self, email: str) -> int:
        email = email.strip()
        if self.data.response_id is not None and self.data.has_placeholder_email:
            self.repository.update_response(self.data.response_id, {"email": email})
            self.data.email = email
            logger.info("Replaced placeholder email on response %s", self.data.response_id)
            return self.data.response_id

        if self.data.response_id is not None:
            return self.data.response_id

        self.data.response_id = self._create_partial_response(email)
        self.data.email = email
        return self.data.response_id

    def save_basic_info(self, field: str, value: str) -> Optional[int]:
        if field not in ("name", "contact", "age"):
            raise ValueError(f"Unsupported basic info field: {field!r}")

        if self.data.response_id is None and not self.data.email:
            email = placeholder_email()
            self.data.response_id = self._create_partial_response(email)
            self.data.email = email

            parsed: Any = _parse_age(value) if field == "age" else value.strip()
            self.repository.update_response(self.data.response_id, {field: parsed})
            setattr(self.data, field, parsed)
            return self.data.response_id

        if self.data.response_id is not None:
            return self.save_user_info(
                name=value if field == "name" else self.data.name,
                contact=value if field == "contact" else self.data.contact,
                age=_parse_age(value) if field == "age" else self.data.age,
            )
        return None

    def save_user_info(
        self,
        name: Optional[str] = None,
        contact: Optional[str] = None,
        age: Optional[int] = None,
    ) -> Optional[int]:
        if self.data.response_id is None:
            logger.error(
                "No response ID available for saving user info",
                extra={"invoking_func": "save_user_info", "resolution": "Save email or basic info first"},
            )
            return None

        updates: Dict[str, Any] = {}
        if name:
            updates["name"] = name.strip()
        if contact:
            updates["contact"] = contact.strip()
        if age:
            updates["age"] = int(age)
        if updates:
            self.repository.update_response(self.data.response_id, updates)
            for key, val in updates.items():
                setattr(self.data, key, val)
        return self.data.response_id

    def save_answer(
        self,
        question_id: Union[int, str],
        answer: str,
        additional_info: Optional[str] = None,
        file_url: Optional[str] = None,
    ) -> Optional[int]:
        if self.data.response_id is None:
            logger.error(
                "No response ID available for saving answer",
                extra={"invoking_func": "save_answer", "resolution": "Save email or basic info first"},
            )
            return None

        self.repository.replace_answer(
            {
                "response_id": self.data.response_id,
                "question_id": int(question_id),
                "answer_text": str(answer).strip()[:MAX_ANSWER_CHARS],
                "additional_info": additional_info[:MAX_DETAILS_CHARS] if additional_info else None,
                "file_url": file_url,
            }
        )
        logger.debug("Saved answer for question %s", question_id)
        return self.data.response_id

    def complete(self) -> Optional[int]:
        if self.data.response_id is None:
            logger.error(
                "No response ID available for completing quiz",
                extra={"invoking_func": "complete"},
            )
            return None

        self.repository.update_response(
            self.data.response_id,
            {
                "status": STATUS_COMPLETED,
                "completed_at": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            },
        )
        logger.info(
            "Quiz completed for response %s",
            self.data.response_id,
            extra={"invoking_func": "complete", "next_step": "Show results"},
        )
        return self.data.response_id
