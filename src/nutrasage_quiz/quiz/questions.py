"""
questions.py

Load the active quiz and validate answers as the user types them.

If the questions table can't be read, or holds no active question, the quiz
still runs on FALLBACK_QUESTIONS.
"""
from __future__ import annotations

import re
from typing import List

from nutrasage_quiz.errors import ReferenceDataError
from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.models import Question, QuestionOption
from nutrasage_quiz.repository import QuizRepository

logger = get_logger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
INDIAN_MOBILE_RE = re.compile(r"^[6-9]\d{9}$")


def _static(key: str, text: str, qtype: str, options=(), **kwargs) -> Question:
    opts = [
        QuestionOption(id=i, question_id=0, option_text=o, order_index=i)
        for i, o in enumerate(options)
    ]
    return Question(id=key, text=text, type=qtype, options=opts, **kwargs)


FALLBACK_QUESTIONS: List[Question] = [
    _static("name", "What's your name?", "text", placeholder="Enter your name"),
    _static("email", "What's your email address?", "email", placeholder="Enter your email"),
    _static(
        "contact",
        "What's your contact number?",
        "tel",
        placeholder="Enter 10-digit number",
        description="We'll prefix +91 to your number",
    ),
    _static("age", "What's your age?", "number", placeholder="Enter your age"),
    _static(
        "health_goals",
        "What are your primary health goals?",
        "select",
        options=[
            "Weight management",
            "Improved energy levels",
            "Better sleep quality",
            "Enhanced immune system",
            "Digestive health",
            "Muscle building",
            "General wellness",
        ],
    ),
    _static(
        "current_supplements",
        "Are you currently taking any supplements or medications?",
        "select",
        options=["Yes", "No"],
        has_text_area=True,
        text_area_placeholder="Please list the supplements or medications you're currently taking",
    ),
    _static(
        "allergies",
        "Do you have any known allergies or dietary restrictions?",
        "select",
        options=["Yes", "No"],
        has_text_area=True,
        text_area_placeholder="Please describe your allergies or dietary restrictions",
    ),
    _static(
        "medical_conditions",
        "Do you have any medical conditions or are under medical supervision?",
        "select",
        options=["Yes", "No"],
        has_text_area=True,
        text_area_placeholder="Please describe your medical conditions",
    ),
    _static(
        "lab_reports",
        "Do you have recent lab reports or health assessments?",
        "select",
        options=["Yes", "No"],
        has_file_upload=True,
        accepted_file_types=".pdf,.jpg,.jpeg,.png",
    ),
]


def load_questions(repository: QuizRepository) -> List[Question]:
    """Active questions from the database, or FALLBACK_QUESTIONS."""
    try:
        questions = repository.fetch_active_questions()
    except ReferenceDataError as exc:
        logger.warning(
            "Error loading questions, using fallback: %s",
            exc,
            extra={"invoking_func": "load_questions", "next_step": "Serve FALLBACK_QUESTIONS"},
        )
        return list(FALLBACK_QUESTIONS)

    if not questions:
        logger.info(
            "No active questions found in database",
            extra={"invoking_func": "load_questions", "next_step": "Serve FALLBACK_QUESTIONS"},
        )
        return list(FALLBACK_QUESTIONS)

    logger.info("Loaded %d questions from database", len(questions))
    return questions


def validate_answer(question: Question, value: str) -> str:
    """Error message for the value, or "" when it is acceptable."""
    value = (value or "").strip()

    if question.type == "email":
        return "" if EMAIL_RE.match(value) else "Please enter a valid email address"

    if question.type == "tel":
        if len(value) != 10:
            return "Please enter exactly 10 digits"
        if not INDIAN_MOBILE_RE.match(value):
            return "Indian mobile numbers must start with 6, 7, 8, or 9"
        return ""

    if question.type == "number":
        try:
            age = int(value)
        except ValueError:
            return "Please enter a valid number"
        if age < 1 or age > 120:
            return "Please enter a valid age between 1 and 120"
        return ""

    if question.type == "select" and question.options:
        wanted = value.lower()
        if not any(o.option_text.strip().lower() == wanted for o in question.options):
            return "Please select one of the options"
        return ""

    return ""
