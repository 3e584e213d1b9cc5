"""
tag_extractor.py

Resolve a quiz session's answers to the set of tag names attached to the
selected options.

Rules:
  - answers with an empty / whitespace value are skipped
  - personal fields never reach this module (QuizAnswers keeps them in
    user_info), and legacy mappings are parsed with the same key exclusion
  - an answer whose question id is not an active question is skipped
  - an answer whose text matches no option (trimmed, case-insensitive) is skipped
  - tags are unioned as a set; matched option ids are returned alongside

A failure to fetch questions/options/tags is NOT handled here: it propagates
as ReferenceDataError and the recommender falls back as a whole.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Set, Union

from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.models import Question, QuestionOption, QuizAnswers, TagExtraction
from nutrasage_quiz.repository import QuizRepository

logger = get_logger(__name__)

AnswersInput = Union[QuizAnswers, Mapping[str, str]]


def _norm(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def coerce_answers(answers: AnswersInput) -> QuizAnswers:
    if isinstance(answers, QuizAnswers):
        return answers
    return QuizAnswers.from_mapping(answers)


def find_option(question: Question, value: str) -> Optional[QuestionOption]:
    wanted = _norm(value)
    for opt in question.options:
        if _norm(opt.option_text) == wanted:
            return opt
    return None


class TagExtractor:
    def __init__(self, repository: QuizRepository) -> None:
        self.repository = repository

    def extract(self, answers: AnswersInput) -> TagExtraction:
        questions = self.repository.fetch_active_questions(with_tags=True)
        return extract_tags(coerce_answers(answers), questions)


def extract_tags(answers: QuizAnswers, questions: List[Question]) -> TagExtraction:
    """Pure part of the extraction: answers + reference data -> tags and option ids."""
    by_id: Dict[int, Question] = {}
    for q in questions:
        try:
            by_id[int(q.id)] = q
        except (TypeError, ValueError):
            continue

    tag_names: Set[str] = set()
    option_ids: List[int] = []

    for answer in answers.answers:
        if not answer.value or not answer.value.strip():
            continue

        question = by_id.get(answer.question_id)
        if question is None:
            logger.debug(
                "No active question with id %s; answer skipped",
                answer.question_id,
                extra={"invoking_func": "extract_tags", "next_step": "Next answer"},
            )
            continue

        option = find_option(question, answer.value)
        if option is None:
            logger.debug(
                "Answer %r matches no option of question %s; options=%s",
                answer.value,
                answer.question_id,
                question.option_texts,
                extra={"invoking_func": "extract_tags", "next_step": "Next answer"},
            )
            continue

        if option.id not in option_ids:
            option_ids.append(option.id)
        for tag in option.tags:
            if tag.name:
                tag_names.add(tag.name)

    logger.info(
        "Extracted %d tags from %d answers (%d options matched)",
        len(tag_names),
        len(answers.answers),
        len(option_ids),
        extra={"invoking_func": "extract_tags", "next_step": "Match tags against answer_key rules"},
    )
    return TagExtraction(tag_names=frozenset(tag_names), option_ids=tuple(option_ids))
