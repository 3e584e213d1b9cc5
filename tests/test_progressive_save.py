"""Tests for step-by-step saving of a quiz session."""

import pytest

from nutrasage_quiz.errors import PersistenceError, QuizValidationError
from nutrasage_quiz.quiz.progressive_save import ProgressiveSaveData, ProgressiveSaveSession
from nutrasage_quiz.repository import QuizRepository


@pytest.fixture
def session(repository):
    return ProgressiveSaveSession(repository)


def _responses(client):
    return client.tables["quiz_responses"]


def test_email_first_creates_partial_response(client, session):
    response_id = session.save_email(" asha@example.com ")

    rows = _responses(client)
    assert len(rows) == 1
    assert rows[0]["id"] == response_id
    assert rows[0]["email"] == "asha@example.com"
    assert rows[0]["status"] == "partial"


def test_second_email_reuses_existing_response(client, session):
    first = session.save_email("asha@example.com")
    assert session.save_email("other@example.com") == first
    assert len(_responses(client)) == 1
    assert _responses(client)[0]["email"] == "asha@example.com"


def test_basic_info_before_email_uses_placeholder_then_real_email(client, session):
    response_id = session.save_basic_info("name", "Asha")
    row = _responses(client)[0]
    assert row["email"].startswith("temp_") and row["email"].endswith("@placeholder.com")
    assert row["name"] == "Asha"
    assert session.data.has_placeholder_email

    assert session.save_email("asha@example.com") == response_id
    assert _responses(client)[0]["email"] == "asha@example.com"
    assert len(_responses(client)) == 1


def test_basic_info_after_response_updates_fields(client, session):
    session.save_email("asha@example.com")
    session.save_basic_info("contact", "9876543210")
    session.save_basic_info("age", "29")

    row = _responses(client)[0]
    assert row["contact"] == "9876543210"
    assert row["age"] == 29
    assert session.data.age == 29


def test_invalid_age_is_rejected(session):
    session.save_email("asha@example.com")
    with pytest.raises(QuizValidationError):
        session.save_basic_info("age", "twenty")


def test_answers_need_a_response(client, session):
    assert session.save_answer(7, "Often") is None
    assert session.complete() is None
    assert client.tables["quiz_answers"] == []


def test_reanswering_replaces_the_stored_answer(client, session):
    response_id = session.save_email("asha@example.com")
    session.save_answer("7", "Often", additional_info="evenings")
    session.save_answer(7, "Rarely")
    session.save_answer(8, "x" * 600)

    answers = client.tables["quiz_answers"]
    by_question = {a["question_id"]: a for a in answers}
    assert len(answers) == 2
    assert by_question[7]["answer_text"] == "Rarely"
    assert by_question[7]["response_id"] == response_id
    assert len(by_question[8]["answer_text"]) == 500


def test_complete_marks_response_completed(client, session):
    session.save_email("asha@example.com")
    session.complete()
    row = _responses(client)[0]
    assert row["status"] == "completed"
    assert row["completed_at"]


def test_store_failure_propagates(make_client):
    session = ProgressiveSaveSession(QuizRepository(make_client(fail_tables={"quiz_responses"})))
    with pytest.raises(PersistenceError):
        session.save_email("asha@example.com")


def test_session_can_resume_from_saved_data(client, repository):
    first = ProgressiveSaveSession(repository)
    response_id = first.save_email("asha@example.com")

    resumed = ProgressiveSaveSession(repository, ProgressiveSaveData(response_id=response_id, email="asha@example.com"))
    resumed.save_user_info(name="Asha Rao")
    assert _responses(client)[0]["name"] == "Asha Rao"


def test_failed_reanswer_keeps_the_earlier_answer(make_client):
    client = make_client(
        fail_ops={("quiz_answers", "insert")},
        quiz_responses=[{"id": 5, "email": "asha@example.com", "status": "partial"}],
        quiz_answers=[{"id": 1, "response_id": 5, "question_id": 8, "answer_text": "Low",
                       "additional_info": None, "file_url": None}],
    )
    session = ProgressiveSaveSession(QuizRepository(client), ProgressiveSaveData(response_id=5))

    with pytest.raises(PersistenceError):
        session.save_answer(8, "High")

    assert [a["answer_text"] for a in client.tables["quiz_answers"]] == ["Low"]


def test_reanswer_only_touches_its_own_question_and_response(make_client):
    client = make_client(
        quiz_responses=[{"id": 5, "email": "asha@example.com", "status": "partial"}],
        quiz_answers=[
            {"id": 1, "response_id": 5, "question_id": 8, "answer_text": "Low"},
            {"id": 2, "response_id": 5, "question_id": 9, "answer_text": "Yes"},
            {"id": 3, "response_id": 6, "question_id": 8, "answer_text": "Low"},
        ],
    )
    session = ProgressiveSaveSession(QuizRepository(client), ProgressiveSaveData(response_id=5))
    session.save_answer(8, "High")

    stored = {(a["response_id"], a["question_id"]): a["answer_text"] for a in client.tables["quiz_answers"]}
    assert stored == {(5, 8): "High", (5, 9): "Yes", (6, 8): "Low"}
    assert len(client.tables["quiz_answers"]) == 3
