import pytest

from quizboard.exceptions import QuizNotFoundError
from quizboard.models import Question as QuestionRow
from quizboard.schemas.attempt import ResponseStatus, SubmittedResponse
from quizboard.schemas.quiz import QuizMetadata
from quizboard.utils.timeutil import from_db

from conftest import at, make_question


def test_create_and_read_quiz(quiz_store, seeded_quiz):
    metadata = quiz_store.get_metadata(seeded_quiz)
    assert metadata.quiz_id == "quiz-1"
    assert metadata.question_count == 2
    assert metadata.created_at == at(1700000000)

    questions = quiz_store.get_questions(seeded_quiz)
    assert [question.question_id for question in questions] == ["q1", "q2"]
    assert questions[1].options[1].text == "Blue"
    assert questions[1].correct_index == 1

    assert quiz_store.exists(seeded_quiz)
    assert not quiz_store.exists("missing")


def test_missing_quiz_raises_not_found(quiz_store):
    with pytest.raises(QuizNotFoundError):
        quiz_store.get_metadata("missing")
    with pytest.raises(QuizNotFoundError):
        quiz_store.get_questions("missing")


def test_create_quiz_requires_id(quiz_store, sample_questions):
    with pytest.raises(ValueError):
        quiz_store.create_quiz(QuizMetadata(quiz_id=""), sample_questions)


def test_question_count_defaults_to_question_list(quiz_store, sample_questions):
    quiz_store.create_quiz(QuizMetadata(quiz_id="quiz-2"), sample_questions)

    metadata = quiz_store.get_metadata("quiz-2")
    assert metadata.question_count == 2
    assert metadata.created_at is not None


def test_overwrite_clears_attempts(quiz_store, attempt_store, seeded_quiz):
    results = attempt_store.submit(seeded_quiz, "alice", [SubmittedResponse(question_id="q1", answer="A")])
    assert results[0].status == ResponseStatus.CORRECT

    quiz_store.create_quiz(
        QuizMetadata(quiz_id=seeded_quiz, question_count=1, created_at=at(1700000200)),
        [make_question("q-new", "New question", ["Yes", "No"], 0)],
    )

    assert attempt_store.attempt_scores(seeded_quiz, "alice") == {}
    assert attempt_store.leaderboard(seeded_quiz) == []
    assert [question.question_id for question in quiz_store.get_questions(seeded_quiz)] == ["q-new"]


def test_question_shared_between_quizzes(quiz_store, sample_questions):
    quiz_store.create_quiz(QuizMetadata(quiz_id="a"), sample_questions)
    quiz_store.create_quiz(QuizMetadata(quiz_id="b"), list(reversed(sample_questions)))

    assert [q.question_id for q in quiz_store.get_questions("a")] == ["q1", "q2"]
    assert [q.question_id for q in quiz_store.get_questions("b")] == ["q2", "q1"]


def test_shared_question_keeps_first_created_at(quiz_store, session_factory, sample_questions):
    quiz_store.create_quiz(QuizMetadata(quiz_id="a", created_at=at(100)), sample_questions)
    quiz_store.create_quiz(QuizMetadata(quiz_id="b", created_at=at(200)), sample_questions[:1])

    with session_factory() as db:
        row = db.get(QuestionRow, "q1")
        assert from_db(row.created_at) == at(100)
        assert row.prompt == "2+2?"
        assert row.option_count == 2


def test_list_recent_orders_by_creation_desc(quiz_store, sample_questions):
    for idx, quiz_id in enumerate(["old", "middle", "new"]):
        quiz_store.create_quiz(
            QuizMetadata(quiz_id=quiz_id, created_at=at(1700000000 + idx)),
            sample_questions,
        )

    assert [item.quiz_id for item in quiz_store.list_recent(2)] == ["new", "middle"]
    assert [item.quiz_id for item in quiz_store.list_recent(0)] == ["new", "middle", "old"]
