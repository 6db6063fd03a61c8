"""
Shared fixtures: a temporary SQLite database per test and in-memory fake stores
"""
from datetime import datetime, timezone

import pytest

import quizboard.models  # noqa: F401
from quizboard.database import Base, build_engine, build_session_factory
from quizboard.exceptions import QuizNotFoundError
from quizboard.schemas.quiz import Option, Question, QuizMetadata, RawQuestion
from quizboard.services.attempt_store import AttemptStore
from quizboard.services.quiz_store import QuizStore


def make_question(question_id, prompt, texts, correct_index):
    return Question(
        question_id=question_id,
        question=prompt,
        options=[Option(letter=chr(ord("A") + idx), text=text) for idx, text in enumerate(texts)],
        correct_index=correct_index,
    )


def at(seconds):
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def quiz_store(session_factory):
    return QuizStore(session_factory)


@pytest.fixture
def attempt_store(session_factory):
    return AttemptStore(session_factory)


@pytest.fixture
def sample_questions():
    return [
        make_question("q1", "2+2?", ["4", "3"], 0),
        make_question("q2", "Sky color?", ["Green", "Blue"], 1),
    ]


@pytest.fixture
def seeded_quiz(quiz_store, sample_questions):
    quiz_store.create_quiz(
        QuizMetadata(quiz_id="quiz-1", question_count=2, created_at=at(1700000000)),
        sample_questions,
    )
    return "quiz-1"


@pytest.fixture
def raw_questions():
    return [
        RawQuestion(
            type="multiple",
            question="2 &amp; 2 = ?",
            correct_answer="4 &lt; 5",
            incorrect_answers=["1", "2", "3"],
        ),
        RawQuestion(
            type="boolean",
            question="The sky is blue.",
            correct_answer="True",
            incorrect_answers=["False"],
        ),
    ]


class FakeQuizStore:
    """Catalog store double that counts every read"""

    def __init__(self):
        self.metadata_by_quiz = {}
        self.questions_by_quiz = {}

        self.create_calls = 0
        self.get_metadata_calls = 0
        self.get_questions_calls = 0
        self.list_calls = 0

    def add(self, quiz_id, questions=(), created_at=None):
        questions = list(questions)
        self.metadata_by_quiz[quiz_id] = QuizMetadata(
            quiz_id=quiz_id,
            question_count=len(questions),
            created_at=created_at or at(1),
        )
        self.questions_by_quiz[quiz_id] = questions

    def create_quiz(self, metadata, questions):
        self.create_calls += 1
        self.metadata_by_quiz[metadata.quiz_id] = metadata
        self.questions_by_quiz[metadata.quiz_id] = list(questions)

    def get_metadata(self, quiz_id):
        self.get_metadata_calls += 1
        if quiz_id not in self.metadata_by_quiz:
            raise QuizNotFoundError(quiz_id)
        return self.metadata_by_quiz[quiz_id]

    def get_questions(self, quiz_id):
        self.get_questions_calls += 1
        if quiz_id not in self.questions_by_quiz:
            raise QuizNotFoundError(quiz_id)
        return self.questions_by_quiz[quiz_id]

    def exists(self, quiz_id):
        return quiz_id in self.metadata_by_quiz

    def list_recent(self, limit):
        self.list_calls += 1
        items = sorted(self.metadata_by_quiz.values(), key=lambda item: item.created_at, reverse=True)
        return items[:limit] if limit > 0 else items


class FakeAttemptStore:
    """Attempt store double returning canned results"""

    def __init__(self, submit_results=None, leaderboard=None, attempt_scores=None):
        self.submit_results = submit_results or []
        self.submit_error = None
        self.submit_calls = 0
        self.last_submit_quiz_id = None
        self.last_submit_username = None
        self.last_submitted_at = None

        self.leaderboard_entries = leaderboard or []
        self.leaderboard_calls = 0

        self.scores = attempt_scores or {}
        self.attempt_scores_calls = 0
        self.last_attempt_username = None

    def submit(self, quiz_id, username_normalized, responses, submitted_at=None):
        self.submit_calls += 1
        self.last_submit_quiz_id = quiz_id
        self.last_submit_username = username_normalized
        self.last_submitted_at = submitted_at
        if self.submit_error is not None:
            raise self.submit_error
        return self.submit_results

    def leaderboard(self, quiz_id):
        self.leaderboard_calls += 1
        return self.leaderboard_entries

    def attempt_scores(self, quiz_id, username_normalized):
        self.attempt_scores_calls += 1
        self.last_attempt_username = username_normalized
        return self.scores


@pytest.fixture
def fake_quiz_store():
    return FakeQuizStore()


@pytest.fixture
def fake_attempt_store():
    return FakeAttemptStore()
