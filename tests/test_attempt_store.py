import threading

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from quizboard.exceptions import QuizNotFoundError, StorageError
from quizboard.schemas.attempt import ResponseStatus, SubmittedResponse

from conftest import at


def responses(*pairs):
    return [SubmittedResponse(question_id=question_id, answer=answer) for question_id, answer in pairs]


def test_submit_scores_each_response(attempt_store, seeded_quiz):
    results = attempt_store.submit(
        seeded_quiz,
        "alice",
        responses(("q1", "A"), ("q2", "A"), ("q404", "A"), ("q1", "Z")),
        submitted_at=at(1700000100),
    )

    assert [result.status for result in results] == [
        ResponseStatus.CORRECT,
        ResponseStatus.INCORRECT,
        ResponseStatus.INVALID_QUESTION,
        ResponseStatus.ALREADY_ANSWERED,
    ]
    assert results[3].attempt_score == 1.0
    assert attempt_store.attempt_scores(seeded_quiz, "alice") == {"q1": 1.0, "q2": 0.0}


def test_first_write_wins(attempt_store, seeded_quiz):
    attempt_store.submit(seeded_quiz, "alice", responses(("q2", "A")))

    results = attempt_store.submit(seeded_quiz, "alice", responses(("q2", "B")))

    assert results[0].status == ResponseStatus.ALREADY_ANSWERED
    assert results[0].attempt_score == 0.0
    assert attempt_store.attempt_scores(seeded_quiz, "alice") == {"q2": 0.0}

    entries = attempt_store.leaderboard(seeded_quiz)
    assert len(entries) == 1
    assert entries[0].total_score == 0.0
    assert entries[0].answered_count == 1


def test_invalid_letter_is_not_recorded(attempt_store, seeded_quiz):
    results = attempt_store.submit(seeded_quiz, "alice", responses(("q1", "C"), ("q1", "")))

    assert [result.status for result in results] == [ResponseStatus.INVALID_LETTER] * 2
    assert attempt_store.attempt_scores(seeded_quiz, "alice") == {}

    results = attempt_store.submit(seeded_quiz, "alice", responses(("q1", "a")))
    assert results[0].status == ResponseStatus.CORRECT


def test_unknown_quiz_raises_not_found(attempt_store):
    with pytest.raises(QuizNotFoundError):
        attempt_store.submit("missing", "alice", responses(("q1", "A")))
    with pytest.raises(QuizNotFoundError):
        attempt_store.leaderboard("missing")


def test_leaderboard_ranking(attempt_store, seeded_quiz):
    attempt_store.submit(seeded_quiz, "carol", responses(("q1", "A")), submitted_at=at(30))
    attempt_store.submit(seeded_quiz, "bob", responses(("q1", "A")), submitted_at=at(20))
    attempt_store.submit(seeded_quiz, "alice", responses(("q1", "A"), ("q2", "B")), submitted_at=at(40))
    attempt_store.submit(seeded_quiz, "dave", responses(("q1", "B")), submitted_at=at(10))
    attempt_store.submit(seeded_quiz, "aaron", responses(("q1", "A")), submitted_at=at(20))

    entries = attempt_store.leaderboard(seeded_quiz)

    assert [entry.username for entry in entries] == ["alice", "aaron", "bob", "carol", "dave"]
    assert entries[0].total_score == 2.0
    assert entries[0].answered_count == 2
    assert entries[0].last_submission_at == at(40)
    assert entries[-1].total_score == 0.0


def test_last_submission_tracks_latest_new_answer(attempt_store, seeded_quiz):
    attempt_store.submit(seeded_quiz, "alice", responses(("q1", "A")), submitted_at=at(10))
    attempt_store.submit(seeded_quiz, "alice", responses(("q2", "B")), submitted_at=at(50))
    attempt_store.submit(seeded_quiz, "alice", responses(("q2", "A")), submitted_at=at(90))

    entry = attempt_store.leaderboard(seeded_quiz)[0]
    assert entry.last_submission_at == at(50)
    assert entry.total_score == 2.0


def test_leaderboard_of_quiz_without_attempts_is_empty(attempt_store, seeded_quiz):
    assert attempt_store.leaderboard(seeded_quiz) == []


def test_failed_submission_rolls_back(attempt_store, seeded_quiz, monkeypatch):
    calls = {"insert": 0}
    original_execute = Session.execute

    def flaky_execute(self, statement, *args, **kwargs):
        if getattr(statement, "is_insert", False):
            calls["insert"] += 1
            if calls["insert"] == 2:
                raise OperationalError("INSERT", {}, Exception("disk I/O error"))
        return original_execute(self, statement, *args, **kwargs)

    monkeypatch.setattr(Session, "execute", flaky_execute)

    with pytest.raises(StorageError):
        attempt_store.submit(seeded_quiz, "alice", responses(("q1", "A"), ("q2", "B")))

    monkeypatch.setattr(Session, "execute", original_execute)
    assert attempt_store.attempt_scores(seeded_quiz, "alice") == {}
    assert attempt_store.leaderboard(seeded_quiz) == []


def test_racing_submissions_record_one_attempt(attempt_store, seeded_quiz):
    racers = 8
    barrier = threading.Barrier(racers)
    results = []
    errors = []
    guard = threading.Lock()

    def submit(answer):
        barrier.wait()
        try:
            outcome = attempt_store.submit(seeded_quiz, "alice", responses(("q1", answer)))
        except Exception as e:
            with guard:
                errors.append(e)
            return
        with guard:
            results.extend(outcome)

    threads = [
        threading.Thread(target=submit, args=("A" if idx % 2 == 0 else "B",))
        for idx in range(racers)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(results) == racers

    fresh = [result for result in results if result.status != ResponseStatus.ALREADY_ANSWERED]
    assert len(fresh) == 1

    stored = attempt_store.attempt_scores(seeded_quiz, "alice")
    expected_score = 1.0 if fresh[0].status == ResponseStatus.CORRECT else 0.0
    assert stored == {"q1": expected_score}
    assert all(
        result.attempt_score == expected_score
        for result in results
        if result.status == ResponseStatus.ALREADY_ANSWERED
    )
