"""
Durable attempt store - exactly-once answer recording and leaderboard aggregation
"""
import logging
from collections import namedtuple
from datetime import datetime
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from quizboard.exceptions import QuizNotFoundError, StorageError
from quizboard.models import Question, Quiz, QuizAttempt, QuizQuestion
from quizboard.schemas.attempt import ResponseResult, ResponseStatus, SubmittedResponse
from quizboard.schemas.leaderboard import LeaderboardEntry
from quizboard.services.ranking import sort_leaderboard
from quizboard.services.scoring_service import scoring_service
from quizboard.utils.timeutil import from_db, to_db, utcnow

logger = logging.getLogger(__name__)

AnswerKey = namedtuple("AnswerKey", ["correct_index", "option_count"])

# Dialect-specific INSERT constructs that support ON CONFLICT DO NOTHING
_INSERT_IF_ABSENT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}

ATTEMPT_KEY = ["quiz_id", "question_id", "username_norm"]


class AttemptStore:
    """
    SQLAlchemy-backed attempt store

    Invariants:
    - (quiz_id, question_id, username_norm) is unique in attempts
    - an existing attempt is never overwritten; the first write wins
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def submit(
        self,
        quiz_id: str,
        username_normalized: str,
        responses: List[SubmittedResponse],
        submitted_at: datetime = None
    ) -> List[ResponseResult]:
        """
        Record a batch of answers in a single transaction

        The question keys are loaded and the attempts inserted inside one
        transaction, so concurrent submissions for the same key resolve
        through the primary key: exactly one insert takes effect and the
        others report already_answered with the persisted score.

        Args:
            quiz_id: Quiz identifier
            username_normalized: Trimmed, lower-cased username
            responses: Submitted answers
            submitted_at: Timestamp written on every new row (defaults to now)

        Returns:
            One result per response, in submission order

        Raises:
            QuizNotFoundError: the quiz has no questions (unknown id)
            StorageError: any database failure; nothing from this call is kept
        """
        submitted_at = to_db(submitted_at or utcnow())

        try:
            with self.session_factory.begin() as db:
                answer_keys = self._load_answer_keys(db, quiz_id)
                if not answer_keys:
                    raise QuizNotFoundError(quiz_id)

                insert = self._insert_if_absent(db)
                results = []

                for response in responses:
                    key = answer_keys.get(response.question_id)
                    if key is None:
                        results.append(ResponseResult(
                            question_id=response.question_id,
                            status=ResponseStatus.INVALID_QUESTION,
                        ))
                        continue

                    status = scoring_service.evaluate_answer(
                        response.answer, key.option_count, key.correct_index
                    )
                    if status == ResponseStatus.INVALID_LETTER:
                        results.append(ResponseResult(
                            question_id=response.question_id,
                            status=status,
                        ))
                        continue

                    inserted = db.execute(
                        insert(QuizAttempt)
                        .values(
                            quiz_id=quiz_id,
                            question_id=response.question_id,
                            username_norm=username_normalized,
                            answer_letter=scoring_service.normalize_letter(response.answer),
                            score=scoring_service.score_for(status),
                            submitted_at=submitted_at,
                        )
                        .on_conflict_do_nothing(index_elements=ATTEMPT_KEY)
                    )

                    if inserted.rowcount == 0:
                        # Keep the original row and report its score so the
                        # caller can reconcile without assuming this letter won
                        existing_score = db.execute(
                            select(QuizAttempt.score).where(
                                QuizAttempt.quiz_id == quiz_id,
                                QuizAttempt.question_id == response.question_id,
                                QuizAttempt.username_norm == username_normalized,
                            )
                        ).scalar_one()
                        results.append(ResponseResult(
                            question_id=response.question_id,
                            status=ResponseStatus.ALREADY_ANSWERED,
                            attempt_score=existing_score,
                        ))
                        continue

                    results.append(ResponseResult(
                        question_id=response.question_id,
                        status=status,
                    ))
        except SQLAlchemyError as e:
            logger.error(f"Submission rolled back for quiz {quiz_id}, user {username_normalized}: {str(e)}")
            raise StorageError(f"failed to record responses for quiz {quiz_id}") from e

        logger.info(
            f"Responses recorded: quiz={quiz_id}, user={username_normalized}, "
            f"submitted={len(responses)}"
        )
        return results

    def leaderboard(self, quiz_id: str) -> List[LeaderboardEntry]:
        """
        Aggregate every attempt of a quiz into ranked per-user entries

        All entries are returned; callers apply their own display limit.
        """
        try:
            with self.session_factory() as db:
                if not self._quiz_exists(db, quiz_id):
                    raise QuizNotFoundError(quiz_id)

                rows = db.execute(
                    select(
                        QuizAttempt.username_norm,
                        func.sum(QuizAttempt.score).label("total_score"),
                        func.count().label("answered_count"),
                        func.max(QuizAttempt.submitted_at).label("last_submission_at"),
                    )
                    .where(QuizAttempt.quiz_id == quiz_id)
                    .group_by(QuizAttempt.username_norm)
                ).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to aggregate leaderboard for quiz {quiz_id}: {str(e)}")
            raise StorageError(f"failed to load leaderboard for quiz {quiz_id}") from e

        entries = [
            LeaderboardEntry(
                username=row.username_norm,
                total_score=float(row.total_score or 0.0),
                answered_count=row.answered_count,
                last_submission_at=from_db(row.last_submission_at),
            )
            for row in rows
        ]
        # Sorted with the same key the cache uses for its incremental repair
        return sort_leaderboard(entries)

    def attempt_scores(self, quiz_id: str, username_normalized: str) -> Dict[str, float]:
        """Persisted score per question for one user in one quiz"""
        try:
            with self.session_factory() as db:
                rows = db.execute(
                    select(QuizAttempt.question_id, QuizAttempt.score).where(
                        QuizAttempt.quiz_id == quiz_id,
                        QuizAttempt.username_norm == username_normalized,
                    )
                ).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load attempt scores for quiz {quiz_id}: {str(e)}")
            raise StorageError(f"failed to load attempt scores for quiz {quiz_id}") from e

        return {row.question_id: row.score for row in rows}

    @staticmethod
    def _load_answer_keys(db: Session, quiz_id: str) -> Dict[str, AnswerKey]:
        rows = db.execute(
            select(Question.question_id, Question.correct_index, Question.option_count)
            .join(QuizQuestion, QuizQuestion.question_id == Question.question_id)
            .where(QuizQuestion.quiz_id == quiz_id)
        ).all()
        return {
            row.question_id: AnswerKey(row.correct_index, row.option_count)
            for row in rows
        }

    @staticmethod
    def _quiz_exists(db: Session, quiz_id: str) -> bool:
        found = db.execute(
            select(Quiz.quiz_id).where(Quiz.quiz_id == quiz_id).limit(1)
        ).first()
        return found is not None

    @staticmethod
    def _insert_if_absent(db: Session):
        dialect = db.get_bind().dialect.name
        try:
            return _INSERT_IF_ABSENT[dialect]
        except KeyError:
            raise StorageError(f"insert-if-absent is not supported on {dialect}") from None
