"""
Quiz catalog store - quiz metadata and ordered question lists
"""
import logging
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from quizboard.exceptions import QuizNotFoundError, StorageError
from quizboard.models import Question as QuestionRow, Quiz, QuizAttempt, QuizQuestion
from quizboard.schemas.quiz import Option, Question, QuizMetadata
from quizboard.services.question_builder import make_question_id
from quizboard.utils.timeutil import from_db, to_db, utcnow

logger = logging.getLogger(__name__)


class QuizStore:
    """SQLAlchemy-backed quiz catalog"""

    DEFAULT_LIST_LIMIT = 10
    SOURCE = "opentdb"

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def create_quiz(self, metadata: QuizMetadata, questions: List[Question]) -> None:
        """
        Create or overwrite a quiz with its questions in one transaction

        Overwriting an existing quiz id drops its question list and every
        attempt recorded against it, since question identities may differ.
        """
        if not metadata.quiz_id:
            raise ValueError("quiz id is required")

        question_count = metadata.question_count if metadata.question_count > 0 else len(questions)
        created_at = to_db(metadata.created_at or utcnow())

        try:
            with self.session_factory.begin() as db:
                db.execute(delete(QuizQuestion).where(QuizQuestion.quiz_id == metadata.quiz_id))
                db.execute(delete(QuizAttempt).where(QuizAttempt.quiz_id == metadata.quiz_id))

                db.merge(Quiz(
                    quiz_id=metadata.quiz_id,
                    question_count=question_count,
                    created_at=created_at,
                ))

                for position, question in enumerate(questions):
                    question_id = question.question_id or make_question_id(question)
                    options = [option.model_dump() for option in question.options]
                    row = db.get(QuestionRow, question_id)
                    if row is None:
                        db.add(QuestionRow(
                            question_id=question_id,
                            prompt=question.question,
                            options=options,
                            correct_index=question.correct_index,
                            option_count=len(options),
                            source=self.SOURCE,
                            created_at=created_at,
                        ))
                    else:
                        # Shared with other quizzes; created_at stays as first stored
                        row.prompt = question.question
                        row.options = options
                        row.correct_index = question.correct_index
                        row.option_count = len(options)
                        row.source = self.SOURCE
                    db.add(QuizQuestion(
                        quiz_id=metadata.quiz_id,
                        question_id=question_id,
                        position=position,
                    ))
        except SQLAlchemyError as e:
            logger.error(f"Failed to create quiz {metadata.quiz_id}: {str(e)}")
            raise StorageError(f"failed to create quiz {metadata.quiz_id}") from e

        logger.info(f"Quiz stored: {metadata.quiz_id} ({question_count} questions)")

    def get_metadata(self, quiz_id: str) -> QuizMetadata:
        try:
            with self.session_factory() as db:
                quiz = db.get(Quiz, quiz_id)
                if quiz is None:
                    raise QuizNotFoundError(quiz_id)
                return self._to_metadata(quiz)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load quiz metadata {quiz_id}: {str(e)}")
            raise StorageError(f"failed to load quiz {quiz_id}") from e

    def exists(self, quiz_id: str) -> bool:
        try:
            with self.session_factory() as db:
                return self._exists(db, quiz_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to check quiz {quiz_id}: {str(e)}")
            raise StorageError(f"failed to check quiz {quiz_id}") from e

    def get_questions(self, quiz_id: str) -> List[Question]:
        """
        Ordered questions of a quiz

        Raises:
            QuizNotFoundError: only when the quiz row itself is missing; a
                known quiz with no questions returns an empty list
        """
        try:
            with self.session_factory() as db:
                rows = db.execute(
                    select(QuestionRow)
                    .join(QuizQuestion, QuizQuestion.question_id == QuestionRow.question_id)
                    .where(QuizQuestion.quiz_id == quiz_id)
                    .order_by(QuizQuestion.position.asc())
                ).scalars().all()

                if not rows and not self._exists(db, quiz_id):
                    raise QuizNotFoundError(quiz_id)

                return [
                    Question(
                        question_id=row.question_id,
                        question=row.prompt,
                        options=[Option(**option) for option in row.options],
                        correct_index=row.correct_index,
                    )
                    for row in rows
                ]
        except SQLAlchemyError as e:
            logger.error(f"Failed to load questions for quiz {quiz_id}: {str(e)}")
            raise StorageError(f"failed to load questions for quiz {quiz_id}") from e

    def list_recent(self, limit: int) -> List[QuizMetadata]:
        """Most recently created quizzes first"""
        if limit <= 0:
            limit = self.DEFAULT_LIST_LIMIT

        try:
            with self.session_factory() as db:
                quizzes = db.execute(
                    select(Quiz).order_by(Quiz.created_at.desc()).limit(limit)
                ).scalars().all()
                return [self._to_metadata(quiz) for quiz in quizzes]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list quizzes: {str(e)}")
            raise StorageError("failed to list quizzes") from e

    @staticmethod
    def _exists(db: Session, quiz_id: str) -> bool:
        found = db.execute(
            select(Quiz.quiz_id).where(Quiz.quiz_id == quiz_id).limit(1)
        ).first()
        return found is not None

    @staticmethod
    def _to_metadata(quiz: Quiz) -> QuizMetadata:
        return QuizMetadata(
            quiz_id=quiz.quiz_id,
            question_count=quiz.question_count,
            created_at=from_db(quiz.created_at),
        )
