"""
Quiz models - quiz metadata and the ordered question list per quiz
"""
from sqlalchemy import Column, String, Integer, DateTime, Index, PrimaryKeyConstraint, UniqueConstraint
from quizboard.database import Base


class Quiz(Base):
    """
    Quizzes table - one row per reusable quiz
    """
    __tablename__ = "quizzes"
    __table_args__ = (
        Index("idx_quizzes_created_at", "created_at"),
    )

    quiz_id = Column(String(64), primary_key=True)
    question_count = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False)  # naive UTC

    def __repr__(self):
        return f"<Quiz(quiz_id={self.quiz_id}, question_count={self.question_count})>"


class QuizQuestion(Base):
    """
    Join table - places a question at a position inside a quiz
    """
    __tablename__ = "quiz_questions"
    __table_args__ = (
        PrimaryKeyConstraint("quiz_id", "position"),
        UniqueConstraint("quiz_id", "question_id", name="uq_quiz_questions_quiz_question"),
    )

    quiz_id = Column(String(64), nullable=False)
    question_id = Column(String(64), nullable=False)
    position = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<QuizQuestion(quiz_id={self.quiz_id}, position={self.position}, question_id={self.question_id})>"
