"""
QuizAttempt model - one row per (quiz, question, user) answer
"""
from sqlalchemy import Column, String, Float, DateTime, Index, PrimaryKeyConstraint
from quizboard.database import Base


class QuizAttempt(Base):
    """
    Attempts table - the composite primary key is what makes the first
    submission for a (quiz, question, user) win; rows are never updated.
    """
    __tablename__ = "attempts"
    __table_args__ = (
        PrimaryKeyConstraint("quiz_id", "question_id", "username_norm"),
        Index("idx_attempts_quiz_user", "quiz_id", "username_norm"),
        Index("idx_attempts_quiz_submitted_at", "quiz_id", "submitted_at"),
    )

    quiz_id = Column(String(64), nullable=False)
    question_id = Column(String(64), nullable=False)
    username_norm = Column(String(255), nullable=False)
    answer_letter = Column(String(1), nullable=False)
    score = Column(Float, nullable=False)
    submitted_at = Column(DateTime, nullable=False)  # naive UTC

    def __repr__(self):
        return f"<QuizAttempt(quiz_id={self.quiz_id}, question_id={self.question_id}, user={self.username_norm}, score={self.score})>"
