"""
Database models package
"""
from quizboard.models.quiz import Quiz, QuizQuestion
from quizboard.models.question import Question
from quizboard.models.quiz_attempt import QuizAttempt

__all__ = ["Quiz", "QuizQuestion", "Question", "QuizAttempt"]
