"""
Question model - immutable multiple-choice questions keyed by content hash
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
from quizboard.database import Base


class Question(Base):
    """
    Questions table - shared by every quiz that references the same content
    """
    __tablename__ = "questions"

    question_id = Column(String(64), primary_key=True)
    prompt = Column(Text, nullable=False)
    options = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)  # [{"letter": "A", "text": "..."}]
    correct_index = Column(Integer, nullable=False)
    option_count = Column(Integer, nullable=False)
    source = Column(String(32), nullable=False, default="opentdb")
    created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<Question(question_id={self.question_id}, option_count={self.option_count})>"
