"""
Pydantic schemas for quizzes and questions
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class Option(BaseModel):
    """One labelled answer option"""
    letter: str
    text: str


class Question(BaseModel):
    """Multiple-choice question as stored in the catalog"""
    question_id: str = ""
    question: str
    options: List[Option] = Field(default_factory=list)
    correct_index: int = -1

    class Config:
        from_attributes = True


class QuizMetadata(BaseModel):
    """Quiz identity and summary"""
    quiz_id: str
    question_count: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RawQuestion(BaseModel):
    """Question payload as returned by Open Trivia DB"""
    type: str = ""
    difficulty: str = ""
    category: str = ""
    question: str
    correct_answer: str
    incorrect_answers: List[str] = Field(default_factory=list)


class CreateQuizRequest(BaseModel):
    """Request schema for quiz creation"""
    question_count: int = Field(0, ge=0, le=50, description="Number of questions (0 = default)")


class QuizResponse(BaseModel):
    """Quiz metadata returned by the API"""
    quiz_id: str
    question_count: int
    created_at: Optional[datetime] = None


class ActiveQuizzesResponse(BaseModel):
    """Most recently created quizzes"""
    quizzes: List[QuizResponse]


class QuestionResponse(BaseModel):
    """Question annotated with the caller's previous attempt, if any"""
    question_id: str
    question: str
    options: List[Option]
    correct_index: int
    attempt_status: str = "not_attempted"
    attempt_score: Optional[float] = None


class QuestionsResponse(BaseModel):
    """Questions of one quiz"""
    quiz_id: str
    question_count: int
    questions: List[QuestionResponse]
