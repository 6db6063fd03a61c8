"""
Pydantic schemas for answer submissions and their per-question results
"""
from enum import Enum
from pydantic import BaseModel
from typing import List, Optional


class ResponseStatus(str, Enum):
    """Inline status of one submitted answer"""
    CORRECT = "correct"
    INCORRECT = "incorrect"
    INVALID_QUESTION = "invalid_question"
    INVALID_LETTER = "invalid_letter"
    ALREADY_ANSWERED = "already_answered"


class SubmittedResponse(BaseModel):
    """One answer: question id plus the raw letter typed by the user"""
    question_id: str
    answer: Optional[str] = ""


class ResponseResult(BaseModel):
    """
    Result for one submitted answer

    attempt_score is only set for already_answered and carries the score that
    was persisted by the first submission.
    """
    question_id: str
    status: ResponseStatus
    attempt_score: Optional[float] = None


class ResponsesRequest(BaseModel):
    """Schema for answer submission"""
    quiz_id: Optional[str] = None
    username: Optional[str] = None
    responses: Optional[List[SubmittedResponse]] = None


class ResponsesResponse(BaseModel):
    """Response after answer submission"""
    results: List[ResponseResult]
    warnings: Optional[List[str]] = None
