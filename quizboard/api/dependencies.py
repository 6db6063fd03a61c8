"""
Request-scoped access to the application's shared service objects
"""
from fastapi import HTTPException, Request

from quizboard.services.question_bank import QuestionBank
from quizboard.services.quiz_service import QuizService


def get_quiz_service(request: Request) -> QuizService:
    service = getattr(request.app.state, "quiz_service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="quiz service unavailable")
    return service


def get_question_bank(request: Request) -> QuestionBank:
    bank = getattr(request.app.state, "question_bank", None)
    if bank is None:
        bank = QuestionBank()
        request.app.state.question_bank = bank
    return bank
