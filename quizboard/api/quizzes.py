"""
Quiz creation, listing, questions and leaderboard API endpoints
"""
from fastapi import APIRouter, Body, Depends, Query
from typing import Dict, List, Optional
import logging

from quizboard.api.dependencies import get_question_bank, get_quiz_service
from quizboard.config import settings
from quizboard.schemas.leaderboard import LeaderboardResponse
from quizboard.schemas.quiz import (
    ActiveQuizzesResponse,
    CreateQuizRequest,
    Question,
    QuestionResponse,
    QuestionsResponse,
    QuizMetadata,
    QuizResponse,
)
from quizboard.services.question_bank import QuestionBank
from quizboard.services.quiz_service import QuizService

router = APIRouter(prefix="/quizzes", tags=["quizzes"])
logger = logging.getLogger(__name__)


def to_quiz_response(metadata: QuizMetadata) -> QuizResponse:
    return QuizResponse(
        quiz_id=metadata.quiz_id,
        question_count=metadata.question_count,
        created_at=metadata.created_at,
    )


def to_questions_response(
    metadata: QuizMetadata,
    questions: List[Question],
    attempt_scores: Optional[Dict[str, float]] = None
) -> QuestionsResponse:
    """Annotate each question with the caller's persisted attempt, if any"""
    attempt_scores = attempt_scores or {}
    items = []
    for question in questions:
        item = QuestionResponse(
            question_id=question.question_id,
            question=question.question,
            options=question.options,
            correct_index=question.correct_index,
        )
        if question.question_id in attempt_scores:
            item.attempt_status = "already_attempted"
            item.attempt_score = attempt_scores[question.question_id]
        items.append(item)

    return QuestionsResponse(
        quiz_id=metadata.quiz_id,
        question_count=len(questions),
        questions=items,
    )


@router.post("", response_model=QuizResponse, status_code=201)
def create_quiz(
    request: Optional[CreateQuizRequest] = Body(None),
    service: QuizService = Depends(get_quiz_service),
    bank: QuestionBank = Depends(get_question_bank)
):
    """
    Create a quiz from freshly fetched trivia questions

    - Fetches questions from Open Trivia DB
    - Persists the quiz and caches it
    - Registers the questions for quiz-less answer evaluation
    """
    question_count = (request.question_count if request else 0) or settings.DEFAULT_QUESTION_COUNT

    metadata = service.create_quiz(question_count)
    _, questions = service.get_quiz_questions(metadata.quiz_id)
    bank.add_questions(questions)

    logger.info(f"Quiz created via API: {metadata.quiz_id}")
    return to_quiz_response(metadata)


@router.get("/active", response_model=ActiveQuizzesResponse)
def list_active_quizzes(
    limit: int = Query(settings.DEFAULT_LIST_LIMIT, ge=1, description="Maximum number of quizzes"),
    service: QuizService = Depends(get_quiz_service)
):
    """Most recently created quizzes first"""
    quizzes = service.list_active_quizzes(limit)
    return ActiveQuizzesResponse(quizzes=[to_quiz_response(item) for item in quizzes])


@router.get(
    "/{quiz_id}/questions",
    response_model=QuestionsResponse,
    response_model_exclude_none=True,
)
def get_quiz_questions(
    quiz_id: str,
    username: Optional[str] = None,
    create_if_missing: bool = False,
    question_count: int = Query(settings.DEFAULT_QUESTION_COUNT, ge=1),
    service: QuizService = Depends(get_quiz_service),
    bank: QuestionBank = Depends(get_question_bank)
):
    """
    Questions of a quiz

    With a username, each question reports whether that user already
    answered it and with which score.
    """
    metadata, questions = service.get_quiz_questions(quiz_id, create_if_missing, question_count)
    bank.add_questions(questions)

    attempt_scores = None
    if username and username.strip():
        attempt_scores = service.get_attempt_scores(metadata.quiz_id, username)

    return to_questions_response(metadata, questions, attempt_scores)


@router.get("/{quiz_id}/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(
    quiz_id: str,
    limit: int = Query(settings.DEFAULT_LEADERBOARD_LIMIT, description="<= 0 returns the whole leaderboard"),
    service: QuizService = Depends(get_quiz_service)
):
    """Ranked leaderboard: score desc, earliest finisher, then username"""
    entries = service.get_leaderboard(quiz_id, limit)
    return LeaderboardResponse(quiz_id=quiz_id.strip(), leaderboard=entries)
