"""
Question serving and answer submission API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
import logging

from quizboard.api.dependencies import get_question_bank, get_quiz_service
from quizboard.api.quizzes import to_questions_response
from quizboard.config import settings
from quizboard.schemas.attempt import ResponsesRequest, ResponsesResponse
from quizboard.schemas.quiz import QuestionsResponse
from quizboard.services.question_bank import QuestionBank
from quizboard.services.quiz_service import QuizService

router = APIRouter(tags=["responses"])
logger = logging.getLogger(__name__)

UNLINKED_WARNING = "responses are not linked to leaderboard unless both quiz_id and username are provided"


@router.get("/questions", response_model=QuestionsResponse, response_model_exclude_none=True)
def get_questions(
    quiz_id: Optional[str] = None,
    username: Optional[str] = None,
    create_if_missing: bool = False,
    question_count: int = Query(settings.DEFAULT_QUESTION_COUNT, ge=1),
    service: QuizService = Depends(get_quiz_service),
    bank: QuestionBank = Depends(get_question_bank)
):
    """
    Serve questions

    - Without quiz_id: creates a fresh quiz
    - With quiz_id: serves it (creating it when create_if_missing is set)
    - With quiz_id and username: annotates previous attempts
    """
    quiz_id = (quiz_id or "").strip()
    username = (username or "").strip()

    if not quiz_id:
        metadata = service.create_quiz(question_count)
        _, questions = service.get_quiz_questions(metadata.quiz_id)
    else:
        metadata, questions = service.get_quiz_questions(quiz_id, create_if_missing, question_count)

    bank.add_questions(questions)

    attempt_scores = None
    if quiz_id and username:
        attempt_scores = service.get_attempt_scores(metadata.quiz_id, username)

    return to_questions_response(metadata, questions, attempt_scores)


@router.post("/responses", response_model=ResponsesResponse, response_model_exclude_none=True)
def submit_responses(
    request: ResponsesRequest,
    service: QuizService = Depends(get_quiz_service),
    bank: QuestionBank = Depends(get_question_bank)
):
    """
    Submit answers

    Scoring path:
    - quiz_id + username: persisted exactly once, counted on the leaderboard
    - quiz_id only: validated and scored against the quiz, not persisted
    - neither: scored against questions this process has served
    """
    if request.responses is None:
        raise HTTPException(status_code=400, detail="responses is required")

    quiz_id = (request.quiz_id or "").strip()
    username = (request.username or "").strip()

    if quiz_id and username:
        results = service.submit_responses(quiz_id, username, request.responses)
    elif quiz_id:
        results = service.evaluate_responses_for_quiz(quiz_id, request.responses)
    else:
        results = bank.evaluate_responses(request.responses)

    warnings = None
    if not (quiz_id and username):
        warnings = [UNLINKED_WARNING]

    logger.info(f"Responses evaluated: quiz={quiz_id or '-'}, count={len(results)}, linked={warnings is None}")
    return ResponsesResponse(results=results, warnings=warnings)
