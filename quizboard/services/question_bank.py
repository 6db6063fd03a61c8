"""
In-memory question bank for answers submitted without a quiz id
"""
import logging
import threading
from typing import Dict, Iterable, List

from quizboard.schemas.attempt import ResponseResult, ResponseStatus, SubmittedResponse
from quizboard.schemas.quiz import Question
from quizboard.services.question_builder import make_question_id
from quizboard.services.scoring_service import scoring_service

logger = logging.getLogger(__name__)


class QuestionBank:
    """Thread-safe map of every question served by this process"""

    def __init__(self):
        self._questions: Dict[str, Question] = {}
        self._lock = threading.Lock()

    def add_questions(self, questions: Iterable[Question]) -> None:
        with self._lock:
            for question in questions:
                question_id = question.question_id or make_question_id(question)
                self._questions[question_id] = question

    def get(self, question_id: str):
        with self._lock:
            return self._questions.get(question_id)

    def __len__(self):
        with self._lock:
            return len(self._questions)

    def evaluate_responses(self, responses: List[SubmittedResponse]) -> List[ResponseResult]:
        """Score answers against known questions; nothing is persisted"""
        results = []
        for response in responses:
            question = self.get(response.question_id)
            if question is None:
                status = ResponseStatus.INVALID_QUESTION
            else:
                status = scoring_service.evaluate(question, response.answer)
            results.append(ResponseResult(question_id=response.question_id, status=status))
        return results
