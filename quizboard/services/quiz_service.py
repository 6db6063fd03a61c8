"""
Quiz service - orchestrates the catalog store, the attempt store and the cache

Strategy:
- Reads are served from the process-local cache, filled from the stores on miss
- Submissions go to the attempt store, then patch cached leaderboards and
  attempt scores from the returned verdicts instead of re-querying
"""
import logging
import random
import string
from typing import Callable, Dict, List, Optional, Tuple

from quizboard.exceptions import InvalidUsernameError, QuestionProviderError, QuizNotFoundError, StorageError
from quizboard.schemas.attempt import ResponseResult, ResponseStatus, SubmittedResponse
from quizboard.schemas.leaderboard import LeaderboardEntry
from quizboard.schemas.quiz import Question, QuizMetadata, RawQuestion
from quizboard.services.attempt_store import AttemptStore
from quizboard.services.question_builder import build_questions
from quizboard.services.quiz_store import QuizStore
from quizboard.services.scoring_service import scoring_service
from quizboard.services.service_cache import ServiceCache
from quizboard.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

QuestionsFetcher = Callable[[int], List[RawQuestion]]

QUIZ_ID_PREFIX = "qz_"
QUIZ_ID_ALPHABET = string.ascii_lowercase + string.digits
QUIZ_ID_LENGTH = 10


def normalize_username(username: Optional[str]) -> str:
    """Trim and lower-case; the result is the identity key for attempts"""
    normalized = (username or "").strip().lower()
    if not normalized:
        raise InvalidUsernameError()
    return normalized


def generate_quiz_id() -> str:
    return QUIZ_ID_PREFIX + "".join(random.choice(QUIZ_ID_ALPHABET) for _ in range(QUIZ_ID_LENGTH))


class QuizService:
    """
    Service surface consumed by the HTTP layer

    Each instance owns its ServiceCache, so independent instances never share
    cached state.
    """

    def __init__(
        self,
        quizzes: QuizStore,
        attempts: AttemptStore,
        fetcher: Optional[QuestionsFetcher] = None,
        cache: Optional[ServiceCache] = None
    ):
        self.quizzes = quizzes
        self.attempts = attempts
        self.fetcher = fetcher
        self.cache = cache if cache is not None else ServiceCache()

    def create_quiz(self, question_count: int) -> QuizMetadata:
        """Create a quiz under a freshly generated id"""
        return self._create_quiz_with_id(generate_quiz_id(), question_count)

    def ensure_quiz(
        self,
        quiz_id: str,
        create_if_missing: bool = False,
        question_count: int = 0
    ) -> QuizMetadata:
        """
        Metadata of a quiz, optionally creating it when unknown

        Raises:
            QuizNotFoundError: blank id, or unknown id without create_if_missing
        """
        quiz_id = (quiz_id or "").strip()
        if not quiz_id:
            raise QuizNotFoundError(quiz_id)

        metadata = self.cache.get_metadata(quiz_id)
        if metadata is not None:
            return metadata

        logger.debug(f"Quiz metadata cache miss: {quiz_id}")
        try:
            metadata = self.quizzes.get_metadata(quiz_id)
        except QuizNotFoundError:
            if not create_if_missing:
                raise
            return self._create_quiz_with_id(quiz_id, question_count)

        self.cache.set_metadata(metadata)
        return metadata

    def get_quiz_questions(
        self,
        quiz_id: str,
        create_if_missing: bool = False,
        question_count: int = 0
    ) -> Tuple[QuizMetadata, List[Question]]:
        cached = self.cache.get_quiz((quiz_id or "").strip())
        if cached is not None:
            return cached

        metadata = self.ensure_quiz(quiz_id, create_if_missing, question_count)

        cached = self.cache.get_quiz(metadata.quiz_id)
        if cached is not None:
            return cached

        logger.debug(f"Quiz questions cache miss: {metadata.quiz_id}")
        questions = self.quizzes.get_questions(metadata.quiz_id)
        self.cache.set_quiz(metadata, questions)
        return metadata, questions

    def evaluate_responses_for_quiz(
        self,
        quiz_id: str,
        responses: List[SubmittedResponse]
    ) -> List[ResponseResult]:
        """Score answers against a quiz without persisting anything"""
        _, questions = self.get_quiz_questions(quiz_id)
        lookup = {question.question_id: question for question in questions}

        results = []
        for response in responses:
            question = lookup.get(response.question_id)
            if question is None:
                status = ResponseStatus.INVALID_QUESTION
            else:
                status = scoring_service.evaluate(question, response.answer)
            results.append(ResponseResult(question_id=response.question_id, status=status))
        return results

    def submit_responses(
        self,
        quiz_id: str,
        username: str,
        responses: List[SubmittedResponse]
    ) -> List[ResponseResult]:
        """
        Persist a user's answers exactly once and patch the cached views

        Raises:
            QuizNotFoundError: unknown quiz
            InvalidUsernameError: blank username
            StorageError: the submission transaction was rolled back
        """
        metadata = self.ensure_quiz(quiz_id)
        username_normalized = normalize_username(username)

        with self.cache.lock_for(metadata.quiz_id):
            submitted_at = utcnow()
            results = self.attempts.submit(
                metadata.quiz_id, username_normalized, responses, submitted_at=submitted_at
            )
            self.cache.patch_leaderboard(metadata.quiz_id, username_normalized, results, submitted_at)
            self.cache.patch_attempt_scores(metadata.quiz_id, username_normalized, results)

        return results

    def get_leaderboard(self, quiz_id: str, limit: int = 0) -> List[LeaderboardEntry]:
        """Ranked leaderboard; limit <= 0 returns every entry"""
        metadata = self.ensure_quiz(quiz_id)

        with self.cache.lock_for(metadata.quiz_id):
            board = self.cache.get_leaderboard(metadata.quiz_id)
            if board is None:
                logger.debug(f"Leaderboard cache miss: {metadata.quiz_id}")
                board = self.cache.set_leaderboard(
                    metadata.quiz_id, self.attempts.leaderboard(metadata.quiz_id)
                )
            return board.snapshot(limit)

    def get_attempt_scores(self, quiz_id: str, username: str) -> Dict[str, float]:
        """Persisted score per question for one user"""
        metadata = self.ensure_quiz(quiz_id)
        username_normalized = normalize_username(username)

        with self.cache.lock_for(metadata.quiz_id):
            scores = self.cache.get_attempt_scores(metadata.quiz_id, username_normalized)
            if scores is None:
                logger.debug(f"Attempt-score cache miss: {metadata.quiz_id}/{username_normalized}")
                scores = self.cache.set_attempt_scores(
                    metadata.quiz_id,
                    username_normalized,
                    self.attempts.attempt_scores(metadata.quiz_id, username_normalized),
                )
            return dict(scores)

    def list_active_quizzes(self, limit: int) -> List[QuizMetadata]:
        return self.quizzes.list_recent(limit)

    def _create_quiz_with_id(self, quiz_id: str, question_count: int) -> QuizMetadata:
        if self.fetcher is None:
            raise QuestionProviderError("question fetcher is not configured")

        metadata = self.cache.get_metadata(quiz_id)
        if metadata is not None:
            return metadata

        try:
            existing = self.quizzes.get_metadata(quiz_id)
        except QuizNotFoundError:
            pass
        else:
            self.cache.set_metadata(existing)
            return existing

        questions = build_questions(self.fetcher(question_count))
        metadata = QuizMetadata(
            quiz_id=quiz_id,
            question_count=len(questions),
            created_at=utcnow(),
        )

        try:
            self.quizzes.create_quiz(metadata, questions)
        except StorageError as create_error:
            # A concurrent request may have created the same id first
            try:
                existing = self.quizzes.get_metadata(quiz_id)
            except (QuizNotFoundError, StorageError):
                raise create_error
            logger.info(f"Quiz {quiz_id} was created concurrently, reusing it")
            self.cache.set_metadata(existing)
            return existing

        logger.info(f"Quiz created: {quiz_id} ({len(questions)} questions)")
        self.cache.set_quiz(metadata, questions)
        return metadata
