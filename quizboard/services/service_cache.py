"""
Process-local cache for the quiz service

Holds quiz metadata, quiz questions, per-quiz leaderboards and per-user
attempt scores. Entries are filled lazily on read and patched in place after
writes; there is no TTL or eviction, the durable stores stay the source of
truth.
"""
import logging
import threading
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from quizboard.schemas.attempt import ResponseResult, ResponseStatus
from quizboard.schemas.leaderboard import LeaderboardEntry
from quizboard.schemas.quiz import Question, QuizMetadata
from quizboard.services.ranking import ranks_before

logger = logging.getLogger(__name__)


def apply_leaderboard_limit(entries: List[LeaderboardEntry], limit: int) -> List[LeaderboardEntry]:
    """limit <= 0 means the whole leaderboard"""
    if limit <= 0 or limit >= len(entries):
        return entries
    return entries[:limit]


class LeaderboardCache:
    """Leaderboard kept in rank order, with a username -> position index"""

    def __init__(self, entries: Iterable[LeaderboardEntry] = ()):
        self.ordered: List[LeaderboardEntry] = [entry.model_copy() for entry in entries]
        self.index_by_user: Dict[str, int] = {
            entry.username: idx for idx, entry in enumerate(self.ordered)
        }

    def snapshot(self, limit: int = 0) -> List[LeaderboardEntry]:
        """Copies of the first `limit` entries, so callers never see later patches"""
        return [entry.model_copy() for entry in apply_leaderboard_limit(self.ordered, limit)]

    def apply_submission(
        self,
        username: str,
        new_answers: int,
        score_delta: float,
        submitted_at: datetime
    ) -> int:
        """
        Add one user's new answers and restore rank order

        Returns:
            The user's position after the repair
        """
        idx = self.index_by_user.get(username)
        if idx is None:
            self.ordered.append(LeaderboardEntry(
                username=username,
                total_score=score_delta,
                answered_count=new_answers,
                last_submission_at=submitted_at,
            ))
            idx = len(self.ordered) - 1
            self.index_by_user[username] = idx
        else:
            entry = self.ordered[idx]
            entry.total_score += score_delta
            entry.answered_count += new_answers
            entry.last_submission_at = submitted_at

        return self._bubble(idx)

    def _bubble(self, idx: int) -> int:
        # Only one row changed, so walking it to its slot restores the total
        # order in O(distance moved) without re-sorting
        while idx > 0 and ranks_before(self.ordered[idx], self.ordered[idx - 1]):
            self._swap(idx, idx - 1)
            idx -= 1

        while idx + 1 < len(self.ordered) and ranks_before(self.ordered[idx + 1], self.ordered[idx]):
            self._swap(idx, idx + 1)
            idx += 1

        return idx

    def _swap(self, i: int, j: int) -> None:
        self.ordered[i], self.ordered[j] = self.ordered[j], self.ordered[i]
        self.index_by_user[self.ordered[i].username] = i
        self.index_by_user[self.ordered[j].username] = j


def summarize_results(results: Iterable[ResponseResult]) -> Tuple[int, float]:
    """
    New answers and score gained from one submission

    Only correct/incorrect results are new rows; invalid and already
    answered items contribute nothing.
    """
    new_answers = 0
    score_delta = 0.0
    for result in results:
        if result.status == ResponseStatus.CORRECT:
            new_answers += 1
            score_delta += 1.0
        elif result.status == ResponseStatus.INCORRECT:
            new_answers += 1
    return new_answers, score_delta


class ServiceCache:
    """
    Cache state owned by one QuizService instance

    Leaderboard and attempt-score entries of a quiz are mutated only while
    holding that quiz's lock (see lock_for). Metadata and question entries
    are written once per key and read without locking.
    """

    def __init__(self):
        self.quiz_metadata: Dict[str, QuizMetadata] = {}
        self.quiz_questions: Dict[str, List[Question]] = {}
        self.leaderboards: Dict[str, LeaderboardCache] = {}
        self.attempt_scores: Dict[str, Dict[str, float]] = {}

        self._locks: Dict[str, threading.RLock] = defaultdict(threading.RLock)
        self._locks_guard = threading.Lock()

    def lock_for(self, quiz_id: str) -> threading.RLock:
        """Critical section guarding one quiz's leaderboard and attempt scores"""
        with self._locks_guard:
            return self._locks[quiz_id]

    # Quiz metadata / questions

    def get_metadata(self, quiz_id: str) -> Optional[QuizMetadata]:
        return self.quiz_metadata.get(quiz_id)

    def set_metadata(self, metadata: QuizMetadata) -> None:
        self.quiz_metadata[metadata.quiz_id] = metadata

    def get_quiz(self, quiz_id: str) -> Optional[Tuple[QuizMetadata, List[Question]]]:
        metadata = self.quiz_metadata.get(quiz_id)
        questions = self.quiz_questions.get(quiz_id)
        if metadata is None or questions is None:
            return None
        return metadata, questions

    def set_quiz(self, metadata: QuizMetadata, questions: List[Question]) -> None:
        self.quiz_metadata[metadata.quiz_id] = metadata
        self.quiz_questions[metadata.quiz_id] = questions

    # Leaderboards

    def get_leaderboard(self, quiz_id: str) -> Optional[LeaderboardCache]:
        return self.leaderboards.get(quiz_id)

    def set_leaderboard(self, quiz_id: str, entries: Iterable[LeaderboardEntry]) -> LeaderboardCache:
        board = LeaderboardCache(entries)
        self.leaderboards[quiz_id] = board
        return board

    def patch_leaderboard(
        self,
        quiz_id: str,
        username: str,
        results: List[ResponseResult],
        submitted_at: datetime
    ) -> None:
        """Apply a submission to an already materialized leaderboard"""
        board = self.leaderboards.get(quiz_id)
        if board is None:
            return

        new_answers, score_delta = summarize_results(results)
        if new_answers == 0:
            return

        position = board.apply_submission(username, new_answers, score_delta, submitted_at)
        logger.debug(f"Leaderboard patched: quiz={quiz_id}, user={username}, position={position}")

    # Attempt scores

    @staticmethod
    def attempt_scores_key(quiz_id: str, username_normalized: str) -> str:
        return f"{quiz_id}::{username_normalized}"

    def get_attempt_scores(self, quiz_id: str, username_normalized: str) -> Optional[Dict[str, float]]:
        return self.attempt_scores.get(self.attempt_scores_key(quiz_id, username_normalized))

    def set_attempt_scores(self, quiz_id: str, username_normalized: str, scores: Dict[str, float]) -> Dict[str, float]:
        scores = dict(scores or {})
        self.attempt_scores[self.attempt_scores_key(quiz_id, username_normalized)] = scores
        return scores

    def patch_attempt_scores(self, quiz_id: str, username_normalized: str, results: List[ResponseResult]) -> None:
        """Apply a submission to an already materialized attempt-score map"""
        scores = self.get_attempt_scores(quiz_id, username_normalized)
        if scores is None:
            return

        for result in results:
            if result.status == ResponseStatus.CORRECT:
                scores[result.question_id] = 1.0
            elif result.status == ResponseStatus.INCORRECT:
                scores[result.question_id] = 0.0
            elif result.status == ResponseStatus.ALREADY_ANSWERED and result.attempt_score is not None:
                scores[result.question_id] = result.attempt_score
