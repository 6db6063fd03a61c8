"""
Scoring engine for multiple-choice answers
Binary model: correct = 1.0, incorrect = 0.0
"""
import logging
from typing import Optional

from quizboard.schemas.attempt import ResponseStatus
from quizboard.schemas.quiz import Question

logger = logging.getLogger(__name__)


class ScoringService:
    """
    Maps a submitted letter to a verdict

    Used identically by the durable attempt store, the quiz-scoped stateless
    evaluator and the in-memory question bank, so every path agrees on what
    counts as a valid letter.
    """

    SCORES = {
        ResponseStatus.CORRECT: 1.0,
        ResponseStatus.INCORRECT: 0.0,
    }

    def normalize_letter(self, answer: Optional[str]) -> str:
        """
        Trim and upper-case a raw answer

        Returns:
            The single normalized letter, or "" when the answer is not
            exactly one character long
        """
        letter = (answer or "").strip().upper()
        if len(letter) != 1:
            return ""
        return letter

    def answer_index(self, answer: Optional[str], option_count: int) -> Optional[int]:
        """Zero-based option index for a letter, None when malformed or out of range"""
        letter = self.normalize_letter(answer)
        if not letter:
            return None

        index = ord(letter) - ord("A")
        if index < 0 or index >= option_count:
            return None
        return index

    def evaluate_answer(
        self,
        answer: Optional[str],
        option_count: int,
        correct_index: int
    ) -> ResponseStatus:
        """
        Verdict for one answer given the question's option count and key

        Args:
            answer: Raw user text
            option_count: Number of options on the question (0 = always invalid)
            correct_index: Zero-based index of the correct option

        Returns:
            CORRECT, INCORRECT or INVALID_LETTER
        """
        index = self.answer_index(answer, option_count)
        if index is None:
            return ResponseStatus.INVALID_LETTER
        if index == correct_index:
            return ResponseStatus.CORRECT
        return ResponseStatus.INCORRECT

    def evaluate(self, question: Question, answer: Optional[str]) -> ResponseStatus:
        return self.evaluate_answer(answer, len(question.options), question.correct_index)

    def score_for(self, status: ResponseStatus) -> float:
        """Persisted score for a verdict; only CORRECT/INCORRECT are ever stored"""
        return self.SCORES[status]


# Global instance
scoring_service = ScoringService()
