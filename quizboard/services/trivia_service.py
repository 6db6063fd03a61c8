"""
Open Trivia DB client - the external question provider
"""
import logging
import time
from typing import List, Optional

import httpx
from pydantic import ValidationError

from quizboard.config import settings
from quizboard.exceptions import QuestionProviderError
from quizboard.schemas.quiz import RawQuestion

logger = logging.getLogger(__name__)


class TriviaService:
    """Fetches raw multiple-choice questions over HTTP"""

    DEFAULT_AMOUNT = 10

    def __init__(
        self,
        api_url: str = None,
        timeout: float = None,
        client: Optional[httpx.Client] = None,
        debug: bool = None
    ):
        self.api_url = api_url or settings.TRIVIA_API_URL
        self.client = client or httpx.Client(
            timeout=timeout if timeout is not None else settings.TRIVIA_TIMEOUT_SECONDS
        )
        self.debug = settings.DEBUG if debug is None else debug

    def fetch_questions(self, amount: int) -> List[RawQuestion]:
        """
        Fetch a batch of questions

        Args:
            amount: Number of questions (<= 0 falls back to the default)

        Returns:
            Raw provider questions

        Raises:
            QuestionProviderError: transport error, non-200 status, bad JSON
                or a non-zero provider response_code
        """
        if amount <= 0:
            amount = self.DEFAULT_AMOUNT

        start = time.time()
        if self.debug:
            logger.info(f"outbound request provider=opentdb amount={amount}")

        try:
            questions = self._request(amount)
        except QuestionProviderError as e:
            if self.debug:
                logger.info(
                    f"outbound error provider=opentdb amount={amount} "
                    f"duration={time.time() - start:.3f}s err={e}"
                )
            raise

        if self.debug:
            logger.info(
                f"outbound success provider=opentdb amount={amount} "
                f"received={len(questions)} duration={time.time() - start:.3f}s"
            )
        return questions

    def _request(self, amount: int) -> List[RawQuestion]:
        try:
            response = self.client.get(self.api_url, params={"amount": amount})
        except httpx.HTTPError as e:
            logger.error(f"Trivia provider request failed: {str(e)}")
            raise QuestionProviderError(f"opentdb request failed: {e}") from e

        if response.status_code != 200:
            raise QuestionProviderError(f"opentdb returned status {response.status_code}")

        try:
            payload = response.json()
            response_code = payload.get("response_code", 0)
            results = [RawQuestion(**item) for item in payload.get("results") or []]
        except (ValueError, AttributeError, TypeError, ValidationError) as e:
            logger.error(f"Failed to parse trivia payload: {str(e)}")
            raise QuestionProviderError(f"opentdb returned an invalid payload: {e}") from e

        if response_code != 0:
            raise QuestionProviderError(f"opentdb response_code={response_code}")

        return results
