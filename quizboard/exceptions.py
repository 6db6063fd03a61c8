"""
Error taxonomy shared by the stores, the quiz service and the HTTP layer
"""


class QuizServiceError(Exception):
    """Base class for call-level failures"""


class QuizNotFoundError(QuizServiceError):
    """Unknown quiz id on any read or write path"""

    def __init__(self, quiz_id: str = ""):
        self.quiz_id = quiz_id
        super().__init__(f"quiz not found: {quiz_id!r}" if quiz_id else "quiz not found")


class InvalidUsernameError(QuizServiceError):
    """Username is empty after normalization"""

    def __init__(self):
        super().__init__("invalid username")


class StorageError(QuizServiceError):
    """Durable store I/O failure; the surrounding transaction was rolled back"""


class QuestionProviderError(QuizServiceError):
    """Fetching questions from the trivia provider failed"""
