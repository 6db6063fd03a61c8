"""
Main FastAPI application
Trivia quizzes with exactly-once answer recording and ranked leaderboards
"""
from fastapi import Depends, FastAPI, Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session, sessionmaker
import logging
import time

from quizboard.config import settings
from quizboard.database import SessionLocal, get_db, init_db
from quizboard.api import quizzes, responses
from quizboard.exceptions import (
    InvalidUsernameError,
    QuestionProviderError,
    QuizNotFoundError,
    QuizServiceError,
    StorageError,
)
from quizboard.services.attempt_store import AttemptStore
from quizboard.services.question_bank import QuestionBank
from quizboard.services.quiz_service import QuizService, QuestionsFetcher
from quizboard.services.quiz_store import QuizStore
from quizboard.services.trivia_service import TriviaService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Domain error -> (status code, error code, client message)
SERVICE_ERRORS = [
    (QuizNotFoundError, 404, "quiz_not_found", "quiz not found"),
    (InvalidUsernameError, 400, "invalid_username", "username is required to link responses to leaderboard"),
    (QuestionProviderError, 502, "provider_error", "failed to fetch questions"),
    (StorageError, 500, "storage_error", "request failed"),
]


def build_quiz_service(
    session_factory: sessionmaker = SessionLocal,
    fetcher: QuestionsFetcher = None
) -> QuizService:
    """Wire the stores and the trivia provider into a QuizService"""
    if fetcher is None:
        fetcher = TriviaService().fetch_questions
    return QuizService(
        quizzes=QuizStore(session_factory),
        attempts=AttemptStore(session_factory),
        fetcher=fetcher,
    )


def create_app(
    quiz_service: QuizService = None,
    question_bank: QuestionBank = None
) -> FastAPI:
    """
    Build the application

    Without an explicit quiz_service the startup hook creates the schema and
    wires a service against the configured database.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Trivia quizzes with exactly-once scoring and cached leaderboards",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.quiz_service = quiz_service
    app.state.question_bank = question_bank or QuestionBank()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing"""

        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time

        query = f"?{request.url.query}" if settings.DEBUG and request.url.query else ""
        logger.info(
            f"{request.method} {request.url.path}{query} - "
            f"Status: {response.status_code} - "
            f"Duration: {duration:.3f}s"
        )

        return response

    # Domain error handler
    @app.exception_handler(QuizServiceError)
    async def service_exception_handler(request: Request, exc: QuizServiceError):
        """Map service errors to status codes without string matching"""

        for error_type, status_code, error_code, message in SERVICE_ERRORS:
            if isinstance(exc, error_type):
                break
        else:
            status_code, error_code, message = 500, "service_error", "request failed"

        if status_code >= 500:
            logger.error(f"Service error on {request.url.path}: {str(exc)}")

        return JSONResponse(
            status_code=status_code,
            content={
                "error": error_code,
                "message": message,
                "detail": str(exc) if settings.DEBUG else None
            }
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors gracefully"""

        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "detail": str(exc) if settings.DEBUG else None
            }
        )

    # HTTP exception handler
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Format HTTP exceptions consistently"""

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "http_error",
                "message": exc.detail,
                "status_code": exc.status_code
            }
        )

    # Malformed bodies and query parameters are client errors
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "invalid request",
                "detail": jsonable_encoder(exc.errors())
            }
        )

    # Health check endpoint
    @app.get("/health")
    def health_check(db: Session = Depends(get_db)):
        """
        Health check endpoint for monitoring

        Returns service status and database reachability
        """
        db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": time.time()
        }

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "message": "Quiz Leaderboard API",
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health"
        }

    # Include routers
    app.include_router(quizzes.router)
    app.include_router(responses.router)

    # Startup event
    @app.on_event("startup")
    async def startup_event():
        """Initialize database and services on startup"""
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

        if app.state.quiz_service is not None:
            logger.info("Using injected quiz service")
            return

        try:
            init_db()
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {str(e)}")
            raise

        app.state.quiz_service = build_quiz_service()
        logger.info("Application startup complete")

    # Shutdown event
    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown"""
        logger.info("Shutting down application")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "quizboard.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
