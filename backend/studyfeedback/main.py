# main.py
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studyfeedback.api.endpoints import health
from studyfeedback.api.endpoints.web import feedback
from studyfeedback.core.config import settings
from studyfeedback.core.errors import FeedbackServiceError, ValidationError, field_errors
from studyfeedback.db.mongo import close_mongo_connection, connect_to_mongo, ensure_indexes

load_dotenv()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# [수명 주기 관리] DB 연결 및 해제
@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    await ensure_indexes()
    logger.info("Study tracker feedback backend started (%s)", settings.ENVIRONMENT)
    yield
    await close_mongo_connection()


app = FastAPI(title="Study Tracker Feedback Backend", lifespan=lifespan)

# --- 미들웨어 설정 ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- 에러 -> {"success": false, ...} envelope ---

@app.exception_handler(FeedbackServiceError)
async def feedback_error_handler(request: Request, exc: FeedbackServiceError):
    if exc.status_code >= 500:
        logger.error(
            "Unexpected failure on %s %s: %s", request.method, request.url.path, exc.message, exc_info=exc
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": "Internal server error"},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    err = ValidationError(field_errors(exc.errors()))
    return JSONResponse(status_code=err.status_code, content=err.to_content())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"},
    )


app.include_router(health.router)
app.include_router(feedback.router, prefix="/api")
