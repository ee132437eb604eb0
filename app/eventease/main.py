import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from eventease.constant_file import CORS_ORIGINS, LOG_LEVEL
from eventease.errors import EventEaseError, validation_error_from
from eventease.response_model import ErrorResponseModel

from eventease.routes.user_route import router as UserRouter
from eventease.routes.event_route import router as EventRouter
from eventease.routes.registration_route import router as RegistrationRouter

from eventease.database import Base, engine
from eventease.models.user_model import User
from eventease.models.auth_session_model import AuthSession
from eventease.models.otp_records_model import OTPRecord
from eventease.models.event_model import Event
from eventease.models.registration_model import Registration

logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(title="EventEase")

app.include_router(UserRouter, tags=["User"], prefix="/user")
app.include_router(EventRouter, tags=["Event"], prefix="/event")
app.include_router(RegistrationRouter, tags=["Registration"], prefix="/registration")


@app.exception_handler(EventEaseError)
async def eventease_error_handler(request: Request, exc: EventEaseError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponseModel(exc.title, exc.status_code, exc.message),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = validation_error_from(exc)
    return JSONResponse(
        status_code=error.status_code,
        content=ErrorResponseModel(error.title, error.status_code, error.message),
    )


# Create all tables (must be after importing all models)
# The server still starts without a database; requests then fail with 503
try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")
except SQLAlchemyError as e:
    logger.warning(f"Could not create database tables: {e}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["POST", "GET", "OPTIONS", "DELETE", "PUT"],
    allow_headers=["*"],
)
