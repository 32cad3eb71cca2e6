"""FastAPI application exposing authentication, expense and loan endpoints."""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__, auth, crud, schemas
from .config import Settings
from .database import Database, get_db
from .errors import StorageFailure, TrackerError
from .logging import setup_logger

LOG = setup_logger(__name__)

_LOCATIONS = {"body", "query", "path", "header", "cookie"}
ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    401: {"model": schemas.ErrorResponse},
    403: {"model": schemas.ErrorResponse},
}
NOT_FOUND = {404: {"model": schemas.ErrorResponse}}
INVALID = {400: {"model": schemas.ErrorResponse}}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def validation_message(errors: List[Dict[str, Any]]) -> str:
    """Turn the first pydantic error into a field specific message."""
    if not errors:
        return "Invalid request"
    error = errors[0]
    field: Optional[str] = None
    for part in reversed(error.get("loc", ())):
        if isinstance(part, str) and part not in _LOCATIONS:
            field = part
            break
    kind = error.get("type")
    message = str(error.get("msg", "")).removeprefix("Value error, ")
    if kind == "value_error":
        return message
    if field is None:
        return "Request body is required" if kind == "missing" else f"Invalid request body: {message}"
    label = schemas.FIELD_LABELS.get(field, field)
    if kind == "missing":
        return f"{label} is required"
    return f"Invalid {label}: {message}"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TrackerError)
    async def _tracker_error(request: Request, exc: TrackerError) -> JSONResponse:
        if exc.status_code >= 500:
            LOG.error("%s %s failed: %s", request.method, request.url.path, exc)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, validation_message(list(exc.errors())))

    @app.exception_handler(SQLAlchemyError)
    async def _storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        LOG.exception("Storage failure on %s %s", request.method, request.url.path)
        return _error(StorageFailure.status_code, StorageFailure.default_message)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        LOG.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(StorageFailure.status_code, StorageFailure.default_message)


auth_router = APIRouter(prefix="/api", tags=["auth"])


@auth_router.post("/register", response_model=schemas.TokenResponse, responses=INVALID)
def register(
    payload: schemas.RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(auth.get_settings),
) -> schemas.TokenResponse:
    return schemas.TokenResponse(token=auth.register(db, payload, settings))


@auth_router.post("/login", response_model=schemas.LoginResponse, responses=INVALID)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(auth.get_settings),
) -> schemas.LoginResponse:
    token, name = auth.login(db, payload, settings)
    return schemas.LoginResponse(token=token, name=name)


expenses_router = APIRouter(
    prefix="/api/expenses",
    tags=["expenses"],
    responses=ERROR_RESPONSES,
)


@expenses_router.get("", response_model=List[schemas.ExpenseRead])
def list_expenses(
    user_id: int = Depends(auth.get_current_user_id),
    db: Session = Depends(get_db),
) -> List[schemas.ExpenseRead]:
    return crud.list_expenses(db, user_id)


@expenses_router.post("", response_model=schemas.ExpenseRead, responses=INVALID)
def create_expense(
    expense_in: schemas.ExpenseCreate,
    user_id: int = Depends(auth.get_current_user_id),
    db: Session = Depends(get_db),
) -> schemas.ExpenseRead:
    return crud.create_expense(db, user_id, expense_in)


@expenses_router.get("/{expense_id}", response_model=schemas.ExpenseRead, responses=NOT_FOUND)
def get_expense(
    expense_id: int,
    user_id: int = Depends(auth.get_current_user_id),
    db: Session = Depends(get_db),
) -> schemas.ExpenseRead:
    return crud.get_expense(db, user_id, expense_id)


@expenses_router.put("/{expense_id}", response_model=schemas.ExpenseRead, responses={**INVALID, **NOT_FOUND})
def update_expense(
    expense_id: int,
    update_in: schemas.ExpenseUpdate,
    user_id: int = Depends(auth.get_current_user_id),
    db: Session = Depends(get_db),
) -> schemas.ExpenseRead:
    return crud.update_expense(db, user_id, expense_id, update_in)


@expenses_router.delete("/{expense_id}", response_model=schemas.MessageResponse, responses=NOT_FOUND)
def delete_expense(
    expense_id: int,
    user_id: int = Depends(auth.get_current_user_id),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    crud.delete_expense(db, user_id, expense_id)
    return schemas.MessageResponse(message="Transaction deleted successfully")


loans_router = APIRouter(
    prefix="/api/loans",
    tags=["loans"],
    responses=ERROR_RESPONSES,
)


@loans_router.get("", response_model=List[schemas.LoanRead])
def list_loans(
    user_id: int = Depends(auth.get_current_user_id),
    db: Session = Depends(get_db),
) -> List[schemas.LoanRead]:
    return crud.list_loans(db, user_id)


@loans_router.post(
    "",
    response_model=schemas.LoanRead,
    status_code=status.HTTP_201_CREATED,
    responses=INVALID,
)
def create_loan(
    loan_in: schemas.LoanCreate,
    user_id: int = Depends(auth.get_current_user_id),
    db: Session = Depends(get_db),
) -> schemas.LoanRead:
    return crud.create_loan(db, user_id, loan_in)


@loans_router.get("/{loan_id}", response_model=schemas.LoanRead, responses=NOT_FOUND)
def get_loan(
    loan_id: int,
    user_id: int = Depends(auth.get_current_user_id),
    db: Session = Depends(get_db),
) -> schemas.LoanRead:
    return crud.get_loan(db, user_id, loan_id)


@loans_router.put("/{loan_id}", response_model=schemas.LoanRead, responses={**INVALID, **NOT_FOUND})
def update_loan(
    loan_id: int,
    update_in: schemas.LoanUpdate,
    user_id: int = Depends(auth.get_current_user_id),
    db: Session = Depends(get_db),
) -> schemas.LoanRead:
    return crud.update_loan(db, user_id, loan_id, update_in)


@loans_router.delete("/{loan_id}", response_model=schemas.MessageResponse, responses=NOT_FOUND)
def delete_loan(
    loan_id: int,
    user_id: int = Depends(auth.get_current_user_id),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    crud.delete_loan(db, user_id, loan_id)
    return schemas.MessageResponse(message="Loan deleted successfully")


summary_router = APIRouter(
    prefix="/api",
    tags=["summary"],
    responses=ERROR_RESPONSES,
)


@summary_router.get("/summary", response_model=schemas.SummaryRead)
def get_summary(
    user_id: int = Depends(auth.get_current_user_id),
    db: Session = Depends(get_db),
) -> schemas.SummaryRead:
    return crud.financial_summary(db, user_id)


system_router = APIRouter(tags=["system"])


@system_router.get("/health")
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the application around an injected store and configuration.

    When ``database`` is omitted one is created from ``settings`` and disposed
    of on shutdown; a caller-supplied database is left open.
    """
    settings = settings or Settings.from_env()
    owns_database = database is None
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        database.create_all()
        LOG.info("Finance tracker ready on %s", database.engine.url.render_as_string(hide_password=True))
        yield
        if owns_database:
            database.dispose()

    app = FastAPI(title="Finance Tracker Backend", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000
        LOG.info(
            "%s %s -> %s",
            request.method,
            request.url.path,
            response.status_code,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "user_id": getattr(request.state, "user_id", None),
            },
        )
        return response

    register_exception_handlers(app)
    app.include_router(auth_router)
    app.include_router(expenses_router)
    app.include_router(loans_router)
    app.include_router(summary_router)
    app.include_router(system_router)
    return app
