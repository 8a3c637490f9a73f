from __future__ import annotations

from typing import Annotated

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from . import schemas
from .core.config import settings
from .core.logging import configure_logging
from .core.security import SessionUser, get_session_user
from .db import get_db, init_db
from .domain import DomainError
from .repositories import PredictionRepository, SqlAlchemyPredictionRepository
from .services.prediction_service import (
    CreatePredictionCommand,
    CreatePredictionUseCase,
    GetUserPredictionsUseCase,
    GetUserStatsUseCase,
)

app = FastAPI(title="Matchday Ledger API", version="0.1.0", debug=settings.debug)


@app.on_event("startup")
async def on_startup() -> None:
    """Configure logging and create tables when the API boots."""

    configure_logging(settings.log_level, json=settings.resolved_log_json)
    await init_db()


# ----------------------------------------------------------------------
# Error mapping


def _error_response(
    status_code: int, code: str, message: str, details: object | None = None
) -> JSONResponse:
    error: dict[str, object] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": False, "error": error}),
    )


@app.exception_handler(DomainError)
async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.opt(exception=exc).error(
            "{} {} failed with {}", request.method, request.url.path, exc.code
        )
    else:
        logger.warning(
            "{} {} rejected: {} {}", request.method, request.url.path, exc.code, exc.message
        )
    payload = exc.to_dict()
    return _error_response(exc.status_code, exc.code, exc.message, payload.get("details"))


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("{} {} invalid request data", request.method, request.url.path)
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "Invalid request data",
        exc.errors(),
    )


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
    )


# ----------------------------------------------------------------------
# Wiring


def _prediction_repository(db: AsyncSession = Depends(get_db)) -> PredictionRepository:
    """Provide the prediction repository bound to the request session."""

    return SqlAlchemyPredictionRepository(db)


def _create_prediction(
    repository: PredictionRepository = Depends(_prediction_repository),
) -> CreatePredictionUseCase:
    return CreatePredictionUseCase(repository)


def _user_predictions(
    repository: PredictionRepository = Depends(_prediction_repository),
) -> GetUserPredictionsUseCase:
    return GetUserPredictionsUseCase(repository)


def _user_stats(
    repository: PredictionRepository = Depends(_prediction_repository),
) -> GetUserStatsUseCase:
    return GetUserStatsUseCase(repository)


# ----------------------------------------------------------------------
# Routes


@app.get("/healthz", tags=["system"])
def healthcheck() -> dict[str, str]:
    """Basic readiness probe consumed by infrastructure monitors."""

    return {"status": "ok"}


@app.post(
    "/predictions",
    response_model=schemas.PredictionEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": schemas.ErrorEnvelope}, 409: {"model": schemas.ErrorEnvelope}},
    tags=["predictions"],
)
async def create_prediction(
    body: schemas.CreatePredictionRequest,
    use_case: CreatePredictionUseCase = Depends(_create_prediction),
):
    """Record a prediction for a confirmed on-chain transaction."""

    prediction = await use_case.execute(
        CreatePredictionCommand(
            user_id=body.user_id,
            wallet_address=body.wallet_address,
            username=body.username,
            match_id=body.match_id,
            match_name=body.match_name,
            prediction_type=body.prediction_type,
            prediction_value=body.prediction_value,
            predicted_team=body.predicted_team,
            odds=body.odds,
            transaction_hash=body.transaction_hash,
            match_start_time=body.match_start_time,
        )
    )
    return schemas.PredictionEnvelope(data=schemas.PredictionOut.from_domain(prediction))


@app.get(
    "/predictions/user/{user_id}",
    response_model=schemas.PredictionListEnvelope,
    responses={401: {"model": schemas.ErrorEnvelope}},
    tags=["predictions"],
)
async def list_user_predictions(
    user_id: str,
    *,
    limit: Annotated[int, Query(ge=1, le=settings.max_page_size)] = settings.default_page_size,
    offset: Annotated[int, Query(ge=0)] = 0,
    session: SessionUser = Depends(get_session_user),
    use_case: GetUserPredictionsUseCase = Depends(_user_predictions),
):
    """List the caller's predictions, most recently placed first."""

    predictions = await use_case.execute(user_id, session.wallet_address, limit, offset)
    return schemas.PredictionListEnvelope(
        data=[schemas.PredictionOut.from_domain(prediction) for prediction in predictions],
        pagination=schemas.Pagination(limit=limit, offset=offset),
    )


@app.get(
    "/predictions/user/{user_id}/stats",
    response_model=schemas.UserStatsEnvelope,
    responses={401: {"model": schemas.ErrorEnvelope}, 404: {"model": schemas.ErrorEnvelope}},
    tags=["predictions"],
)
async def user_prediction_stats(
    user_id: str,
    session: SessionUser = Depends(get_session_user),
    use_case: GetUserStatsUseCase = Depends(_user_stats),
):
    """Aggregate win/loss counts for the caller's predictions."""

    stats = await use_case.execute(user_id, session.wallet_address)
    return schemas.UserStatsEnvelope(data=schemas.UserStatsOut.from_domain(stats))
