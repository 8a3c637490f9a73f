"""Prediction ledger domain: entity, value objects and error taxonomy."""

from .errors import (
    ConflictError,
    DomainError,
    NotFoundError,
    PersistenceError,
    UnauthorizedError,
    ValidationError,
)
from .match import MatchResult
from .prediction import Prediction, UserPredictionStats
from .value_objects import Odds, PredictionStatus, TransactionHash

__all__ = [
    "ConflictError",
    "DomainError",
    "MatchResult",
    "NotFoundError",
    "Odds",
    "PersistenceError",
    "Prediction",
    "PredictionStatus",
    "TransactionHash",
    "UnauthorizedError",
    "UserPredictionStats",
    "ValidationError",
]
