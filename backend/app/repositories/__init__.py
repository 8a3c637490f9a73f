"""Repository abstractions for database interactions."""

from .base import PredictionRepository
from .prediction_repository import SqlAlchemyPredictionRepository

__all__ = [
    "PredictionRepository",
    "SqlAlchemyPredictionRepository",
]
