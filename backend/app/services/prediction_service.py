"""Use cases driving the prediction ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

from loguru import logger

from app.domain import (
    ConflictError,
    NotFoundError,
    Odds,
    Prediction,
    TransactionHash,
    UserPredictionStats,
)
from app.repositories import PredictionRepository


@dataclass(slots=True)
class CreatePredictionCommand:
    user_id: str
    wallet_address: str
    username: str
    match_id: int
    match_name: str
    prediction_type: str
    prediction_value: str
    predicted_team: str
    odds: Any
    transaction_hash: Any
    match_start_time: datetime


class CreatePredictionUseCase:
    """Record a prediction paid for by an on-chain transaction, at most once per hash."""

    def __init__(self, repository: PredictionRepository) -> None:
        self._repository = repository

    async def execute(self, command: CreatePredictionCommand) -> Prediction:
        # Hash format is checked before any repository access.
        transaction_hash = TransactionHash.create(command.transaction_hash)

        existing = await self._repository.find_by_transaction_hash(transaction_hash)
        if existing is not None:
            logger.info(
                "Duplicate submission for transaction {} (prediction {})",
                transaction_hash.value,
                existing.id,
            )
            raise ConflictError(
                "Prediction already exists for this transaction",
                resource="Prediction",
                key=transaction_hash.value,
            )

        odds = Odds.create(command.odds)

        prediction = Prediction.create(
            user_id=command.user_id,
            wallet_address=command.wallet_address,
            username=command.username,
            match_id=command.match_id,
            match_name=command.match_name,
            prediction_type=command.prediction_type,
            prediction_value=command.prediction_value,
            predicted_team=command.predicted_team,
            odds=odds,
            transaction_hash=transaction_hash,
            match_start_time=command.match_start_time,
        )

        saved = await self._repository.save(prediction)
        logger.info(
            "Prediction {} recorded for match {} (tx {})",
            saved.id,
            saved.match_id,
            saved.transaction_hash.value,
        )
        return saved


class GetUserPredictionsUseCase:
    def __init__(self, repository: PredictionRepository) -> None:
        self._repository = repository

    async def execute(
        self, user_id: str, wallet_address: str, limit: int = 50, offset: int = 0
    ) -> Sequence[Prediction]:
        return await self._repository.find_by_user_id(user_id, wallet_address, limit, offset)


class GetUserStatsUseCase:
    def __init__(self, repository: PredictionRepository) -> None:
        self._repository = repository

    async def execute(self, user_id: str, wallet_address: str) -> UserPredictionStats:
        stats = await self._repository.get_user_stats(user_id, wallet_address)
        if stats is None:
            raise NotFoundError("Predictions for user", user_id)
        return stats


class FindPendingForSettlementUseCase:
    """List every prediction still waiting on a match result."""

    def __init__(self, repository: PredictionRepository) -> None:
        self._repository = repository

    async def execute(self) -> Sequence[Prediction]:
        return await self._repository.find_pending_for_settlement()


__all__ = [
    "CreatePredictionCommand",
    "CreatePredictionUseCase",
    "FindPendingForSettlementUseCase",
    "GetUserPredictionsUseCase",
    "GetUserStatsUseCase",
]
