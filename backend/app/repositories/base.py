"""Persistence contract consumed by the prediction use cases."""

from __future__ import annotations

from typing import Protocol, Sequence

from app.domain import Prediction, TransactionHash, UserPredictionStats


class PredictionRepository(Protocol):
    async def save(self, prediction: Prediction) -> Prediction:
        """Insert a new prediction; a duplicate transaction hash raises ``ConflictError``."""

    async def find_by_id(self, prediction_id: str) -> Prediction | None: ...

    async def find_by_transaction_hash(
        self, transaction_hash: TransactionHash
    ) -> Prediction | None: ...

    async def find_by_user_id(
        self, user_id: str, wallet_address: str, limit: int, offset: int
    ) -> Sequence[Prediction]:
        """Most recently placed first."""

    async def find_pending_for_settlement(self) -> Sequence[Prediction]: ...

    async def get_user_stats(
        self, user_id: str, wallet_address: str
    ) -> UserPredictionStats | None:
        """``None`` means the user has no predictions at all."""

    async def update(self, prediction: Prediction) -> Prediction:
        """Persist a mutated prediction; an unknown id raises ``NotFoundError``."""


__all__ = ["PredictionRepository"]
