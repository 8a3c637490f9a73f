"""SQLAlchemy-backed prediction persistence."""

from __future__ import annotations

from typing import Sequence

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain import (
    ConflictError,
    NotFoundError,
    Odds,
    PersistenceError,
    Prediction,
    PredictionStatus,
    TransactionHash,
    UserPredictionStats,
)
from app.models import PredictionRecord

_ACTIVE_STATUSES = (PredictionStatus.PENDING.value, PredictionStatus.IN_PROGRESS.value)


class SqlAlchemyPredictionRepository:
    """Encapsulate all prediction persistence concerns behind the repository contract."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Mutations

    async def save(self, prediction: Prediction) -> Prediction:
        record = PredictionRecord()
        _apply(record, prediction)
        self._session.add(record)
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            # The unique index on transaction_hash backs up the pre-insert check
            # when two submissions of the same transaction race.
            logger.warning(
                "Rejected duplicate prediction for transaction {}",
                prediction.transaction_hash.value,
            )
            raise ConflictError(
                "Prediction already exists for this transaction",
                resource="Prediction",
                key=prediction.transaction_hash.value,
            ) from exc
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.exception("Failed to save prediction {}", prediction.id)
            raise PersistenceError("Failed to save prediction") from exc

        await self._session.refresh(record)
        return _to_domain(record)

    async def update(self, prediction: Prediction) -> Prediction:
        try:
            record = await self._session.get(PredictionRecord, prediction.id)
            if record is None:
                raise NotFoundError("Prediction", prediction.id)
            _apply(record, prediction)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.exception("Failed to update prediction {}", prediction.id)
            raise PersistenceError("Failed to update prediction") from exc

        await self._session.refresh(record)
        return _to_domain(record)

    # ------------------------------------------------------------------
    # Queries

    async def find_by_id(self, prediction_id: str) -> Prediction | None:
        record = await self._run_scalar(
            select(PredictionRecord).where(PredictionRecord.id == prediction_id),
            "find prediction by id",
        )
        return _to_domain(record) if record else None

    async def find_by_transaction_hash(
        self, transaction_hash: TransactionHash
    ) -> Prediction | None:
        record = await self._run_scalar(
            select(PredictionRecord).where(
                PredictionRecord.transaction_hash == transaction_hash.value
            ),
            "find prediction by transaction hash",
        )
        return _to_domain(record) if record else None

    async def find_by_user_id(
        self, user_id: str, wallet_address: str, limit: int, offset: int
    ) -> list[Prediction]:
        query = (
            select(PredictionRecord)
            .where(
                PredictionRecord.user_id == user_id,
                PredictionRecord.wallet_address == wallet_address,
            )
            .order_by(PredictionRecord.placed_at.desc(), PredictionRecord.id)
            .offset(offset)
            .limit(limit)
        )
        records = await self._run_scalars(query, "find predictions by user")
        return [_to_domain(record) for record in records]

    async def find_pending_for_settlement(self) -> list[Prediction]:
        query = (
            select(PredictionRecord)
            .where(PredictionRecord.status.in_(_ACTIVE_STATUSES))
            .order_by(PredictionRecord.match_start_time.asc())
        )
        records = await self._run_scalars(query, "find pending predictions")
        return [_to_domain(record) for record in records]

    async def get_user_stats(
        self, user_id: str, wallet_address: str
    ) -> UserPredictionStats | None:
        query = select(PredictionRecord.status).where(
            PredictionRecord.user_id == user_id,
            PredictionRecord.wallet_address == wallet_address,
        )
        statuses = await self._run_scalars(query, "get user stats")
        if not statuses:
            return None
        return UserPredictionStats.from_statuses(
            user_id, wallet_address, [PredictionStatus(status) for status in statuses]
        )

    # ------------------------------------------------------------------
    # Helpers

    async def _run_scalar(self, query, action: str):
        try:
            result = await self._session.execute(query)
        except SQLAlchemyError as exc:
            logger.exception("Failed to {}", action)
            raise PersistenceError(f"Failed to {action}") from exc
        return result.scalar_one_or_none()

    async def _run_scalars(self, query, action: str) -> Sequence:
        try:
            result = await self._session.execute(query)
        except SQLAlchemyError as exc:
            logger.exception("Failed to {}", action)
            raise PersistenceError(f"Failed to {action}") from exc
        return result.scalars().all()


def _apply(record: PredictionRecord, prediction: Prediction) -> None:
    for key, value in prediction.to_dict().items():
        setattr(record, key, value)


def _to_domain(record: PredictionRecord) -> Prediction:
    return Prediction.reconstitute(
        id=record.id,
        user_id=record.user_id,
        wallet_address=record.wallet_address,
        username=record.username,
        match_id=record.match_id,
        match_name=record.match_name,
        prediction_type=record.prediction_type,
        prediction_value=record.prediction_value,
        predicted_team=record.predicted_team,
        odds=Odds.create(record.odds),
        status=PredictionStatus(record.status),
        actual_result=record.actual_result,
        transaction_hash=TransactionHash.create(record.transaction_hash),
        placed_at=record.placed_at,
        match_start_time=record.match_start_time,
        settled_at=record.settled_at,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


__all__ = ["SqlAlchemyPredictionRepository"]
