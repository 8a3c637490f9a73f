"""Prediction aggregate and its lifecycle rules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from .errors import ValidationError
from .value_objects import Odds, PredictionStatus, TransactionHash

_SETTLEABLE = frozenset({PredictionStatus.PENDING, PredictionStatus.IN_PROGRESS})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalize to aware UTC; naive values are assumed to already be UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True, slots=True)
class UserPredictionStats:
    user_id: str
    wallet_address: str
    total_predictions: int
    total_wins: int
    total_losses: int
    active_predictions: int
    win_rate: float

    @classmethod
    def from_statuses(
        cls, user_id: str, wallet_address: str, statuses: list[PredictionStatus]
    ) -> UserPredictionStats:
        wins = sum(1 for status in statuses if status is PredictionStatus.WON)
        losses = sum(1 for status in statuses if status is PredictionStatus.LOST)
        active = sum(1 for status in statuses if status.is_active)
        decided = wins + losses
        return cls(
            user_id=user_id,
            wallet_address=wallet_address,
            total_predictions=len(statuses),
            total_wins=wins,
            total_losses=losses,
            active_predictions=active,
            win_rate=(wins / decided) * 100 if decided else 0.0,
        )


class Prediction:
    """A bet placed on a match, keyed by the on-chain transaction that paid for it.

    Instances are built through :meth:`create` (new submissions, fully validated)
    or :meth:`reconstitute` (rows coming back from storage). State only changes
    through :meth:`mark_in_progress`, :meth:`settle` and :meth:`cancel`; each
    raises :class:`ValidationError` when the current status does not allow it.
    """

    __slots__ = (
        "_id",
        "_user_id",
        "_wallet_address",
        "_username",
        "_match_id",
        "_match_name",
        "_prediction_type",
        "_prediction_value",
        "_predicted_team",
        "_odds",
        "_status",
        "_actual_result",
        "_transaction_hash",
        "_placed_at",
        "_match_start_time",
        "_settled_at",
        "_created_at",
        "_updated_at",
    )

    def __init__(
        self,
        *,
        id: str,
        user_id: str,
        wallet_address: str,
        username: str,
        match_id: int,
        match_name: str,
        prediction_type: str,
        prediction_value: str,
        predicted_team: str,
        odds: Odds,
        status: PredictionStatus,
        transaction_hash: TransactionHash,
        placed_at: datetime,
        match_start_time: datetime,
        created_at: datetime,
        updated_at: datetime,
        actual_result: str | None = None,
        settled_at: datetime | None = None,
    ) -> None:
        self._id = id
        self._user_id = user_id
        self._wallet_address = wallet_address
        self._username = username
        self._match_id = match_id
        self._match_name = match_name
        self._prediction_type = prediction_type
        self._prediction_value = prediction_value
        self._predicted_team = predicted_team
        self._odds = odds
        self._status = PredictionStatus(status)
        self._actual_result = actual_result
        self._transaction_hash = transaction_hash
        self._placed_at = ensure_utc(placed_at)
        self._match_start_time = ensure_utc(match_start_time)
        self._settled_at = ensure_utc(settled_at) if settled_at else None
        self._created_at = ensure_utc(created_at)
        self._updated_at = ensure_utc(updated_at)

    # ------------------------------------------------------------------
    # Construction

    @classmethod
    def create(
        cls,
        *,
        user_id: str,
        wallet_address: str,
        username: str,
        match_id: int,
        match_name: str,
        prediction_type: str,
        prediction_value: str,
        predicted_team: str,
        odds: Odds,
        transaction_hash: TransactionHash,
        match_start_time: datetime,
        id: str | None = None,
        now: datetime | None = None,
    ) -> Prediction:
        now = ensure_utc(now) if now else utcnow()

        if not user_id or not wallet_address:
            raise ValidationError("User ID and wallet address are required", field="userId")
        if not match_id or not match_name:
            raise ValidationError("Match ID and name are required", field="matchId")
        if ensure_utc(match_start_time) < now:
            raise ValidationError(
                "Cannot place prediction on past matches", field="matchStartTime"
            )

        return cls(
            id=id or str(uuid4()),
            user_id=user_id,
            wallet_address=wallet_address,
            username=username,
            match_id=match_id,
            match_name=match_name,
            prediction_type=prediction_type,
            prediction_value=prediction_value,
            predicted_team=predicted_team,
            odds=odds,
            status=PredictionStatus.PENDING,
            transaction_hash=transaction_hash,
            placed_at=now,
            match_start_time=match_start_time,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def reconstitute(cls, **fields: Any) -> Prediction:
        """Rebuild a stored prediction without re-running business validation."""

        return cls(**fields)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Prediction:
        """Inverse of :meth:`to_dict`."""

        fields = dict(data)
        fields["odds"] = Odds.create(fields["odds"])
        fields["transaction_hash"] = TransactionHash.create(fields["transaction_hash"])
        fields["status"] = PredictionStatus(fields["status"])
        return cls.reconstitute(**fields)

    # ------------------------------------------------------------------
    # Transitions

    def mark_in_progress(self) -> None:
        if self._status is not PredictionStatus.PENDING:
            raise ValidationError("Can only mark pending predictions as in-progress", field="status")
        self._status = PredictionStatus.IN_PROGRESS
        self._updated_at = utcnow()

    def settle(self, actual_result: str, is_win: bool) -> None:
        if self._status not in _SETTLEABLE:
            raise ValidationError("Can only settle pending or in-progress predictions", field="status")
        now = utcnow()
        self._actual_result = actual_result
        self._status = PredictionStatus.WON if is_win else PredictionStatus.LOST
        self._settled_at = now
        self._updated_at = now

    def cancel(self) -> None:
        if self._status is not PredictionStatus.PENDING:
            raise ValidationError("Can only cancel pending predictions", field="status")
        self._status = PredictionStatus.CANCELLED
        self._updated_at = utcnow()

    # ------------------------------------------------------------------
    # Accessors

    @property
    def id(self) -> str:
        return self._id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def wallet_address(self) -> str:
        return self._wallet_address

    @property
    def username(self) -> str:
        return self._username

    @property
    def match_id(self) -> int:
        return self._match_id

    @property
    def match_name(self) -> str:
        return self._match_name

    @property
    def prediction_type(self) -> str:
        return self._prediction_type

    @property
    def prediction_value(self) -> str:
        return self._prediction_value

    @property
    def predicted_team(self) -> str:
        return self._predicted_team

    @property
    def odds(self) -> Odds:
        return self._odds

    @property
    def status(self) -> PredictionStatus:
        return self._status

    @property
    def actual_result(self) -> str | None:
        return self._actual_result

    @property
    def transaction_hash(self) -> TransactionHash:
        return self._transaction_hash

    @property
    def placed_at(self) -> datetime:
        return self._placed_at

    @property
    def match_start_time(self) -> datetime:
        return self._match_start_time

    @property
    def settled_at(self) -> datetime | None:
        return self._settled_at

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    # ------------------------------------------------------------------
    # Serialization

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self._id,
            "user_id": self._user_id,
            "wallet_address": self._wallet_address,
            "username": self._username,
            "match_id": self._match_id,
            "match_name": self._match_name,
            "prediction_type": self._prediction_type,
            "prediction_value": self._prediction_value,
            "predicted_team": self._predicted_team,
            "odds": self._odds.value,
            "status": self._status.value,
            "actual_result": self._actual_result,
            "transaction_hash": self._transaction_hash.value,
            "placed_at": self._placed_at,
            "match_start_time": self._match_start_time,
            "settled_at": self._settled_at,
            "created_at": self._created_at,
            "updated_at": self._updated_at,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Prediction):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"Prediction(id={self._id!r}, match_id={self._match_id!r}, "
            f"status={self._status.value}, transaction_hash={self._transaction_hash.value!r})"
        )


__all__ = ["Prediction", "UserPredictionStats", "ensure_utc", "utcnow"]
