"""Validated value objects used by the prediction ledger."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from .errors import ValidationError

MIN_ODDS_EXCLUSIVE = 1.0
MAX_ODDS = 1000.0
# Scale of the odds column.
ODDS_DECIMAL_PLACES = 6
_ODDS_QUANTUM = Decimal(1).scaleb(-ODDS_DECIMAL_PLACES)

_TRANSACTION_HASH_PATTERN = re.compile(r"0x[0-9a-fA-F]{64}")


class PredictionStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    WON = "WON"
    LOST = "LOST"
    CANCELLED = "CANCELLED"

    @property
    def is_active(self) -> bool:
        return self in (PredictionStatus.PENDING, PredictionStatus.IN_PROGRESS)


@dataclass(frozen=True, slots=True)
class Odds:
    """Decimal odds of a bet, strictly above 1 and capped at 1000.

    Values are rounded half-up to six decimal places before validation, so
    an ``Odds`` instance always survives storage unchanged and is never out
    of range. Prefer :meth:`create`, which also accepts ``Decimal`` and ints.
    """

    value: float

    def __post_init__(self) -> None:
        value = self.value
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError("Odds must be a valid number", field="odds")
        if not math.isfinite(value):
            raise ValidationError("Odds must be a valid number", field="odds")
        if value > MAX_ODDS:
            raise ValidationError("Odds seem unrealistic (max 1000)", field="odds")
        if value > MIN_ODDS_EXCLUSIVE:
            value = float(Decimal(repr(value)).quantize(_ODDS_QUANTUM, rounding=ROUND_HALF_UP))
        if value <= MIN_ODDS_EXCLUSIVE:
            raise ValidationError("Odds must be greater than 1", field="odds")
        object.__setattr__(self, "value", value)

    @classmethod
    def create(cls, value: Any) -> Odds:
        if isinstance(value, Decimal):
            value = float(value)
        return cls(value)

    def __float__(self) -> float:
        return self.value


@dataclass(frozen=True, slots=True)
class TransactionHash:
    """Hex-encoded 32-byte transaction hash with a ``0x`` prefix, stored lowercase."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not isinstance(self.value, str):
            raise ValidationError("Transaction hash is required", field="transactionHash")
        if not _TRANSACTION_HASH_PATTERN.fullmatch(self.value):
            raise ValidationError("Invalid transaction hash format", field="transactionHash")
        # Hex case carries no meaning; fold it so the uniqueness key is canonical.
        object.__setattr__(self, "value", self.value.lower())

    @classmethod
    def create(cls, value: Any) -> TransactionHash:
        return cls(value)

    def __str__(self) -> str:
        return self.value


__all__ = [
    "MAX_ODDS",
    "MIN_ODDS_EXCLUSIVE",
    "Odds",
    "PredictionStatus",
    "TransactionHash",
]
