from __future__ import annotations

import json
import sys
from datetime import datetime, timedelta, timezone
from itertools import count
from pathlib import Path
from typing import Any, Callable

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from app.core.config import Settings
from app.db import create_engine, create_session_factory, init_db
from app.domain import (
    ConflictError,
    NotFoundError,
    Odds,
    Prediction,
    PredictionStatus,
    TransactionHash,
    UserPredictionStats,
)


class InMemoryPredictionRepository:
    """Dictionary-backed stand-in for the SQL repository."""

    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}
        self.calls: list[str] = []

    async def save(self, prediction: Prediction) -> Prediction:
        self.calls.append("save")
        hash_value = prediction.transaction_hash.value
        if any(row["transaction_hash"] == hash_value for row in self.rows.values()):
            raise ConflictError(
                "Prediction already exists for this transaction",
                resource="Prediction",
                key=hash_value,
            )
        self.rows[prediction.id] = prediction.to_dict()
        return Prediction.from_dict(self.rows[prediction.id])

    async def find_by_id(self, prediction_id: str) -> Prediction | None:
        self.calls.append("find_by_id")
        row = self.rows.get(prediction_id)
        return Prediction.from_dict(row) if row else None

    async def find_by_transaction_hash(self, transaction_hash: TransactionHash) -> Prediction | None:
        self.calls.append("find_by_transaction_hash")
        for row in self.rows.values():
            if row["transaction_hash"] == transaction_hash.value:
                return Prediction.from_dict(row)
        return None

    async def find_by_user_id(
        self, user_id: str, wallet_address: str, limit: int, offset: int
    ) -> list[Prediction]:
        self.calls.append("find_by_user_id")
        rows = [
            row
            for row in self.rows.values()
            if row["user_id"] == user_id and row["wallet_address"] == wallet_address
        ]
        rows.sort(key=lambda row: row["placed_at"], reverse=True)
        return [Prediction.from_dict(row) for row in rows[offset : offset + limit]]

    async def find_pending_for_settlement(self) -> list[Prediction]:
        self.calls.append("find_pending_for_settlement")
        active = {PredictionStatus.PENDING.value, PredictionStatus.IN_PROGRESS.value}
        return [Prediction.from_dict(row) for row in self.rows.values() if row["status"] in active]

    async def get_user_stats(self, user_id: str, wallet_address: str) -> UserPredictionStats | None:
        self.calls.append("get_user_stats")
        statuses = [
            PredictionStatus(row["status"])
            for row in self.rows.values()
            if row["user_id"] == user_id and row["wallet_address"] == wallet_address
        ]
        if not statuses:
            return None
        return UserPredictionStats.from_statuses(user_id, wallet_address, statuses)

    async def update(self, prediction: Prediction) -> Prediction:
        self.calls.append("update")
        if prediction.id not in self.rows:
            raise NotFoundError("Prediction", prediction.id)
        self.rows[prediction.id] = prediction.to_dict()
        return Prediction.from_dict(self.rows[prediction.id])

    def add(self, prediction: Prediction) -> Prediction:
        self.rows[prediction.id] = prediction.to_dict()
        return prediction


_hash_counter = count(1)


def make_hash(seed: int | None = None) -> str:
    value = next(_hash_counter) if seed is None else seed
    return "0x" + format(value, "064x")


@pytest.fixture
def future_kickoff() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=1)


@pytest.fixture
def make_prediction(future_kickoff) -> Callable[..., Prediction]:
    def _factory(**overrides: Any) -> Prediction:
        status = overrides.pop("status", None)
        fields: dict[str, Any] = {
            "user_id": "user-1",
            "wallet_address": "0x" + "1" * 40,
            "username": "satoshi",
            "match_id": 1035037,
            "match_name": "Arsenal vs Chelsea",
            "prediction_type": "match_winner",
            "prediction_value": "home",
            "predicted_team": "Arsenal",
            "odds": Odds.create(2.1),
            "transaction_hash": TransactionHash.create(make_hash()),
            "match_start_time": future_kickoff,
        }
        fields.update(overrides)
        prediction = Prediction.create(**fields)
        if status is not None and status is not PredictionStatus.PENDING:
            data = prediction.to_dict()
            data["status"] = status.value
            prediction = Prediction.from_dict(data)
        return prediction

    return _factory


@pytest.fixture
def repository() -> InMemoryPredictionRepository:
    return InMemoryPredictionRepository()


@pytest.fixture
async def db_session():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await init_db(bind=engine)
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def test_settings(monkeypatch) -> Settings:
    settings = Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret="test-secret-with-enough-entropy-000000",
        jwt_issuer="test-issuer",
        api_football_key="test-key",
        settlement_batch_size=2,
    )
    monkeypatch.setattr("app.core.config.get_settings", lambda: settings)
    monkeypatch.setattr("app.core.security.get_settings", lambda: settings)
    monkeypatch.setattr("app.core.config.settings", settings)
    return settings


@pytest.fixture
def hash_factory() -> Callable[..., str]:
    return make_hash


@pytest.fixture
def sample_fixture_payload() -> dict[str, Any]:
    path = Path(__file__).parent / "data" / "sample_fixture.json"
    return json.loads(path.read_text(encoding="utf-8"))
