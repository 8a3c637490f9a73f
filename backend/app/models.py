from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base
from .domain.prediction import utcnow
from .domain.value_objects import ODDS_DECIMAL_PLACES, PredictionStatus


class PredictionRecord(Base):
    __tablename__ = "predictions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    wallet_address: Mapped[str] = mapped_column(String(64), nullable=False)
    username: Mapped[str] = mapped_column(String, nullable=False, default="")
    match_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    match_name: Mapped[str] = mapped_column(String, nullable=False)
    prediction_type: Mapped[str] = mapped_column(String, nullable=False)
    prediction_value: Mapped[str] = mapped_column(String, nullable=False)
    predicted_team: Mapped[str] = mapped_column(String, nullable=False, default="")
    odds: Mapped[Decimal] = mapped_column(Numeric(12, ODDS_DECIMAL_PLACES), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=PredictionStatus.PENDING.value, index=True
    )
    actual_result: Mapped[str | None] = mapped_column(Text, nullable=True)
    transaction_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    placed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    match_start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    settled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("transaction_hash", name="uq_predictions_transaction_hash"),
        Index("ix_predictions_user_wallet_placed", "user_id", "wallet_address", "placed_at"),
    )
