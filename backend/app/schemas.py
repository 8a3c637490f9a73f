from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.domain import Prediction, UserPredictionStats


class CamelModel(BaseModel):
    """Accept and emit the camelCase field names used by the web client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreatePredictionRequest(CamelModel):
    user_id: str = Field(min_length=1)
    wallet_address: str = Field(min_length=1)
    username: str = Field(default="", max_length=50)
    match_id: int = Field(gt=0)
    match_name: str = Field(min_length=1, max_length=200)
    prediction_type: str = Field(min_length=1, max_length=50)
    prediction_value: str = Field(min_length=1, max_length=50)
    predicted_team: str = Field(default="", max_length=100)
    odds: float
    transaction_hash: str
    match_start_time: datetime

    @field_validator("username", "match_name", "predicted_team", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class PredictionOut(CamelModel):
    id: str
    user_id: str
    wallet_address: str
    username: str
    match_id: int
    match_name: str
    prediction_type: str
    prediction_value: str
    predicted_team: str
    odds: float
    status: str
    actual_result: str | None = None
    transaction_hash: str
    placed_at: datetime
    match_start_time: datetime
    settled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, prediction: Prediction) -> "PredictionOut":
        return cls.model_validate(prediction.to_dict())


class UserStatsOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    user_id: str
    wallet_address: str
    total_predictions: int
    total_wins: int
    total_losses: int
    active_predictions: int
    win_rate: float

    @classmethod
    def from_domain(cls, stats: UserPredictionStats) -> "UserStatsOut":
        return cls.model_validate(stats)


class Pagination(BaseModel):
    limit: int
    offset: int


class PredictionEnvelope(BaseModel):
    success: bool = True
    data: PredictionOut


class PredictionListEnvelope(BaseModel):
    success: bool = True
    data: list[PredictionOut]
    pagination: Pagination


class UserStatsEnvelope(BaseModel):
    success: bool = True
    data: UserStatsOut


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Any | None = None


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: ErrorBody
