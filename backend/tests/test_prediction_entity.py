from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.domain import Odds, Prediction, PredictionStatus, TransactionHash, ValidationError


def test_create_starts_pending_with_matching_timestamps(make_prediction, future_kickoff):
    prediction = make_prediction()

    assert prediction.status is PredictionStatus.PENDING
    assert prediction.placed_at == prediction.created_at == prediction.updated_at
    assert prediction.settled_at is None
    assert prediction.actual_result is None
    assert prediction.match_start_time == future_kickoff
    assert prediction.id


def test_create_rejects_past_match(make_prediction):
    with pytest.raises(ValidationError, match="past matches"):
        make_prediction(match_start_time=datetime.now(timezone.utc) - timedelta(minutes=1))


@pytest.mark.parametrize(
    "overrides",
    [
        {"user_id": ""},
        {"wallet_address": ""},
        {"match_id": 0},
        {"match_name": ""},
    ],
)
def test_create_rejects_missing_identity(make_prediction, overrides):
    with pytest.raises(ValidationError):
        make_prediction(**overrides)


def test_naive_match_start_time_is_treated_as_utc(make_prediction):
    kickoff = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=3)
    prediction = make_prediction(match_start_time=kickoff)
    assert prediction.match_start_time == kickoff.replace(tzinfo=timezone.utc)


def test_mark_in_progress_then_settle_win(make_prediction):
    prediction = make_prediction()

    prediction.mark_in_progress()
    assert prediction.status is PredictionStatus.IN_PROGRESS

    prediction.settle("2-1", True)
    assert prediction.status is PredictionStatus.WON
    assert prediction.actual_result == "2-1"
    assert prediction.settled_at is not None
    assert prediction.updated_at >= prediction.created_at


def test_settle_loss_from_pending(make_prediction):
    prediction = make_prediction()
    prediction.settle("away", False)
    assert prediction.status is PredictionStatus.LOST


@pytest.mark.parametrize(
    "transition",
    [
        lambda p: p.settle("1-0", True),
        lambda p: p.cancel(),
        lambda p: p.mark_in_progress(),
    ],
)
def test_settled_prediction_rejects_further_transitions(make_prediction, transition):
    prediction = make_prediction()
    prediction.settle("1-0", True)

    with pytest.raises(ValidationError):
        transition(prediction)
    assert prediction.status is PredictionStatus.WON


def test_cancel_only_once(make_prediction):
    prediction = make_prediction()
    prediction.cancel()
    assert prediction.status is PredictionStatus.CANCELLED

    with pytest.raises(ValidationError):
        prediction.cancel()


def test_in_progress_cannot_be_cancelled_or_restarted(make_prediction):
    prediction = make_prediction()
    prediction.mark_in_progress()

    with pytest.raises(ValidationError):
        prediction.cancel()
    with pytest.raises(ValidationError):
        prediction.mark_in_progress()


def test_fields_have_no_setters(make_prediction):
    prediction = make_prediction()
    with pytest.raises(AttributeError):
        prediction.status = PredictionStatus.WON  # type: ignore[misc]


def test_to_dict_unwraps_value_objects(make_prediction, hash_factory):
    tx = hash_factory(42)
    prediction = make_prediction(
        odds=Odds.create(3.5), transaction_hash=TransactionHash.create(tx)
    )

    data = prediction.to_dict()

    assert data["odds"] == 3.5
    assert data["transaction_hash"] == tx
    assert data["status"] == "PENDING"
    assert isinstance(data["placed_at"], datetime)
    assert isinstance(data["created_at"], datetime)


def test_reconstitute_round_trip_preserves_everything(make_prediction):
    prediction = make_prediction()
    prediction.mark_in_progress()
    prediction.settle("home", True)

    restored = Prediction.from_dict(prediction.to_dict())

    assert restored == prediction
    assert restored.odds == prediction.odds
    assert restored.transaction_hash == prediction.transaction_hash
    assert restored.status is prediction.status
    assert restored.settled_at == prediction.settled_at
    assert restored.updated_at == prediction.updated_at


def test_reconstitute_skips_business_validation(make_prediction):
    data = make_prediction().to_dict()
    data["match_start_time"] = datetime(2020, 1, 1, tzinfo=timezone.utc)

    restored = Prediction.from_dict(data)

    assert restored.match_start_time.year == 2020
