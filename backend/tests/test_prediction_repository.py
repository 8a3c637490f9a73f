from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.domain import (
    ConflictError,
    NotFoundError,
    Odds,
    Prediction,
    PredictionStatus,
    TransactionHash,
)
from app.repositories import SqlAlchemyPredictionRepository

WALLET = "0x" + "1" * 40


@pytest.fixture
def sql_repository(db_session) -> SqlAlchemyPredictionRepository:
    return SqlAlchemyPredictionRepository(db_session)


async def test_save_then_find_by_id_and_hash(sql_repository, make_prediction):
    prediction = make_prediction(odds=Odds.create(2.35))

    saved = await sql_repository.save(prediction)

    assert saved == prediction
    by_id = await sql_repository.find_by_id(prediction.id)
    by_hash = await sql_repository.find_by_transaction_hash(prediction.transaction_hash)
    assert by_id is not None and by_hash is not None
    assert by_id.id == by_hash.id == prediction.id
    assert by_id.odds == Odds.create(2.35)
    assert by_id.status is PredictionStatus.PENDING


async def test_timestamps_come_back_as_aware_utc(sql_repository, make_prediction):
    prediction = make_prediction()
    await sql_repository.save(prediction)

    loaded = await sql_repository.find_by_id(prediction.id)

    assert loaded.placed_at.tzinfo is not None
    assert loaded.placed_at.utcoffset() == timedelta(0)
    assert loaded.match_start_time == prediction.match_start_time


async def test_unknown_lookups_return_none(sql_repository, hash_factory):
    assert await sql_repository.find_by_id("missing") is None
    assert (
        await sql_repository.find_by_transaction_hash(TransactionHash.create(hash_factory()))
        is None
    )


async def test_unique_hash_is_enforced_by_storage(sql_repository, make_prediction, hash_factory):
    tx_hash = TransactionHash.create(hash_factory())
    first = make_prediction(transaction_hash=tx_hash)
    racing = make_prediction(transaction_hash=tx_hash, user_id="user-2")
    await sql_repository.save(first)

    with pytest.raises(ConflictError):
        await sql_repository.save(racing)

    assert await sql_repository.find_by_id(racing.id) is None
    stored = await sql_repository.find_by_transaction_hash(tx_hash)
    assert stored.id == first.id


async def test_find_by_user_orders_newest_first_and_paginates(sql_repository, make_prediction):
    base = datetime.now(timezone.utc)
    created = []
    for minutes in range(4):
        prediction = make_prediction(now=base + timedelta(minutes=minutes))
        created.append(await sql_repository.save(prediction))
    await sql_repository.save(make_prediction(wallet_address="0x" + "3" * 40))

    first_page = await sql_repository.find_by_user_id("user-1", WALLET, limit=3, offset=0)
    second_page = await sql_repository.find_by_user_id("user-1", WALLET, limit=3, offset=3)

    assert [p.id for p in first_page] == [created[3].id, created[2].id, created[1].id]
    assert [p.id for p in second_page] == [created[0].id]


async def test_find_pending_for_settlement_filters_closed(sql_repository, make_prediction):
    pending = await sql_repository.save(make_prediction())
    live = make_prediction()
    live.mark_in_progress()
    await sql_repository.save(live)
    won = make_prediction()
    won.settle("home", True)
    await sql_repository.save(won)

    found = await sql_repository.find_pending_for_settlement()

    assert {p.id for p in found} == {pending.id, live.id}


async def test_user_stats(sql_repository, make_prediction):
    outcomes = [True, True, False]
    for is_win in outcomes:
        prediction = make_prediction()
        prediction.settle("home" if is_win else "away", is_win)
        await sql_repository.save(prediction)
    await sql_repository.save(make_prediction())

    stats = await sql_repository.get_user_stats("user-1", WALLET)

    assert stats.total_predictions == 4
    assert stats.total_wins == 2
    assert stats.total_losses == 1
    assert stats.active_predictions == 1
    assert stats.win_rate == pytest.approx(200 / 3)


async def test_user_stats_none_without_rows(sql_repository):
    assert await sql_repository.get_user_stats("nobody", WALLET) is None


async def test_update_persists_transition(sql_repository, make_prediction):
    prediction = await sql_repository.save(make_prediction())
    prediction.settle("2-0", True)

    await sql_repository.update(prediction)

    loaded = await sql_repository.find_by_id(prediction.id)
    assert loaded.status is PredictionStatus.WON
    assert loaded.actual_result == "2-0"
    assert loaded.settled_at is not None


async def test_update_unknown_prediction_is_not_found(sql_repository, make_prediction):
    with pytest.raises(NotFoundError):
        await sql_repository.update(make_prediction())


async def test_fine_grained_odds_survive_storage(sql_repository, make_prediction):
    prediction = make_prediction(odds=Odds.create(2.1234567))

    saved = await sql_repository.save(prediction)
    pending = await sql_repository.find_pending_for_settlement()

    assert saved.odds == prediction.odds == Odds.create(2.123457)
    assert [p.odds for p in pending] == [prediction.odds]
    assert Prediction.from_dict(saved.to_dict()) == prediction
