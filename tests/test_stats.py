from __future__ import annotations

import pytest

pytest.importorskip("sqlalchemy")

from sqlalchemy import select

from marubatsu.engine import GameResult, Mark
from marubatsu.stats import GameRecord, StatsStore, StatsStoreError, Tally


@pytest.fixture()
def store(tmp_path) -> StatsStore:
    store = StatsStore(f"sqlite:///{tmp_path / 'stats.db'}")
    yield store
    store.close()


def test_new_store_starts_at_zero(store: StatsStore) -> None:
    assert store.tally() == Tally(wins=0, losses=0, draws=0)


def test_record_returns_post_increment_tally(store: StatsStore) -> None:
    assert store.record(GameResult.WIN, Mark.X) == Tally(wins=1, losses=0, draws=0)
    assert store.record("lose", "X") == Tally(wins=1, losses=1, draws=0)
    assert store.tally() == Tally(wins=1, losses=1, draws=0)


def test_counts_match_inserted_rows(store: StatsStore) -> None:
    sequence = ["win", "draw", "lose", "win", "draw", "draw", "win"]
    for result in sequence:
        store.record(result, Mark.X)
    tally = store.tally()
    assert tally.wins == sequence.count("win")
    assert tally.losses == sequence.count("lose")
    assert tally.draws == sequence.count("draw")


def test_player_mark_is_stored_but_not_aggregated(store: StatsStore) -> None:
    store.record(GameResult.WIN, Mark.X)
    store.record(GameResult.WIN, Mark.O)
    assert store.tally().wins == 2
    with store.engine.connect() as conn:
        query = select(GameRecord.result, GameRecord.player_mark, GameRecord.created_at).order_by(GameRecord.id)
        rows = conn.execute(query).all()
    assert [(r.result, r.player_mark) for r in rows] == [("win", "X"), ("win", "O")]
    assert all(r.created_at is not None for r in rows)


def test_tally_survives_reopening(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'stats.db'}"
    first = StatsStore(url)
    first.record(GameResult.DRAW, Mark.X)
    first.close()
    assert StatsStore(url).tally() == Tally(draws=1)


def test_unknown_result_is_rejected(store: StatsStore) -> None:
    with pytest.raises(ValueError):
        store.record("tie", Mark.X)
    assert store.tally() == Tally()


def test_io_failure_is_wrapped(store: StatsStore) -> None:
    GameRecord.__table__.drop(store.engine)
    with pytest.raises(StatsStoreError):
        store.tally()
    with pytest.raises(StatsStoreError):
        store.record(GameResult.WIN, Mark.X)


def test_to_dict_shape() -> None:
    assert Tally(wins=3, losses=2, draws=1).to_dict() == {"wins": 3, "losses": 2, "draws": 1}
