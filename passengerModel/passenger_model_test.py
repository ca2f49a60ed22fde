"""
Passenger Model Testing
"""
import logging

import pytest

from universal.universal import Alignment, OnboardPassenger
from trackModel.track_model_backend import Station, TrackLayout
from trainModel.train_model_backend import (
    build_long_composition,
    build_short_composition,
)
from passengerModel.passenger_model_backend import (
    DemandGroup,
    PassengerLedger,
    build_waiting_groups,
    load_demand_seed,
)


@pytest.fixture
def layout() -> TrackLayout:
    stations = [
        Station(1, "Station 1", 150.0, Alignment.REAR),
        Station(2, "Station 2", 600.0, Alignment.FRONT),
        Station(3, "Station 3", 1050.0, Alignment.REAR),
        Station(4, "Station 4", 1500.0, Alignment.FRONT),
    ]
    return TrackLayout(stations, 1800.0, 263.0, 1.0)


@pytest.fixture
def long_train():
    return build_long_composition(34.0, 3.0, 8.0)


@pytest.fixture
def short_train():
    return build_short_composition(34.0, 3.0, 8.0)


SEED = [
    DemandGroup(1, 2, 2, "mid"),
    DemandGroup(1, 3, 3, "rear"),
    DemandGroup(2, 4, 3, "front"),
]


"""
Ledger initialization
"""
def test_waiting_groups_keyed_by_origin(layout, long_train) -> None:
    waiting = build_waiting_groups(SEED, layout, long_train)
    assert sorted(waiting) == [1, 2]
    assert [(g.dest_id, g.segment_id, g.remaining_count)
            for g in waiting[1]] == [(2, "mid", 2), (3, "rear", 3)]
    assert waiting[2][0].color_tag == "blue"

def test_short_mode_forces_single_segment(layout, short_train) -> None:
    waiting = build_waiting_groups(SEED, layout, short_train)
    assert {g.segment_id for groups in waiting.values()
            for g in groups} == {"single"}

def test_initialization_is_idempotent(layout, long_train) -> None:
    first = build_waiting_groups(SEED, layout, long_train)
    second = build_waiting_groups(SEED, layout, long_train)
    assert first == second

def test_invalid_demand_dropped_with_warning(layout, long_train, caplog) -> None:
    seed = [
        DemandGroup(1, 9, 2, "mid"),
        DemandGroup(2, 2, 2, "mid"),
        DemandGroup(1, 3, 0, "rear"),
        DemandGroup(1, 4, 2, "caboose"),
        DemandGroup(3, 4, 2, "mid"),
        DemandGroup(3, 4, 5, "mid"),
    ]
    with caplog.at_level(logging.WARNING):
        waiting = build_waiting_groups(seed, layout, long_train)
    assert list(waiting) == [3]
    assert waiting[3][0].remaining_count == 2
    assert caplog.text.count("Dropping demand") == 5

def test_unreachable_demand_kept_but_logged(layout, long_train, caplog) -> None:
    # Front block never faces a rear aligned platform
    seed = [DemandGroup(1, 2, 1, "front")]
    with caplog.at_level(logging.WARNING):
        waiting = build_waiting_groups(seed, layout, long_train)
    assert waiting[1][0].segment_id == "front"
    assert "can never board" in caplog.text

def test_backward_trip_kept_but_logged(layout, long_train, caplog) -> None:
    seed = [DemandGroup(3, 1, 2, "rear")]
    with caplog.at_level(logging.WARNING):
        waiting = build_waiting_groups(seed, layout, long_train)
    assert waiting[3][0].remaining_count == 2
    assert "can never alight" in caplog.text
    assert "Station 1 lies behind Station 3" in caplog.text

def test_forward_trips_not_flagged(layout, long_train, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        build_waiting_groups(SEED, layout, long_train)
    assert "can never" not in caplog.text

def test_unknown_segment_dropped_in_short_mode(layout, short_train, caplog) -> None:
    seed = [DemandGroup(1, 4, 2, "caboose"), DemandGroup(1, 3, 1, "rear")]
    with caplog.at_level(logging.WARNING):
        waiting = build_waiting_groups(seed, layout, short_train)
    assert [g.dest_id for g in waiting[1]] == [3]
    assert "Dropping demand 1->4: unknown segment 'caboose'" in caplog.text


"""
Boarding and alighting
"""
def test_board_fills_assigned_segment(layout, long_train) -> None:
    ledger = PassengerLedger.from_seed(SEED, layout, long_train)
    result = ledger.board(1, ("rear", "mid"))
    assert result.boarded == 5
    assert result.left_behind == 0
    assert [p.dest_id for p in ledger.seats[0:3]] == [3, 3, 3]
    assert [p.dest_id if p else None for p in ledger.seats[3:7]] == [2, 2, None, None]
    assert ledger.waiting_at(1) == ()

def test_board_skips_closed_segment(layout, long_train) -> None:
    ledger = PassengerLedger.from_seed(SEED, layout, long_train)
    before = ledger.waiting_at(2)
    result = ledger.board(2, ("rear", "mid"))
    assert result.boarded == 0
    assert ledger.waiting_at(2) == before
    assert ledger.onboard_count() == 0

def test_board_capacity_overflow(layout, short_train) -> None:
    seed = [DemandGroup(1, 3, 10, "rear")]
    ledger = PassengerLedger.from_seed(seed, layout, short_train)
    result = ledger.board(1, ("single",))
    assert result.boarded == 7
    assert result.left_behind == 3
    assert ledger.waiting_at(1)[0].remaining_count == 3

def test_board_station_without_groups(layout, long_train) -> None:
    ledger = PassengerLedger.from_seed(SEED, layout, long_train)
    result = ledger.board(3, ("rear", "mid"))
    assert result.boarded == 0
    assert 3 not in ledger.waiting_by_station()

def test_alight_only_open_segments(layout, long_train) -> None:
    ledger = PassengerLedger(long_train)
    ledger.seats[0] = OnboardPassenger(1, 2, "rose")
    ledger.seats[4] = OnboardPassenger(1, 2, "amber")
    ledger.seats[8] = OnboardPassenger(1, 4, "blue")
    alighted = ledger.alight(2, ("mid", "front"))
    assert alighted == 1
    assert ledger.seats[0] is not None
    assert ledger.seats[4] is None
    assert ledger.seats[8] is not None
    assert ledger.delivered_count((1, 2)) == 1

def test_discharge_all(layout, long_train) -> None:
    ledger = PassengerLedger.from_seed(SEED, layout, long_train)
    ledger.board(1, ("rear", "mid"))
    assert ledger.discharge_all() == 5
    assert ledger.onboard_count() == 0
    assert ledger.discharged_count() == 5
    assert ledger.has_waiting()

def test_conservation_counts(layout, long_train) -> None:
    ledger = PassengerLedger.from_seed(SEED, layout, long_train)
    ledger.board(1, ("rear", "mid"))
    ledger.alight(2, ("mid", "front"))
    for group in SEED:
        total = (ledger.waiting_count(group.key)
                 + ledger.onboard_count(group.key)
                 + ledger.delivered_count(group.key))
        assert total == group.total_count


"""
CSV loading
"""
def test_load_demand_seed(tmp_path) -> None:
    path = tmp_path / "demand.csv"
    path.write_text(
        "origin_id,dest_id,total_count,preferred_segment_id\n"
        "1,2,2,mid\n"
        "1,3,3,rear\n"
    )
    demand = load_demand_seed(str(path))
    assert demand == [DemandGroup(1, 2, 2, "mid"), DemandGroup(1, 3, 3, "rear")]

def test_load_demand_seed_bad_count(tmp_path) -> None:
    path = tmp_path / "demand.csv"
    path.write_text(
        "origin_id,dest_id,total_count,preferred_segment_id\n"
        "1,2,-2,mid\n"
    )
    with pytest.raises(ValueError, match="total_count"):
        load_demand_seed(str(path))
