import dataclasses

import pytest

from universal.universal import (
    Alignment,
    DwellPhase,
    LayoutGeometry,
    OnboardPassenger,
    VehicleMode,
)


def test_block_width_three_cars():
    """Three cars, two gaps between them."""
    assert LayoutGeometry.block_width(3, 34, 3) == 108


def test_block_width_four_and_seven_cars():
    assert LayoutGeometry.block_width(4, 34, 3) == 145
    assert LayoutGeometry.block_width(7, 34, 3) == 256


def test_block_width_empty_block():
    assert LayoutGeometry.block_width(0, 34, 3) == 0.0


def test_train_length_long_composition():
    """108 + 8 + 145 + 8 + 108."""
    assert LayoutGeometry.train_length([3, 4, 3], 34, 3, 8) == 377


def test_train_length_single_block_has_no_coupler():
    assert LayoutGeometry.train_length([7], 34, 3, 8) == 256


def test_alignment_values_round_trip_from_text():
    assert Alignment("rear") is Alignment.REAR
    assert Alignment("front") is Alignment.FRONT
    assert Alignment("all") is Alignment.ALL


def test_vehicle_mode_values():
    assert VehicleMode("long") is VehicleMode.LONG
    assert VehicleMode("short") is VehicleMode.SHORT


def test_dwell_phase_order_is_strictly_increasing():
    values = [phase.value for phase in DwellPhase]
    assert values == sorted(values)
    assert DwellPhase.ARRIVED.value < DwellPhase.DEPARTED.value


def test_onboard_passenger_is_immutable():
    passenger = OnboardPassenger(origin_id=1, dest_id=3, color_tag="rose")
    with pytest.raises(dataclasses.FrozenInstanceError):
        passenger.dest_id = 4


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
