"""Static configuration for the metro simulation.

Everything here is read once when the engine (re)initializes and is never
mutated by it.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from universal.universal import Alignment, LayoutGeometry, VehicleMode
from trackModel.track_model_backend import Station, TrackLayout, load_track_layout
from trainModel.train_model_backend import (
    VehicleComposition,
    build_long_composition,
    build_short_composition,
)
from passengerModel.passenger_model_backend import DemandGroup, load_demand_seed

# Geometry (track units)
CAR_LENGTH = 34.0
CAR_GAP = 3.0
COUPLER_GAP = 8.0
PLATFORM_PADDING = 1.0
# A platform holds a 3 car block, a coupler and a 4 car block
PLATFORM_WIDTH = (LayoutGeometry.block_width(3, CAR_LENGTH, CAR_GAP)
                  + COUPLER_GAP
                  + LayoutGeometry.block_width(4, CAR_LENGTH, CAR_GAP)
                  + 2 * PLATFORM_PADDING)
TRACK_LENGTH = 1800.0

# Motion (track units per simulated ms)
BASE_SPEED = 0.1

# Dwell thresholds (simulated ms since arrival)
DOORS_OPEN_AT_MS = 500.0
ALIGHT_AT_MS = 1000.0
BOARD_AT_MS = 1500.0
DWELL_DURATION_MS = 3000.0
DEPART_DELAY_MS = 1000.0


def default_stations() -> List[Station]:
    return [
        Station(1, "Station 1", 150.0, Alignment.REAR),
        Station(2, "Station 2", 600.0, Alignment.FRONT),
        Station(3, "Station 3", 1050.0, Alignment.REAR),
        Station(4, "Station 4", 1500.0, Alignment.FRONT),
    ]


def default_demand() -> List[DemandGroup]:
    # Same-alignment trips use the matching end block, cross trips use mid
    return [
        DemandGroup(1, 2, 2, "mid"),
        DemandGroup(1, 3, 3, "rear"),
        DemandGroup(1, 4, 2, "mid"),
        DemandGroup(2, 3, 2, "mid"),
        DemandGroup(2, 4, 3, "front"),
        DemandGroup(3, 4, 2, "mid"),
    ]


@dataclass
class DwellTiming:
    """Phase thresholds of one station stop, in simulated ms."""
    doors_open_at: float = DOORS_OPEN_AT_MS
    alight_at: float = ALIGHT_AT_MS
    board_at: float = BOARD_AT_MS
    dwell_duration: float = DWELL_DURATION_MS
    depart_delay: float = DEPART_DELAY_MS

    def __post_init__(self):
        order = [self.doors_open_at, self.alight_at, self.board_at,
                 self.dwell_duration]
        if any(t < 0 for t in order) or order != sorted(order):
            raise ValueError(
                "Dwell thresholds must be non-negative and ascending.")
        if self.depart_delay < 0:
            raise ValueError("Departure delay cannot be negative.")

    @property
    def depart_at(self) -> float:
        return self.dwell_duration + self.depart_delay


@dataclass
class SimulationConfig:
    """Configuration for a simulation run."""

    stations: List[Station] = field(default_factory=default_stations)
    demand: List[DemandGroup] = field(default_factory=default_demand)
    track_length: float = TRACK_LENGTH
    base_speed: float = BASE_SPEED
    timing: DwellTiming = field(default_factory=DwellTiming)

    # Geometry
    car_length: float = CAR_LENGTH
    car_gap: float = CAR_GAP
    coupler_gap: float = COUPLER_GAP
    platform_width: float = PLATFORM_WIDTH
    platform_padding: float = PLATFORM_PADDING

    vehicle_mode: VehicleMode = VehicleMode.LONG

    def __post_init__(self):
        if self.base_speed <= 0:
            raise ValueError("Base speed must be positive.")

    def build_layout(self) -> TrackLayout:
        """Build the station layout, checked against both vehicle modes.

        Raises:
            ValueError: If a station is invalid or unreachable in either mode.
        """
        layout = TrackLayout(self.stations, self.track_length,
                             self.platform_width, self.platform_padding)
        for mode in VehicleMode:
            layout.check_vehicle_fits(self.build_composition(mode).length)
        return layout

    def build_composition(self, mode: Optional[VehicleMode] = None
                          ) -> VehicleComposition:
        mode = mode or self.vehicle_mode
        if mode is VehicleMode.SHORT:
            return build_short_composition(self.car_length, self.car_gap,
                                           self.coupler_gap)
        return build_long_composition(self.car_length, self.car_gap,
                                      self.coupler_gap)


def load_config(layout_file: Optional[str] = None,
                demand_file: Optional[str] = None,
                vehicle_mode: VehicleMode = VehicleMode.LONG
                ) -> SimulationConfig:
    """Build a config, replacing the default stations/demand from CSV files."""
    config = SimulationConfig(vehicle_mode=vehicle_mode)
    if layout_file:
        layout = load_track_layout(layout_file, config.track_length,
                                   config.platform_width,
                                   config.platform_padding)
        config.stations = layout.stations
    if demand_file:
        config.demand = load_demand_seed(demand_file)
    config.build_layout()
    return config
