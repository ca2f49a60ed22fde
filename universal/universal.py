"""
Universal data structures and geometry helpers for the metro simulation.
"""
from dataclasses import dataclass
from enum import Enum


class Alignment(Enum):
    """Which end of the platform the vehicle lines up with."""
    REAR = "rear"
    FRONT = "front"
    ALL = "all"


class VehicleMode(Enum):
    """Supported vehicle compositions."""
    LONG = "long"
    SHORT = "short"


class DwellPhase(Enum):
    """Phases of a single station stop, in the order they fire."""
    ARRIVED = 1
    DOORS_OPEN = 2
    ALIGHTING = 3
    BOARDING = 4
    DOORS_CLOSING = 5
    DEPARTED = 6


@dataclass(frozen=True)
class OnboardPassenger:
    """Occupant of one seat slot.

    Attributes:
        origin_id: Station the carload boarded at.
        dest_id: Station the carload is travelling to.
        color_tag: Display color inherited from the waiting group.
    """
    origin_id: int
    dest_id: int
    color_tag: str


class LayoutGeometry:
    """Holds the length arithmetic shared by vehicles and platforms."""

    @staticmethod
    def block_width(capacity, car_length, car_gap):
        """Length of a run of cars with gaps between them (no trailing gap)."""
        if capacity <= 0:
            return 0.0
        return capacity * car_length + (capacity - 1) * car_gap

    @staticmethod
    def train_length(capacities, car_length, car_gap, coupler_gap):
        """Length of coupled blocks, coupler gaps only between blocks."""
        widths = [LayoutGeometry.block_width(c, car_length, car_gap)
                  for c in capacities]
        if not widths:
            return 0.0
        return sum(widths) + coupler_gap * (len(widths) - 1)
