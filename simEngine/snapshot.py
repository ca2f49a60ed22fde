"""Immutable per-frame view of the engine and the publisher that hands it out.
"""
import logging
from dataclasses import asdict, dataclass
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Tuple

from universal.universal import DwellPhase, OnboardPassenger, VehicleMode
from passengerModel.passenger_model_backend import WaitingGroup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationSnapshot:
    """Everything a renderer needs for one frame.

    Attributes:
        position_x: Rear end of the vehicle along the track.
        docked_station_id: Station the vehicle is stopped at, if any.
        doors_open: Whether any doors are open.
        open_segment_ids: Segments whose doors are open.
        seat_occupancy: One entry per slot, rear to front.
        waiting_groups_by_station: Waiting groups keyed by origin station.
        status_message: Operator-facing status line.
        is_running: Whether simulated time is advancing.
        speed_factor: Current speed multiplier.
        vehicle_mode: Current vehicle composition.
        dwell_phase: Last phase reached at the docked station.
        delivered_count: Carloads delivered since the last full reset.
        sim_time_ms: Simulated time since the engine was created.
    """
    position_x: float
    docked_station_id: Optional[int]
    doors_open: bool
    open_segment_ids: Tuple[str, ...]
    seat_occupancy: Tuple[Optional[OnboardPassenger], ...]
    waiting_groups_by_station: Mapping[int, Tuple[WaitingGroup, ...]]
    status_message: str
    is_running: bool
    speed_factor: int
    vehicle_mode: VehicleMode
    dwell_phase: Optional[DwellPhase]
    delivered_count: int
    sim_time_ms: float

    def __post_init__(self):
        object.__setattr__(self, "waiting_groups_by_station",
                           MappingProxyType(dict(self.waiting_groups_by_station)))

    def to_dict(self) -> dict:
        """Plain-data copy (enums as their values)."""
        return {
            "position_x": self.position_x,
            "docked_station_id": self.docked_station_id,
            "doors_open": self.doors_open,
            "open_segment_ids": list(self.open_segment_ids),
            "seat_occupancy": [None if p is None else asdict(p)
                               for p in self.seat_occupancy],
            "waiting_groups_by_station": {
                sid: [asdict(g) for g in groups]
                for sid, groups in self.waiting_groups_by_station.items()
            },
            "status_message": self.status_message,
            "is_running": self.is_running,
            "speed_factor": self.speed_factor,
            "vehicle_mode": self.vehicle_mode.value,
            "dwell_phase": (None if self.dwell_phase is None
                            else self.dwell_phase.name),
            "delivered_count": self.delivered_count,
            "sim_time_ms": self.sim_time_ms,
        }


class SnapshotPublisher:
    """Pushes each frame's snapshot to registered listeners."""

    def __init__(self) -> None:
        self._listeners: List[Callable[[SimulationSnapshot], None]] = []
        self.latest: Optional[SimulationSnapshot] = None

    def add_listener(self, callback: Callable[[SimulationSnapshot], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[SimulationSnapshot], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def publish(self, snapshot: SimulationSnapshot) -> None:
        self.latest = snapshot
        for cb in list(self._listeners):
            try:
                cb(snapshot)
            except Exception:
                logger.exception("Snapshot listener raised an exception")
