"""Constant-speed motion along the track and station arrival detection.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from trackModel.track_model_backend import Station, TrackLayout
from trainModel.train_model_backend import VehicleComposition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MotionResult:
    """What happened during one advance.

    Attributes:
        arrived_at: Station the vehicle snapped to, if any.
        route_complete: True when the vehicle ran past the end of the track.
    """
    arrived_at: Optional[Station] = None
    route_complete: bool = False


class MotionIntegrator:
    """Moves the vehicle and detects when it reaches a stop target.

    Attributes:
        position_x: Rear end of the vehicle along the track.
        last_departed_station_id: Station skipped by arrival detection.
    """

    def __init__(self, layout: TrackLayout, composition: VehicleComposition,
                 base_speed: float) -> None:
        self.layout = layout
        self.base_speed = float(base_speed)
        self.position_x = 0.0
        self.last_departed_station_id: Optional[int] = None
        self._targets: List[Tuple[float, Station]] = sorted(
            ((layout.stop_target(s, composition.length), s)
             for s in layout.stations),
            key=lambda pair: pair[0])

    def stop_target_for(self, station_id: int) -> Optional[float]:
        for target, station in self._targets:
            if station.id == station_id:
                return target
        return None

    def advance(self, delta_sim_ms: float) -> MotionResult:
        """Move forward by base speed times the simulated delta.

        Snaps exactly onto the first stop target crossed in this step, so a
        large step never carries the vehicle past a station.
        """
        if delta_sim_ms <= 0.0:
            return MotionResult()

        candidate = self.position_x + self.base_speed * delta_sim_ms
        for target, station in self._targets:
            if station.id == self.last_departed_station_id:
                continue
            if self.position_x < target <= candidate:
                self.position_x = target
                self.last_departed_station_id = None
                logger.debug("Snapped to %.2f at %s", target, station.name)
                return MotionResult(arrived_at=station)

        if candidate > self.layout.track_length:
            return MotionResult(route_complete=True)

        self.position_x = candidate
        return MotionResult()

    def reset(self) -> None:
        """Return to the start of the track."""
        self.position_x = 0.0
        self.last_departed_station_id = None
