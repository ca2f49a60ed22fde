"""Simulation Engine Backend

Frame-driven stepper tying together the clock, the motion integrator, the
station stop state machine and the snapshot publisher.
"""
import logging
from typing import Callable, Optional, Union

from universal.global_clock import SimulationClock
from universal.universal import VehicleMode
from passengerModel.passenger_model_backend import PassengerLedger
from simEngine.dwell_state_machine import DwellStateMachine
from simEngine.motion_integrator import MotionIntegrator
from simEngine.sim_config import SimulationConfig
from simEngine.snapshot import SimulationSnapshot, SnapshotPublisher

logger = logging.getLogger(__name__)

READY_MESSAGE = "Ready to start simulation."


class SimulationEngine:
    """Single authoritative owner of the simulation state.

    Each call to tick() runs either the motion integrator (vehicle underway)
    or the dwell state machine (vehicle docked), never both, then publishes
    one snapshot. Inputs (play, pause, speed, mode) take effect on the next
    tick.

    Attributes:
        config: Static configuration read on every (re)initialization.
        clock: Converts frame timestamps into simulated time.
        publisher: Receives one snapshot per tick.
        status_message: Operator-facing status line.
    """

    def __init__(self, config: Optional[SimulationConfig] = None) -> None:
        self.config = config or SimulationConfig()
        self.clock = SimulationClock()
        self.publisher = SnapshotPublisher()
        self.vehicle_mode: VehicleMode = self.config.vehicle_mode
        self.status_message = READY_MESSAGE
        self._initialize()

    def _initialize(self) -> None:
        """Rebuild every piece of runtime state from the static config."""
        self.layout = self.config.build_layout()
        self.composition = self.config.build_composition(self.vehicle_mode)
        self.ledger = PassengerLedger.from_seed(
            self.config.demand, self.layout, self.composition)
        self.motion = MotionIntegrator(
            self.layout, self.composition, self.config.base_speed)
        self.dwell = DwellStateMachine(
            self.ledger, self.composition, self.config.timing,
            self._set_status)
        logger.info("Initialized %s with %d carloads waiting",
                    self.composition, self.ledger.total_waiting())

    def _set_status(self, message: str) -> None:
        self.status_message = message

    # ---- frame stepping ----
    def tick(self, now_ms: float) -> SimulationSnapshot:
        """Advance the simulation to a frame timestamp and publish it.

        Args:
            now_ms: Monotonic wall-clock time of this frame in ms.

        Returns:
            The snapshot published for this frame.
        """
        delta = self.clock.advance(now_ms)
        if delta > 0.0:
            try:
                self._step(delta)
            except Exception as e:
                logger.exception("Simulation step failed")
                self.clock.pause()
                self.status_message = f"Simulation halted: {e}"

        snapshot = self.snapshot()
        self.publisher.publish(snapshot)
        return snapshot

    def _step(self, delta_sim_ms: float) -> None:
        if self.dwell.is_docked:
            departed = self.dwell.step(delta_sim_ms)
            if departed is not None:
                self.motion.last_departed_station_id = departed.id
            return

        result = self.motion.advance(delta_sim_ms)
        if result.arrived_at is not None:
            self.dwell.dock(result.arrived_at)
        elif result.route_complete:
            self._complete_route()

    def _complete_route(self) -> None:
        """Loop a short vehicle while demand remains, else reset fully."""
        if self.vehicle_mode is VehicleMode.SHORT and self.ledger.has_waiting():
            discharged = self.ledger.discharge_all()
            if discharged:
                logger.warning("Discharged %d carloads at the terminus",
                               discharged)
            self.motion.reset()
            waiting = self.ledger.total_waiting()
            logger.info("Route complete, dispatching next train for %d "
                        "waiting carloads", waiting)
            self.status_message = (f"Route Complete. Next train for "
                                   f"{waiting} waiting carloads...")
            return

        logger.info("Route complete, resetting demand")
        self._initialize()
        self.status_message = "Route Complete. Resetting..."

    # ---- input surface ----
    def play(self) -> None:
        self.clock.resume()
        logger.info("Simulation playing")

    def pause(self) -> None:
        self.clock.pause()
        logger.info("Simulation paused")

    def toggle_play(self) -> None:
        if self.clock.running:
            self.pause()
        else:
            self.play()

    def reset(self) -> None:
        """Stop and return to the initial state."""
        self.clock.pause()
        self._initialize()
        self.status_message = READY_MESSAGE
        logger.info("Simulation reset")

    def set_speed(self, multiplier: int) -> bool:
        """Set the speed multiplier (1, 2 or 4); anything else is ignored."""
        return self.clock.set_speed(multiplier)

    def set_vehicle_mode(self, mode: Union[VehicleMode, str]) -> bool:
        """Switch composition; always a full reinitialization."""
        try:
            mode = VehicleMode(mode)
        except ValueError:
            logger.error("Rejected unknown vehicle mode %r", mode)
            return False
        if mode is self.vehicle_mode:
            return True
        self.vehicle_mode = mode
        self._initialize()
        self.status_message = READY_MESSAGE
        logger.info("Vehicle mode switched to %s", mode.value)
        return True

    def add_listener(self, callback: Callable[[SimulationSnapshot], None]) -> None:
        self.publisher.add_listener(callback)

    def remove_listener(self, callback: Callable[[SimulationSnapshot], None]) -> None:
        self.publisher.remove_listener(callback)

    # ---- state ----
    @property
    def is_running(self) -> bool:
        return self.clock.running

    @property
    def speed_factor(self) -> int:
        return self.clock.time_multiplier

    @property
    def position_x(self) -> float:
        return self.motion.position_x

    def snapshot(self) -> SimulationSnapshot:
        """Freeze the current state for the renderer."""
        return SimulationSnapshot(
            position_x=self.motion.position_x,
            docked_station_id=(None if self.dwell.station is None
                               else self.dwell.station.id),
            doors_open=self.dwell.doors_open,
            open_segment_ids=tuple(self.dwell.open_segment_ids),
            seat_occupancy=tuple(self.ledger.seats),
            waiting_groups_by_station=self.ledger.waiting_by_station(),
            status_message=self.status_message,
            is_running=self.clock.running,
            speed_factor=self.clock.time_multiplier,
            vehicle_mode=self.vehicle_mode,
            dwell_phase=self.dwell.phase,
            delivered_count=self.ledger.delivered_count(),
            sim_time_ms=self.clock.get_time(),
        )

    def report_state(self) -> dict:
        """Get the current snapshot as a plain dictionary."""
        return self.snapshot().to_dict()
