# universal/global_clock.py
import logging
from typing import Optional

logger = logging.getLogger(__name__)

ALLOWED_SPEEDS = (1, 2, 4)


class SimulationClock:
    """Engine-owned simulation clock.

    Converts wall-clock frame timestamps (ms) into simulated time, scaled by
    a speed multiplier. While paused the wall time is still tracked but no
    simulated time accrues, so paused duration never reaches any timer.
    """

    def __init__(self, speed_factor: int = 1):
        self.sim_time_ms = 0.0
        self.time_multiplier = speed_factor
        self.running = False
        self._last_wall_ms: Optional[float] = None

    # ---- core time control ----
    def advance(self, wall_now_ms: float) -> float:
        """Consume one frame timestamp and return the simulated delta in ms."""
        if self._last_wall_ms is None:
            self._last_wall_ms = wall_now_ms
            return 0.0

        wall_delta = wall_now_ms - self._last_wall_ms
        self._last_wall_ms = wall_now_ms
        if wall_delta < 0.0:
            logger.debug("Wall clock went backwards by %.1f ms", -wall_delta)
            return 0.0
        if not self.running:
            return 0.0

        sim_delta = wall_delta * self.time_multiplier
        self.sim_time_ms += sim_delta
        return sim_delta

    def pause(self):
        self.running = False

    def resume(self):
        self.running = True

    def set_speed(self, multiplier) -> bool:
        """
        Set how fast simulated time advances.
        multiplier = 1 -> real time, 2 -> double, 4 -> quadruple.
        Any other value is rejected and the current speed kept.
        """
        if multiplier not in ALLOWED_SPEEDS:
            logger.error("Rejected speed multiplier %r (allowed: %s)",
                         multiplier, ALLOWED_SPEEDS)
            return False
        self.time_multiplier = int(multiplier)
        logger.info("Speed set to %dx", self.time_multiplier)
        return True

    def reset(self):
        """Zero the simulated time; the wall reference is kept."""
        self.sim_time_ms = 0.0

    # ---- info ----
    def get_time(self) -> float:
        return self.sim_time_ms

    def get_time_string(self) -> str:
        total_s = self.sim_time_ms / 1000.0
        minutes, seconds = divmod(total_s, 60.0)
        return f"{int(minutes):02d}:{seconds:04.1f}"

    def __repr__(self):
        return self.get_time_string()
