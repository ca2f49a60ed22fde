"""Qt timer that drives the engine once per animation frame.
"""
import logging
from typing import Optional

from PyQt6.QtCore import QElapsedTimer, QObject, QTimer, pyqtSignal

from simEngine.sim_engine_backend import SimulationEngine
from simEngine.snapshot import SimulationSnapshot

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 16  # ~60 Hz


class FrameDriver(QObject):
    """Feeds monotonic frame timestamps into a SimulationEngine.

    The engine's snapshots are re-emitted on ``snapshot_ready`` so a Qt
    renderer can connect to it like any other signal.
    """

    snapshot_ready = pyqtSignal(object)

    def __init__(self, engine: SimulationEngine,
                 interval_ms: int = FRAME_INTERVAL_MS,
                 parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.engine = engine
        self.engine.add_listener(self._forward)

        self._elapsed = QElapsedTimer()
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_frame)

    def start(self) -> None:
        if not self._elapsed.isValid():
            self._elapsed.start()
        self._timer.start()
        logger.info("Frame driver started (%d ms)", self._timer.interval())

    def stop(self) -> None:
        self._timer.stop()
        logger.info("Frame driver stopped")

    def is_active(self) -> bool:
        return self._timer.isActive()

    def _on_frame(self) -> None:
        self.engine.tick(float(self._elapsed.elapsed()))

    def _forward(self, snapshot: SimulationSnapshot) -> None:
        self.snapshot_ready.emit(snapshot)
