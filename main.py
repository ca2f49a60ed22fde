"""Headless runner: drives the simulation from a Qt timer and logs status.

Examples:
    python main.py
    python main.py --mode short --speed 4 --duration 60
"""
import argparse
import logging
import sys

from PyQt6.QtCore import QCoreApplication, QTimer

from universal.universal import VehicleMode
from simEngine.qt_frame_driver import FrameDriver
from simEngine.sim_config import load_config
from simEngine.sim_engine_backend import SimulationEngine

logging.basicConfig(
    level=logging.INFO,
    format="[%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Run the metro station-stop simulation without a display",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in VehicleMode],
        default=VehicleMode.LONG.value,
        help="Vehicle composition (default: long)",
    )
    parser.add_argument(
        "--speed",
        type=int,
        choices=[1, 2, 4],
        default=1,
        help="Simulation speed multiplier",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=30.0,
        help="Wall-clock seconds to run before exiting",
    )
    parser.add_argument(
        "--layout",
        help="CSV station layout (station_id,name,alignment,position_x)",
    )
    parser.add_argument(
        "--demand",
        help="CSV demand seed (origin_id,dest_id,total_count,preferred_segment_id)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def main() -> int:
    args = parse_args()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    app = QCoreApplication(sys.argv)
    try:
        config = load_config(args.layout, args.demand, VehicleMode(args.mode))
    except (OSError, ValueError) as e:
        logger.error("Could not load configuration: %s", e)
        return 1

    engine = SimulationEngine(config)
    engine.set_speed(args.speed)

    last_message = {"text": None}

    def log_status(snapshot) -> None:
        if snapshot.status_message != last_message["text"]:
            last_message["text"] = snapshot.status_message
            logger.info("[%s] x=%.1f %s", engine.clock.get_time_string(),
                        snapshot.position_x, snapshot.status_message)

    driver = FrameDriver(engine)
    driver.snapshot_ready.connect(log_status)
    driver.start()
    engine.play()

    QTimer.singleShot(int(args.duration * 1000), app.quit)
    app.exec()

    driver.stop()
    state = engine.report_state()
    logger.info("Finished: %d carloads delivered, %d still waiting",
                state["delivered_count"], engine.ledger.total_waiting())
    return 0


if __name__ == "__main__":
    sys.exit(main())
