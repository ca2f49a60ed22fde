"""Station stop sequencing: doors, alighting, boarding and departure.
"""
import logging
from typing import Callable, List, Optional, Tuple

from universal.universal import DwellPhase
from trackModel.track_model_backend import Station
from trainModel.train_model_backend import VehicleComposition
from passengerModel.passenger_model_backend import PassengerLedger
from simEngine.sim_config import DwellTiming

logger = logging.getLogger(__name__)


class DwellStateMachine:
    """Runs one station stop at a time.

    Phases fire in DwellPhase order, once each per stop. A phase fires on
    the first step where the dwell time exceeds its own threshold and every
    earlier phase has fired; a step that jumps past several thresholds fires
    all of them, in order.

    Attributes:
        station: Station the vehicle is docked at, None while underway.
        phase: Last phase fired at the current station.
        elapsed_ms: Simulated time since arrival.
        doors_open: Whether the doors are open.
        open_segment_ids: Segments whose doors are open.
    """

    def __init__(self, ledger: PassengerLedger, composition: VehicleComposition,
                 timing: DwellTiming, report: Callable[[str], None]) -> None:
        """Initialize the machine.

        Args:
            ledger: Passenger ledger mutated by alighting and boarding.
            composition: Composition supplying the door table.
            timing: DwellTiming thresholds.
            report: Receives every status message the stop produces.
        """
        self.ledger = ledger
        self.composition = composition
        self.timing = timing
        self._report = report

        self.station: Optional[Station] = None
        self.phase: Optional[DwellPhase] = None
        self.elapsed_ms = 0.0
        self.doors_open = False
        self.open_segment_ids: Tuple[str, ...] = ()
        self._departed: Optional[Station] = None
        self._overflow_note = ""

        self._schedule: List[Tuple[DwellPhase, float, Callable[[], None]]] = [
            (DwellPhase.DOORS_OPEN, timing.doors_open_at, self._open_doors),
            (DwellPhase.ALIGHTING, timing.alight_at, self._alight),
            (DwellPhase.BOARDING, timing.board_at, self._board),
            (DwellPhase.DOORS_CLOSING, timing.dwell_duration, self._close_doors),
            (DwellPhase.DEPARTED, timing.depart_at, self._depart),
        ]

    @property
    def is_docked(self) -> bool:
        return self.station is not None

    def dock(self, station: Station) -> None:
        """Start a stop at a station (phase ARRIVED, doors closed)."""
        self.station = station
        self.phase = DwellPhase.ARRIVED
        self.elapsed_ms = 0.0
        self.doors_open = False
        self.open_segment_ids = ()
        self._overflow_note = ""
        logger.info("Arriving at %s", station.name)
        self._report(f"Arriving at {station.name}...")

    def step(self, delta_sim_ms: float) -> Optional[Station]:
        """Advance the dwell timer and fire every phase now due.

        Returns:
            The station just departed, or None if still docked.
        """
        if self.station is None:
            return None
        self.elapsed_ms += max(0.0, delta_sim_ms)

        for phase, threshold, handler in self._schedule:
            if phase.value <= self.phase.value:
                continue
            if self.elapsed_ms <= threshold:
                break
            self.phase = phase
            handler()
            if phase is DwellPhase.DEPARTED:
                break

        departed, self._departed = self._departed, None
        return departed

    def reset(self) -> None:
        """Abandon any stop in progress."""
        self.station = None
        self.phase = None
        self.elapsed_ms = 0.0
        self.doors_open = False
        self.open_segment_ids = ()
        self._departed = None
        self._overflow_note = ""

    # ---- phase handlers ----
    def _open_doors(self) -> None:
        station = self.station
        self.open_segment_ids = self.composition.open_segments_for(
            station.alignment)
        self.doors_open = bool(self.open_segment_ids)
        labels = " & ".join(self.composition.get_segment(seg_id).label
                            for seg_id in self.open_segment_ids)
        logger.debug("%s: opening %s", station.name, self.open_segment_ids)
        self._report(f"{station.name}: {station.alignment.value.title()} "
                     f"Align. {labels} Open.")

    def _alight(self) -> None:
        alighted = self.ledger.alight(self.station.id, self.open_segment_ids)
        logger.debug("%s: %d carloads alighted", self.station.name, alighted)
        if alighted > 0:
            self._report(f"Alighting: {alighted} carloads left.")

    def _board(self) -> None:
        result = self.ledger.board(self.station.id, self.open_segment_ids)
        logger.debug("%s: %d boarded, %d left behind", self.station.name,
                     result.boarded, result.left_behind)
        if result.left_behind > 0:
            logger.info("%s: train full, %d carloads left waiting",
                        self.station.name, result.left_behind)
            self._overflow_note = (f" Train full, {result.left_behind} "
                                   f"left waiting.")
            self._report(f"Boarding: {result.boarded} carloads boarded."
                         f"{self._overflow_note}")
        elif result.boarded > 0:
            self._report(f"Boarding: {result.boarded} carloads boarded.")

    def _close_doors(self) -> None:
        self.doors_open = False
        self.open_segment_ids = ()
        self._report(f"Doors closing...{self._overflow_note}")

    def _depart(self) -> None:
        logger.info("Departing %s", self.station.name)
        self._departed = self.station
        self.station = None
        self._report(f"Departing...{self._overflow_note}")
