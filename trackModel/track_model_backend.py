"""
Track Model Backend
"""
import csv
import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from universal.universal import Alignment

logger = logging.getLogger(__name__)

# Alignments that stop with the vehicle's rear end at the platform's near
# edge. Everything else stops with the front end at the far edge.
NEAR_EDGE_ALIGNMENTS = frozenset({Alignment.REAR, Alignment.ALL})

LAYOUT_FIELDS = ("station_id", "name", "alignment", "position_x")


@dataclass(frozen=True)
class Station:
    """A platform on the line.

    Attributes:
        id: Unique station identifier.
        name: Human-readable name of the station.
        position_x: Position of the platform's near edge along the track.
        alignment: Which end of the platform the vehicle lines up with.
    """
    id: int
    name: str
    position_x: float
    alignment: Alignment


class TrackLayout:
    """Static registry of the stations along one straight track.

    Attributes:
        track_length: Position at which the route is complete.
        platform_width: Length of every platform.
        platform_padding: Clearance between the vehicle and platform ends.
    """

    def __init__(self, stations: Iterable[Station], track_length: float,
                 platform_width: float, platform_padding: float) -> None:
        """Initialize the layout.

        Args:
            stations: Stations on the line, any order.
            track_length: Route length; must lie beyond every platform.
            platform_width: Platform length shared by all stations.
            platform_padding: Clearance at either end of a platform.

        Raises:
            ValueError: On duplicate ids or a station outside the track.
        """
        self.track_length = float(track_length)
        self.platform_width = float(platform_width)
        self.platform_padding = float(platform_padding)
        self._stations: Dict[int, Station] = {}

        for station in stations:
            if station.id in self._stations:
                raise ValueError(
                    f"Station ID {station.id} already exists in layout.")
            if station.position_x < 0:
                raise ValueError(
                    f"Station {station.id} has a negative position.")
            if station.position_x + self.platform_width > self.track_length:
                raise ValueError(
                    f"Station {station.id} extends past the end of the "
                    f"track ({self.track_length}).")
            self._stations[station.id] = station

        self._ordered: List[Station] = sorted(
            self._stations.values(), key=lambda s: s.position_x)

    @property
    def stations(self) -> List[Station]:
        """Stations in ascending track position."""
        return list(self._ordered)

    def get_station(self, station_id: int) -> Optional[Station]:
        return self._stations.get(station_id)

    def has_station(self, station_id: int) -> bool:
        return station_id in self._stations

    def stop_target(self, station: Station, vehicle_length: float) -> float:
        """Position at which the vehicle's rear end must halt at a station.

        Rear and all aligned platforms put the vehicle's rear end at the
        platform's near edge plus padding. Front aligned platforms put the
        vehicle's front end at the far edge minus padding.
        """
        if station.alignment in NEAR_EDGE_ALIGNMENTS:
            return station.position_x + self.platform_padding
        far_edge = station.position_x + self.platform_width
        return far_edge - self.platform_padding - vehicle_length

    def check_vehicle_fits(self, vehicle_length: float) -> None:
        """Check that every stop target is reachable by this vehicle.

        A vehicle starts at position 0 and the route ends once its rear end
        passes the track length, so each target must lie in
        (0, track_length - vehicle_length].

        Raises:
            ValueError: If some station can never be stopped at.
        """
        for station in self._ordered:
            target = self.stop_target(station, vehicle_length)
            if target <= 0:
                raise ValueError(
                    f"Station {station.id} stop target {target:.1f} lies at or "
                    f"before the start of the track for a vehicle of length "
                    f"{vehicle_length:.1f}.")
            if target + vehicle_length > self.track_length:
                raise ValueError(
                    f"Station {station.id} stop target {target:.1f} leaves a "
                    f"vehicle of length {vehicle_length:.1f} past the end of "
                    f"the track ({self.track_length}).")


def load_track_layout(layout_file: str, track_length: float,
                      platform_width: float,
                      platform_padding: float) -> TrackLayout:
    """Load a station layout from a CSV file.

    Expected columns: station_id, name, alignment, position_x.

    Args:
        layout_file: Path to the CSV file.
        track_length: Route length for the resulting layout.
        platform_width: Platform length shared by all stations.
        platform_padding: Clearance at either end of a platform.

    Returns:
        The parsed TrackLayout.

    Raises:
        ValueError: If a row is malformed.
    """
    logger.info("Loading track layout from file: %s", layout_file)
    stations: List[Station] = []
    with open(layout_file, mode='r', newline='') as file:
        reader = csv.DictReader(file)
        missing = [f for f in LAYOUT_FIELDS
                   if f not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(
                f"Layout file is missing columns: {', '.join(missing)}")
        for row_number, row in enumerate(reader, start=2):
            row = {k: (row.get(k) or "").strip() for k in LAYOUT_FIELDS}
            if not any(row.values()):
                continue
            if not re.match("^[0-9]+$", row["station_id"]):
                raise ValueError(
                    f"Invalid 'station_id' field in layout file at row "
                    f"{row_number}.")
            if not row["name"]:
                raise ValueError(
                    f"Empty 'name' field in layout file at row "
                    f"{row_number}.")
            if not re.match("^(rear|front|all)$", row["alignment"],
                            re.IGNORECASE):
                raise ValueError(
                    f"Invalid 'alignment' field in layout file at row "
                    f"{row_number}.")
            if not re.match(r"^[0-9]+(\.[0-9]+)?$", row["position_x"]):
                raise ValueError(
                    f"Invalid 'position_x' field in layout file at row "
                    f"{row_number}.")
            stations.append(Station(
                id=int(row["station_id"]),
                name=row["name"],
                position_x=float(row["position_x"]),
                alignment=Alignment(row["alignment"].lower()),
            ))
    return TrackLayout(stations, track_length, platform_width,
                       platform_padding)
