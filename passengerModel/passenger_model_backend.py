"""
Passenger Model Backend

Static demand seed, the waiting ledger built from it, and seat occupancy.
"""
import csv
import logging
import re
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from universal.universal import OnboardPassenger
from trackModel.track_model_backend import TrackLayout
from trainModel.train_model_backend import VehicleComposition

logger = logging.getLogger(__name__)

DEMAND_FIELDS = ("origin_id", "dest_id", "total_count", "preferred_segment_id")

GroupKey = Tuple[int, int]


@dataclass(frozen=True)
class DemandGroup:
    """Carloads that want to travel from one station to another.

    Attributes:
        origin_id: Station where the group waits.
        dest_id: Station where the group alights.
        total_count: Number of carloads in the group.
        preferred_segment_id: Block the group is assigned to in long mode.
    """
    origin_id: int
    dest_id: int
    total_count: int
    preferred_segment_id: str

    @property
    def key(self) -> GroupKey:
        return (self.origin_id, self.dest_id)


@dataclass(frozen=True)
class WaitingGroup:
    """Un-boarded remainder of a demand group, waiting at its origin."""
    origin_id: int
    dest_id: int
    segment_id: str
    remaining_count: int
    color_tag: str

    @property
    def key(self) -> GroupKey:
        return (self.origin_id, self.dest_id)


@dataclass(frozen=True)
class BoardingResult:
    """Outcome of one boarding pass at a station.

    Attributes:
        boarded: Carloads that found a seat.
        left_behind: Carloads in open segments that found no seat.
    """
    boarded: int
    left_behind: int


def build_waiting_groups(demand: Iterable[DemandGroup], layout: TrackLayout,
                         composition: VehicleComposition
                         ) -> Dict[int, List[WaitingGroup]]:
    """Fold the demand seed into per-station waiting groups.

    Groups with an unknown station, a loop back to their own origin, a
    non-positive count or an unknown segment are dropped with a warning.
    Groups whose segment never faces the platform at their origin or
    destination, or whose destination lies behind their origin, are kept
    but logged as unreachable.

    Args:
        demand: Static demand seed.
        layout: Station registry used to validate references.
        composition: Vehicle composition deciding the effective segment.

    Returns:
        Waiting groups keyed by origin station, in seed order.
    """
    waiting: Dict[int, List[WaitingGroup]] = {}
    seen = set()
    for group in demand:
        origin = layout.get_station(group.origin_id)
        dest = layout.get_station(group.dest_id)
        if origin is None or dest is None:
            logger.warning("Dropping demand %s->%s: unknown station",
                           group.origin_id, group.dest_id)
            continue
        if group.origin_id == group.dest_id:
            logger.warning("Dropping demand %s->%s: origin equals destination",
                           group.origin_id, group.dest_id)
            continue
        if group.total_count <= 0:
            logger.warning("Dropping demand %s->%s: count %d is not positive",
                           group.origin_id, group.dest_id, group.total_count)
            continue
        if group.key in seen:
            logger.warning("Dropping demand %s->%s: duplicate origin/destination",
                           group.origin_id, group.dest_id)
            continue

        segment_id = composition.effective_segment_id(group.preferred_segment_id)
        if segment_id is None:
            logger.warning("Dropping demand %s->%s: unknown segment %r",
                           group.origin_id, group.dest_id,
                           group.preferred_segment_id)
            continue

        if segment_id not in composition.open_segments_for(origin.alignment):
            logger.warning("Demand %s->%s can never board: %s doors stay "
                           "closed at %s", group.origin_id, group.dest_id,
                           segment_id, origin.name)
        elif segment_id not in composition.open_segments_for(dest.alignment):
            logger.warning("Demand %s->%s can never alight: %s doors stay "
                           "closed at %s", group.origin_id, group.dest_id,
                           segment_id, dest.name)
        elif (layout.stop_target(dest, composition.length)
              <= layout.stop_target(origin, composition.length)):
            logger.warning("Demand %s->%s can never alight: %s lies behind "
                           "%s on the line", group.origin_id, group.dest_id,
                           dest.name, origin.name)

        seen.add(group.key)
        color = composition.get_segment(segment_id).color
        waiting.setdefault(group.origin_id, []).append(WaitingGroup(
            origin_id=group.origin_id,
            dest_id=group.dest_id,
            segment_id=segment_id,
            remaining_count=group.total_count,
            color_tag=color,
        ))
    return waiting


class PassengerLedger:
    """Runtime passenger state: waiting groups and seat occupancy.

    Attributes:
        composition: Vehicle composition the seat array is laid out for.
        seats: One entry per slot, None when empty.
    """

    def __init__(self, composition: VehicleComposition) -> None:
        self.composition = composition
        self._waiting: Dict[int, List[WaitingGroup]] = {}
        self.seats: List[Optional[OnboardPassenger]] = (
            [None] * composition.slot_count)
        self._delivered: Dict[GroupKey, int] = {}
        self._discharged: Dict[GroupKey, int] = {}

    @classmethod
    def from_seed(cls, demand: Iterable[DemandGroup], layout: TrackLayout,
                  composition: VehicleComposition) -> "PassengerLedger":
        ledger = cls(composition)
        ledger._waiting = build_waiting_groups(demand, layout, composition)
        return ledger

    # ---- queries ----
    def waiting_at(self, station_id: int) -> Tuple[WaitingGroup, ...]:
        return tuple(self._waiting.get(station_id, ()))

    def waiting_by_station(self) -> Dict[int, Tuple[WaitingGroup, ...]]:
        return {sid: tuple(groups) for sid, groups in self._waiting.items()}

    def has_waiting(self) -> bool:
        return any(g.remaining_count > 0
                   for groups in self._waiting.values() for g in groups)

    def total_waiting(self) -> int:
        return sum(g.remaining_count
                   for groups in self._waiting.values() for g in groups)

    def onboard_count(self, key: Optional[GroupKey] = None) -> int:
        return sum(1 for p in self.seats
                   if p is not None
                   and (key is None or (p.origin_id, p.dest_id) == key))

    def waiting_count(self, key: GroupKey) -> int:
        return sum(g.remaining_count for g in self._waiting.get(key[0], ())
                   if g.key == key)

    def delivered_count(self, key: Optional[GroupKey] = None) -> int:
        if key is None:
            return sum(self._delivered.values())
        return self._delivered.get(key, 0)

    def discharged_count(self, key: Optional[GroupKey] = None) -> int:
        if key is None:
            return sum(self._discharged.values())
        return self._discharged.get(key, 0)

    # ---- mutations ----
    def alight(self, station_id: int, open_segments: Sequence[str]) -> int:
        """Clear every seat bound for this station in an open segment.

        Returns:
            Number of carloads that alighted.
        """
        alighted = 0
        for index, passenger in enumerate(self.seats):
            if passenger is None or passenger.dest_id != station_id:
                continue
            if self.composition.segment_for_slot(index) not in open_segments:
                continue
            self.seats[index] = None
            key = (passenger.origin_id, passenger.dest_id)
            self._delivered[key] = self._delivered.get(key, 0) + 1
            alighted += 1
        return alighted

    def board(self, station_id: int,
              open_segments: Sequence[str]) -> BoardingResult:
        """Fill empty seats from the groups waiting at a station.

        Each group whose segment is open takes empty slots of that segment in
        ascending order. Groups whose segment is closed are not touched.
        """
        boarded = 0
        left_behind = 0
        remaining: List[WaitingGroup] = []
        for group in self._waiting.get(station_id, []):
            if group.segment_id not in open_segments:
                remaining.append(group)
                continue

            count = group.remaining_count
            for index in self.composition.slot_range(group.segment_id):
                if count == 0:
                    break
                if self.seats[index] is None:
                    self.seats[index] = OnboardPassenger(
                        origin_id=group.origin_id,
                        dest_id=group.dest_id,
                        color_tag=group.color_tag,
                    )
                    count -= 1
                    boarded += 1

            if count > 0:
                left_behind += count
                remaining.append(replace(group, remaining_count=count))

        if station_id in self._waiting:
            self._waiting[station_id] = remaining
        return BoardingResult(boarded=boarded, left_behind=left_behind)

    def discharge_all(self) -> int:
        """Empty the vehicle at the terminus, keeping the waiting groups."""
        discharged = 0
        for index, passenger in enumerate(self.seats):
            if passenger is None:
                continue
            key = (passenger.origin_id, passenger.dest_id)
            self._discharged[key] = self._discharged.get(key, 0) + 1
            self.seats[index] = None
            discharged += 1
        return discharged


def load_demand_seed(demand_file: str) -> List[DemandGroup]:
    """Load demand groups from a CSV file.

    Expected columns: origin_id, dest_id, total_count, preferred_segment_id.

    Raises:
        ValueError: If a row is malformed.
    """
    logger.info("Loading demand seed from file: %s", demand_file)
    demand: List[DemandGroup] = []
    with open(demand_file, mode='r', newline='') as file:
        reader = csv.DictReader(file)
        missing = [f for f in DEMAND_FIELDS
                   if f not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(
                f"Demand file is missing columns: {', '.join(missing)}")
        for row_number, row in enumerate(reader, start=2):
            row = {k: (row.get(k) or "").strip() for k in DEMAND_FIELDS}
            if not any(row.values()):
                continue
            for name in ("origin_id", "dest_id", "total_count"):
                if not re.match("^[0-9]+$", row[name]):
                    raise ValueError(
                        f"Invalid '{name}' field in demand file at row "
                        f"{row_number}.")
            if not re.match("^[A-Za-z_][A-Za-z0-9_]*$",
                            row["preferred_segment_id"]):
                raise ValueError(
                    f"Invalid 'preferred_segment_id' field in demand file "
                    f"at row {row_number}.")
            demand.append(DemandGroup(
                origin_id=int(row["origin_id"]),
                dest_id=int(row["dest_id"]),
                total_count=int(row["total_count"]),
                preferred_segment_id=row["preferred_segment_id"],
            ))
    return demand
