"""Train Model Backend
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from universal.universal import Alignment, LayoutGeometry, VehicleMode

logger = logging.getLogger(__name__)

# Block ids a demand group may name as its preferred segment
BLOCK_IDS = ("rear", "mid", "front")


@dataclass(frozen=True)
class VehicleSegment:
    """An independently doored block of cars.

    Attributes:
        id: Segment identifier ("rear", "mid", "front", "single").
        capacity: Number of seat slots (one carload each).
        label: Display name of the block.
        color: Color tag given to passengers assigned to this block.
    """
    id: str
    capacity: int
    label: str
    color: str


class VehicleComposition:
    """Partition of the vehicle into ordered, capacity-bounded segments.

    Slots are numbered rear to front; each segment owns a contiguous index
    range that never changes for the lifetime of the composition.

    Attributes:
        mode: Vehicle mode this composition implements.
        segments: Segments ordered rear to front.
        length: Physical length of the vehicle along the track.
        slot_count: Total number of seat slots.
    """

    def __init__(self, mode: VehicleMode, segments: Sequence[VehicleSegment],
                 door_table: Mapping[Alignment, Sequence[str]],
                 car_length: float, car_gap: float,
                 coupler_gap: float,
                 accepted_preferences: Sequence[str] = ()) -> None:
        """Initialize a composition.

        Args:
            mode: Vehicle mode this composition implements.
            segments: Segments ordered rear to front.
            door_table: Segment ids whose doors open for each alignment.
            car_length: Length of one car.
            car_gap: Gap between cars inside a block.
            coupler_gap: Gap between coupled blocks.
            accepted_preferences: Extra segment ids a demand group may
                prefer, beyond this composition's own.

        Raises:
            ValueError: On empty, duplicate or zero-capacity segments, or a
                door table naming an unknown segment.
        """
        if not segments:
            raise ValueError("Composition needs at least one segment.")
        self.mode = mode
        self.segments: Tuple[VehicleSegment, ...] = tuple(segments)

        self._ranges: Dict[str, range] = {}
        self._owner: List[str] = []
        for segment in self.segments:
            if segment.id in self._ranges:
                raise ValueError(f"Duplicate segment id {segment.id!r}.")
            if segment.capacity <= 0:
                raise ValueError(
                    f"Segment {segment.id!r} must have positive capacity.")
            start = len(self._owner)
            self._ranges[segment.id] = range(start, start + segment.capacity)
            self._owner.extend([segment.id] * segment.capacity)

        self._door_table: Dict[Alignment, Tuple[str, ...]] = {}
        for alignment in Alignment:
            ids = tuple(door_table.get(alignment, ()))
            for seg_id in ids:
                if seg_id not in self._ranges:
                    raise ValueError(
                        f"Door table for {alignment.value} names unknown "
                        f"segment {seg_id!r}.")
            self._door_table[alignment] = ids

        self._accepted = (frozenset(self._ranges)
                          | frozenset(accepted_preferences))
        self.slot_count = len(self._owner)
        self.length = LayoutGeometry.train_length(
            [s.capacity for s in self.segments], car_length, car_gap,
            coupler_gap)
        logger.debug("Built %r, length %.1f", self, self.length)

    @property
    def is_uniform(self) -> bool:
        """True when the whole vehicle is a single segment."""
        return len(self.segments) == 1

    def segment_ids(self) -> List[str]:
        return [s.id for s in self.segments]

    def get_segment(self, segment_id: str) -> Optional[VehicleSegment]:
        for segment in self.segments:
            if segment.id == segment_id:
                return segment
        return None

    def segment_for_slot(self, index: int) -> str:
        """Owning segment id of a slot index.

        Raises:
            IndexError: If the index is outside the vehicle.
        """
        if index < 0 or index >= self.slot_count:
            raise IndexError(
                f"Slot {index} outside vehicle of {self.slot_count} slots.")
        return self._owner[index]

    def slot_range(self, segment_id: str) -> range:
        """Ordered slot indices owned by a segment.

        Raises:
            KeyError: If the segment is not part of this composition.
        """
        return self._ranges[segment_id]

    def open_segments_for(self, alignment: Alignment) -> Tuple[str, ...]:
        """Segments whose doors face the platform at this alignment."""
        return self._door_table[alignment]

    def effective_segment_id(self, preferred: str) -> Optional[str]:
        """Segment a demand group will actually use in this composition.

        An unknown preference gives None. A uniform vehicle forces every
        known preference into its only segment.
        """
        if preferred not in self._accepted:
            return None
        if self.is_uniform:
            return self.segments[0].id
        return preferred

    def __repr__(self) -> str:
        parts = ", ".join(f"{s.id}({s.capacity})" for s in self.segments)
        return f"VehicleComposition({self.mode.value}: {parts})"


def build_long_composition(car_length: float, car_gap: float,
                           coupler_gap: float) -> VehicleComposition:
    """Ten car vehicle: rear(3), mid(4), front(3).

    Rear and all aligned platforms face the rear and mid blocks; front
    aligned platforms face the mid and front blocks.
    """
    segments = [
        VehicleSegment("rear", 3, "Block 1", "rose"),
        VehicleSegment("mid", 4, "Block 3", "amber"),
        VehicleSegment("front", 3, "Block 2", "blue"),
    ]
    door_table = {
        Alignment.REAR: ("rear", "mid"),
        Alignment.ALL: ("rear", "mid"),
        Alignment.FRONT: ("mid", "front"),
    }
    return VehicleComposition(VehicleMode.LONG, segments, door_table,
                              car_length, car_gap, coupler_gap)


def build_short_composition(car_length: float, car_gap: float,
                            coupler_gap: float) -> VehicleComposition:
    """Seven car vehicle that fits every platform; all doors always open."""
    segments = [VehicleSegment("single", 7, "Standard Train", "amber")]
    door_table = {alignment: ("single",) for alignment in Alignment}
    return VehicleComposition(VehicleMode.SHORT, segments, door_table,
                              car_length, car_gap, coupler_gap,
                              accepted_preferences=BLOCK_IDS)
