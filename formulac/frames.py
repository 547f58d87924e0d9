"""Recorded car positions and their on-disk binary format."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

# Two float32 coordinates, a float32 angle, four bytes of padding, a float64 time.
_FORMAT = struct.Struct("<fff4xd")
FRAME_SIZE = _FORMAT.size


@dataclass(frozen=True)
class CarFrame:
    """A car's position and heading at a moment of a lap."""

    pos: tuple = (0.0, 0.0)
    angle: float = 0.0
    time: float = 0.0

    def pack(self) -> bytes:
        """Encode the frame as a fixed-size binary record."""
        return _FORMAT.pack(float(self.pos[0]), float(self.pos[1]), self.angle, self.time)


def frame_at(frames: Sequence[CarFrame], index: int) -> CarFrame:
    """The frame at ``index``, or an all-zero frame when out of range."""
    if 0 <= index < len(frames):
        return frames[index]
    return CarFrame()


def last_frame(frames: Sequence[CarFrame]) -> CarFrame:
    """The final frame, or an all-zero frame for an empty recording."""
    return frame_at(frames, len(frames) - 1)


def read_frames(path) -> list:
    """Read every complete frame stored in ``path``.

    Raises FileNotFoundError when the file does not exist.
    """
    data = Path(path).read_bytes()
    usable = len(data) - len(data) % FRAME_SIZE
    return [
        CarFrame((x, y), angle, time)
        for x, y, angle, time in _FORMAT.iter_unpack(data[:usable])
    ]


def write_frames(path, frames: Iterable[CarFrame]) -> None:
    """Write ``frames`` to ``path``, replacing its contents."""
    with open(path, "wb") as handle:
        for frame in frames:
            handle.write(frame.pack())