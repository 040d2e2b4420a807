"""Reading the run header and position frames written by a simulation run."""

from __future__ import annotations

import struct
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterator, Sequence

from mdcells.math3d import Vector3f

_PARAMS = struct.Struct("<iid")
_COUNT = struct.Struct("<i")


@dataclass(frozen=True)
class RunParams:
    """Process count, molecule count and box size of a run."""

    commsize: int
    n_mol: int
    size: float


@dataclass
class Frame:
    """Masses and positions of all molecules at one written step."""

    masses: list[float] = field(default_factory=list)
    positions: list[Vector3f] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.masses)


def read_params(path: str | Path) -> RunParams:
    """Read the run header file."""
    data = Path(path).read_bytes()
    if len(data) < _PARAMS.size:
        raise ValueError(f"{path}: run header is truncated")
    return RunParams(*_PARAMS.unpack_from(data))


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise ValueError("position frame is truncated")
    return data


def _read_chunk(stream: BinaryIO) -> Frame | None:
    head = stream.read(_COUNT.size)
    if not head:
        return None
    if len(head) != _COUNT.size:
        raise ValueError("position frame is truncated")
    (n,) = _COUNT.unpack(head)
    if n < 0:
        raise ValueError(f"negative molecule count {n}")
    masses = list(struct.unpack(f"<{n}d", _read_exact(stream, 8 * n)))
    coords = iter(struct.unpack(f"<{3 * n}d", _read_exact(stream, 24 * n)))
    positions = [Vector3f(x, y, z) for x, y, z in zip(coords, coords, coords)]
    return Frame(masses, positions)


def read_frame(streams: Sequence[BinaryIO]) -> Frame | None:
    """Read the next frame of every stream and join them; None at end of data."""
    chunks = [_read_chunk(stream) for stream in streams]
    if any(chunk is None for chunk in chunks):
        return None
    frame = Frame()
    for chunk in chunks:
        frame.masses.extend(chunk.masses)
        frame.positions.extend(chunk.positions)
    return frame


def iter_frames(data_dir: str | Path) -> Iterator[Frame]:
    """Yield every frame of the run stored in ``data_dir``."""
    base = Path(data_dir)
    params = read_params(base / "params.bin")
    with ExitStack() as stack:
        streams = [
            stack.enter_context(open(base / f"result{rank}.bin", "rb"))
            for rank in range(params.commsize)
        ]
        while (frame := read_frame(streams)) is not None:
            yield frame