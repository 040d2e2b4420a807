"""Spatial decomposition of the simulation box into a periodic grid of cells.

Every cell of the process grid is held in one process; molecules that cross
a cell face are passed to the neighbouring cell through per-pair mailboxes
that keep messages in the order they were sent.
"""

from __future__ import annotations

import argparse
import math
import sys
import time
from collections import defaultdict, deque
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from mdcells.math3d import Vector3i
from mdcells.modeling import (
    SYSTEM_HEADER,
    Cell,
    Escapees,
    Molecule,
    Side,
    SimulationParams,
    format_system_line,
    write_params,
)


def _factorizations(n: int, parts: int, limit: int) -> Iterator[tuple[int, ...]]:
    """Non-increasing tuples of ``parts`` factors, each at most ``limit``, with product ``n``."""
    if parts == 1:
        if n <= limit:
            yield (n,)
        return
    for d in range(min(n, limit), 0, -1):
        if n % d == 0:
            for rest in _factorizations(n // d, parts - 1, d):
                yield (d,) + rest


def dims_create(nnodes: int, ndims: int) -> tuple[int, ...]:
    """Split ``nnodes`` into ``ndims`` balanced factors in non-increasing order."""
    if nnodes < 1 or ndims < 1:
        raise ValueError("nnodes and ndims must be positive")
    return min(
        _factorizations(nnodes, ndims, nnodes), key=lambda f: (f[0] - f[-1], f[0])
    )


def partition_range(rank: int, size: int, n_mol: int) -> tuple[int, int]:
    """Half-open range ``(first, last)`` of molecules owned by ``rank``."""
    if size < 1 or not 0 <= rank < size:
        raise ValueError(f"rank {rank} out of range for {size} processes")
    share, extra = divmod(n_mol, size)
    first = share * rank + min(rank, extra)
    last = first + share + (1 if rank < extra else 0)
    return first, last


def cart_coords(rank: int, dims: Vector3i) -> Vector3i:
    """Grid coordinates of ``rank`` in row-major order."""
    if not 0 <= rank < dims.x * dims.y * dims.z:
        raise ValueError(f"rank {rank} outside the grid")
    return Vector3i(
        rank // (dims.y * dims.z), (rank // dims.z) % dims.y, rank % dims.z
    )


def cart_rank(coords: Vector3i, dims: Vector3i) -> int:
    """Rank at ``coords``, wrapping periodically in every direction."""
    x, y, z = coords.x % dims.x, coords.y % dims.y, coords.z % dims.z
    return (x * dims.y + y) * dims.z + z


def neighbours(coords: Vector3i, dims: Vector3i) -> dict[Side, int]:
    """Ranks of the cells that escapees through each face are sent to."""
    x, y, z = coords
    return {
        Side.RIGHT: cart_rank(Vector3i(x + 1, y, z), dims),
        Side.LEFT: cart_rank(Vector3i(x - 1, y, z), dims),
        Side.TOP: cart_rank(Vector3i(x, y - 1, z), dims),
        Side.BOTTOM: cart_rank(Vector3i(x, y + 1, z), dims),
        Side.FRONT: cart_rank(Vector3i(x, y, z - 1), dims),
        Side.BACK: cart_rank(Vector3i(x, y, z + 1), dims),
    }


@dataclass(frozen=True)
class RunTimings:
    """Wall-clock seconds spent in a run."""

    total: float
    leapfrog: float
    exchange: float


class Domain:
    """All cells of the process grid and the exchange of molecules between them."""

    def __init__(self, commsize: int, params: SimulationParams | None = None) -> None:
        dims = Vector3i(*dims_create(commsize, 3))
        if min(dims) < 2:
            raise ValueError(
                f"Invalid number of processes {commsize}: px {dims.x} py {dims.y} "
                f"pz {dims.z} must be greater than 1"
            )
        self.commsize = commsize
        self.dims = dims
        self.params = params if params is not None else SimulationParams.for_dims(dims)
        if self.params.n_mol < commsize * 2:
            raise ValueError(
                f"{self.params.n_mol} molecules are too few for {commsize} processes"
            )
        self.cells: list[Cell] = []
        self.neighbours: list[dict[Side, int]] = []
        for rank in range(commsize):
            crank = cart_coords(rank, dims)
            first, last = partition_range(rank, commsize, self.params.n_mol)
            cell = Cell(self.params, crank, dims)
            cell.setup(rank, last - first)
            self.cells.append(cell)
            self.neighbours.append(neighbours(crank, dims))
        self.t_leapfrog = 0.0
        self.t_exchange = 0.0

    @property
    def step_count(self) -> int:
        return self.cells[0].step_count

    def step(self) -> str | None:
        """Advance every cell one step; return the system log line on averaging steps."""
        params = self.params
        start = time.perf_counter()
        for cell in self.cells:
            cell.single_step()
        self.t_leapfrog += time.perf_counter() - start

        averaging = self.step_count % params.step_avg == 0
        sums = [cell.velocity_sums() for cell in self.cells] if averaging else []

        start = time.perf_counter()
        self.exchange([cell.find_escapees() for cell in self.cells])
        self.t_exchange += time.perf_counter() - start

        if not averaging:
            return None
        total_u = math.fsum(cell.u_sum for cell in self.cells)
        total_vir = math.fsum(cell.vir_sum for cell in self.cells)
        total_vv = math.fsum(vv for _, vv in sums)
        total_v = sums[0][0]
        for v_sum, _ in sums[1:]:
            total_v = total_v + v_sum

        props = self.cells[0].properties
        props.evaluate(params, total_vv, total_u, total_vir)
        props.accumulate()
        props.average(params.step_avg)
        line = format_system_line(
            self.step_count, params.delta_t, total_v, params.n_mol, props
        )
        props.reset()
        return line

    def exchange(self, escapees: Sequence[Escapees]) -> None:
        """Send every cell's escapees to its neighbours and merge what arrives."""
        if len(escapees) != len(self.cells):
            raise ValueError("one Escapees per cell is required")
        mailboxes: dict[tuple[int, int], deque[list[Molecule]]] = defaultdict(deque)
        for rank, esc in enumerate(escapees):
            for side in Side:
                target = self.neighbours[rank][side]
                mailboxes[(rank, target)].append(list(esc.molecules[side]))
        for rank, (cell, esc) in enumerate(zip(self.cells, escapees)):
            received = {
                side: mailboxes[(self.neighbours[rank][side], rank)].popleft()
                for side in Side
            }
            self._merge(cell, esc, received)

    def _merge(
        self, cell: Cell, esc: Escapees, received: dict[Side, list[Molecule]]
    ) -> None:
        """Fill escapees' slots with arrivals, append extra arrivals, drop extra escapees."""
        storage: list[Molecule | None] = list(cell.molecules)
        count = len(storage)

        def put(index: int, mol: Molecule | None) -> None:
            if index < len(storage):
                storage[index] = mol
            else:
                storage.extend([None] * (index - len(storage)))
                storage.append(mol)

        for side in Side:
            sent = esc.indices[side]
            incoming = received[side]
            kept = min(len(sent), len(incoming))
            for index, mol in zip(sent, incoming):
                put(index, mol)
            for mol in incoming[kept:]:
                put(count, mol)
                count += 1
                if count > self.params.n_mol // 2:
                    print(f"|| {count} ||")
            for index in reversed(sent[kept:]):
                put(index, storage[count - 1])
                count -= 1
        cell.molecules = [mol for mol in storage[:count] if mol is not None]

    def run(self, output_dir: str | Path, step_limit: int | None = None) -> RunTimings:
        """Run until ``step_limit`` steps, writing params, positions and the system log."""
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        limit = self.params.step_limit if step_limit is None else step_limit
        start = time.perf_counter()
        with open(out / "params.bin", "wb") as params_file:
            write_params(params_file, self.commsize, self.params.n_mol, self.params.size)
        with ExitStack() as stack:
            system = stack.enter_context(open(out / "system.txt", "w"))
            system.write(SYSTEM_HEADER)
            for rank, cell in enumerate(self.cells):
                cell.positions_out = stack.enter_context(
                    open(out / f"result{rank}.bin", "wb")
                )
            try:
                while True:
                    line = self.step()
                    if line is not None:
                        system.write(line)
                    if self.step_count >= limit:
                        break
            finally:
                for cell in self.cells:
                    cell.positions_out = None
        return RunTimings(
            time.perf_counter() - start, self.t_leapfrog, self.t_exchange
        )


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mdcells", description="Molecular dynamics on a periodic grid of cells."
    )
    parser.add_argument("-n", "--processes", type=int, default=8,
                        help="number of cells in the grid")
    parser.add_argument("-o", "--output", default="data",
                        help="directory for the output files")
    parser.add_argument("--steps", type=int, default=None,
                        help="number of steps to run")
    args = parser.parse_args(argv)

    try:
        domain = Domain(args.processes)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    dims = domain.dims
    print(f"NBody: {domain.params.n_mol}")
    print(f"Processes {domain.commsize}: px {dims.x} py {dims.y} pz {dims.z}")
    for rank, cell in enumerate(domain.cells):
        c = cell.crank
        print(f"[{rank}]: NBody: {len(cell.molecules)}, coords({c.x}, {c.y}, {c.z})")

    timings = domain.run(args.output, args.steps)

    for rank in range(domain.commsize):
        print(f"[{rank}] ttotal: {timings.total:f}")
    print(f"tLeapfrog: {timings.leapfrog:f} | tExchange: {timings.exchange:f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())