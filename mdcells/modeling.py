"""Molecular dynamics of one cell of a spatially decomposed simulation box."""

from __future__ import annotations

import math
import random
import struct
import time
from dataclasses import dataclass, field, replace
from enum import IntEnum
from itertools import combinations
from typing import BinaryIO, Iterable

from mdcells.math3d import Vector3f, Vector3i

NDIM = 3

SYSTEM_HEADER = (
    "step, time, v, Energy, sqrEnergy, kinEnergy, sqrkinEnergy, Pressure, sqrPressure\n"
)

# The cut-off exponent is the single-precision value of one third.
_ONE_THIRD_F32 = struct.unpack("<f", struct.pack("<f", 1.0 / 3.0))[0]


class Side(IntEnum):
    """Faces of a cell, in the order neighbours are addressed."""

    RIGHT = 0
    LEFT = 1
    TOP = 2
    BOTTOM = 3
    FRONT = 4
    BACK = 5


@dataclass
class Prop:
    """A measured quantity with running sums for its mean and spread."""

    val: float = 0.0
    sum1: float = 0.0
    sum2: float = 0.0

    def zero(self) -> None:
        self.sum1 = 0.0
        self.sum2 = 0.0

    def accumulate(self) -> None:
        self.sum1 += self.val
        self.sum2 += self.val * self.val

    def average(self, count: int) -> None:
        """Turn the sums into the mean (``sum1``) and spread (``sum2``)."""
        self.sum1 /= count
        mean_sq = self.sum2 / count
        spread = mean_sq - self.sum1 * self.sum1
        # A negative variance falls back to the raw mean square.
        self.sum2 = math.sqrt(spread if spread >= 0.0 else mean_sq)


@dataclass
class Molecule:
    """Position, force, velocity and mass of one particle."""

    p: Vector3f = field(default_factory=Vector3f.zero)
    f: Vector3f = field(default_factory=Vector3f.zero)
    v: Vector3f = field(default_factory=Vector3f.zero)
    m: float = 0.0


def _side_lists() -> dict:
    return {side: [] for side in Side}


@dataclass
class Escapees:
    """Molecules that left a cell, grouped by the face they crossed."""

    molecules: dict[Side, list[Molecule]] = field(default_factory=_side_lists)
    indices: dict[Side, list[int]] = field(default_factory=_side_lists)


@dataclass(frozen=True)
class SimulationParams:
    """Run parameters of the simulation."""

    step_avg: int
    step_equil: int
    step_limit: int
    step_write: int
    temperature: float
    size: float
    density: float
    delta_t: float
    alpha: float
    r_cut: float
    region: Vector3f
    cregion: Vector3f
    n_mol: int
    vel_mag: float

    @classmethod
    def for_dims(cls, dims: Vector3i) -> SimulationParams:
        """Default parameters for a process grid of shape ``dims``."""
        size = 15.0
        density = 0.3
        temperature = 50.0
        region = Vector3f(size, size, size)
        cregion = Vector3f(
            region.x * 2 / dims.x, region.y * 2 / dims.y, region.z * 2 / dims.z
        )
        n_mol = int(region.x * region.y * region.z * density)
        return cls(
            step_avg=5000,
            step_equil=0,
            step_limit=300 * 1000,
            step_write=100,
            temperature=temperature,
            size=size,
            density=density,
            delta_t=1e-4,
            alpha=10.0,
            r_cut=math.pow(size, _ONE_THIRD_F32),
            region=region,
            cregion=cregion,
            n_mol=n_mol,
            vel_mag=math.sqrt(NDIM * (1.0 - 1.0 / n_mol) * temperature),
        )


@dataclass
class Properties:
    """Total energy, kinetic energy and pressure of the whole system."""

    tot_energy: Prop = field(default_factory=Prop)
    kin_energy: Prop = field(default_factory=Prop)
    pressure: Prop = field(default_factory=Prop)

    def _all(self) -> tuple[Prop, Prop, Prop]:
        return self.tot_energy, self.kin_energy, self.pressure

    def reset(self) -> None:
        for prop in self._all():
            prop.zero()

    def accumulate(self) -> None:
        for prop in self._all():
            prop.accumulate()

    def average(self, count: int) -> None:
        for prop in self._all():
            prop.average(count)

    def evaluate(
        self, params: SimulationParams, vv_sum: float, u_sum: float, vir_sum: float
    ) -> None:
        """Set current values from system-wide sums."""
        n_mol = params.n_mol
        self.kin_energy.val = 0.5 * vv_sum / n_mol
        self.tot_energy.val = self.kin_energy.val + abs(u_sum) / n_mol
        self.pressure.val = params.density * (vv_sum + vir_sum) / (n_mol * NDIM)


def random_unit_vector(rng: random.Random) -> Vector3f:
    """Random direction vector from a rejection-sampled point in the unit ball.

    The result is the sampled point scaled by ``2*sqrt(1 - s)`` where ``s``
    is its squared length, so its length never exceeds one.
    """
    s = 2.0
    x = y = z = 0.0
    while s > 1.0:
        x = 2.0 * rng.random() - 1.0
        y = 2.0 * rng.random() - 1.0
        z = 2.0 * rng.random() - 1.0
        s = x * x + y * y + z * z
    k = 2.0 * math.sqrt(1.0 - s)
    return Vector3f(k * x, k * y, k * z)


def get_center(region: Vector3f, crank: Vector3i, dims: Vector3i) -> Vector3f:
    """Centre of the cell at grid coordinates ``crank``."""
    return Vector3f(
        region.x / dims.x * (crank.x * 2 + 1) - region.x,
        region.y / dims.y * (crank.y * 2 + 1) - region.y,
        region.z / dims.z * (crank.z * 2 + 1) - region.z,
    )


def write_positions(stream: BinaryIO, molecules: Iterable[Molecule]) -> None:
    """Write a frame: count, then all masses, then all positions (little-endian)."""
    mols = list(molecules)
    n = len(mols)
    stream.write(struct.pack("<i", n))
    stream.write(struct.pack(f"<{n}d", *(mol.m for mol in mols)))
    stream.write(
        struct.pack(f"<{3 * n}d", *(c for mol in mols for c in mol.p))
    )


def write_params(stream: BinaryIO, commsize: int, n_mol: int, size: float) -> None:
    """Write the run header: process count, molecule count and box size."""
    stream.write(struct.pack("<iid", commsize, n_mol, size))


def format_system_line(
    step: int, delta_t: float, v_sum: Vector3f, n_mol: int, properties: Properties
) -> str:
    """One line of the system log."""
    p = properties
    return "%5d\t%8.4f\t%7.6f %7.6f %7.6f %7.6f %7.6f %7.6f %7.6f\n" % (
        step,
        step * delta_t,
        v_sum.component_sum() / n_mol,
        p.tot_energy.sum1,
        p.tot_energy.sum2,
        p.kin_energy.sum1,
        p.kin_energy.sum2,
        p.pressure.sum1,
        p.pressure.sum2,
    )


def _sign(flag: bool) -> int:
    return 1 if flag else -1


@dataclass
class Cell:
    """The molecules owned by one cell of the process grid."""

    params: SimulationParams
    crank: Vector3i
    dims: Vector3i
    molecules: list[Molecule] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random)
    positions_out: BinaryIO | None = None
    step_count: int = 0
    u_sum: float = 0.0
    vir_sum: float = 0.0
    properties: Properties = field(default_factory=Properties)
    center: Vector3f = field(init=False)

    def __post_init__(self) -> None:
        self.center = get_center(self.params.region, self.crank, self.dims)

    def setup(self, rank: int, count: int) -> None:
        """Create ``count`` molecules with positions seeded by ``rank``."""
        self.rng.seed(rank)
        self.init_coords(count)
        self.init_vels()
        self.init_mass()
        self.properties.reset()

    def init_coords(self, count: int) -> None:
        """Place ``count`` molecules around the octants of the cell."""
        c = self.center
        cr = self.params.cregion
        shrink = 1 - 1e-6
        rnd = self.rng.random
        self.molecules = []
        for i in range(count):
            x = (
                c.x
                + _sign(i % 2 != 0) * _sign((i // 2) % 2 == 0) * cr.x / 4.0
                + (rnd() / 2 - 0.25) * cr.x * shrink
            )
            y = c.y + _sign((i // 4) % 2 == 0) * cr.y / 4.0 + (rnd() / 2 - 0.25) * cr.y * shrink
            z = c.z + _sign((i // 8) % 2 == 0) * cr.z / 4.0 + (rnd() / 2 - 0.25) * cr.z * shrink
            self.molecules.append(Molecule(p=Vector3f(x, y, z)))

    def init_vels(self) -> None:
        """Random velocities, shifted by the cell's share of the total drift."""
        self.rng.seed(int(time.time()))
        v_sum = Vector3f.zero()
        for mol in self.molecules:
            mol.v = random_unit_vector(self.rng)
            v_sum = v_sum + mol.v
        shift = v_sum.scale(-1.0 / self.params.n_mol)
        for mol in self.molecules:
            mol.v = mol.v + shift

    def init_mass(self) -> None:
        """Masses drawn uniformly from [0.5, 1]."""
        for mol in self.molecules:
            for _ in range(3):
                mol.m = self.rng.random() * 0.5 + 0.5

    def calculate_forces(self) -> None:
        """Smoothed Lennard-Jones forces and the potential and virial sums."""
        params = self.params
        region = params.region
        rr_cut = params.r_cut * params.r_cut
        for mol in self.molecules:
            mol.f = Vector3f.zero()
        self.u_sum = 0.0
        self.vir_sum = 0.0

        def wrap(d: float, shift: float, limit: float) -> float:
            return d - shift if d >= 0.5 * limit else d + shift

        for a, b in combinations(self.molecules[:-1], 2):
            raw = a.p - b.p
            dx = wrap(raw.x, region.x, region.x)
            dy = wrap(raw.y, region.x, region.y)
            dz = wrap(raw.z, region.z, region.z)
            rr = dx * dx + dy * dy + dz * dz
            if rr < rr_cut and rr > 1e-2:
                x = rr / rr_cut
                smoothing = (
                    0.5 * (1 + math.cos(math.pi * x)) * (1 - math.tanh(params.alpha * (1 - x)))
                )
                rri = 1.0 / rr
                rri3 = rri * rri * rri
                fc = 48.0 * rri3 * (rri3 - 0.5) * rri
                a.f = a.f + Vector3f(
                    fc * dx * smoothing, fc * dy * smoothing, fc * dz * smoothing
                )
                self.u_sum += 4.0 * rri3 * (rri3 - 1.0) + 1.0
                self.vir_sum += fc * rr

    def leapfrog_step(self, part: int) -> None:
        """First (``part == 1``) or second half of a leapfrog step."""
        half_dt = 0.5 * self.params.delta_t
        if part == 1:
            dt = self.params.delta_t
            for mol in self.molecules:
                mol.v = mol.v + mol.f.scale(half_dt) / mol.m
                mol.p = mol.p + mol.v.scale(dt) / mol.m
        else:
            for mol in self.molecules:
                mol.v = mol.v + mol.f.scale(half_dt)

    def single_step(self) -> None:
        """Advance one time step, writing positions every ``step_write`` steps."""
        self.step_count += 1
        self.leapfrog_step(1)
        self.calculate_forces()
        self.leapfrog_step(2)
        if self.step_count % self.params.step_write == 0 and self.positions_out is not None:
            write_positions(self.positions_out, self.molecules)

    def velocity_sums(self) -> tuple[Vector3f, float]:
        """Sum of velocities and sum of squared speeds."""
        v_sum = Vector3f.zero()
        vv_sum = 0.0
        for mol in self.molecules:
            v_sum = v_sum + mol.v
            vv_sum += mol.v.length_sq()
        return v_sum, vv_sum

    def find_escapees(self) -> Escapees:
        """Collect molecules outside the cell, wrapping those leaving the box."""
        params = self.params
        escapees = Escapees()
        axes = (
            ("x", Side.RIGHT, Side.LEFT),
            ("y", Side.TOP, Side.BOTTOM),
            ("z", Side.FRONT, Side.BACK),
        )
        for index, mol in enumerate(self.molecules):
            for axis, high, low in axes:
                pos = getattr(mol.p, axis)
                centre = getattr(self.center, axis)
                span = getattr(params.cregion, axis)
                extent = getattr(params.region, axis)
                coord = getattr(self.crank, axis)
                if pos > centre + span / 2:
                    if coord == getattr(self.dims, axis) - 1:
                        mol.p = replace(mol.p, **{axis: -extent + math.fmod(pos, span)})
                    side = high
                elif pos < centre - span / 2:
                    if coord == 0:
                        mol.p = replace(mol.p, **{axis: extent + math.fmod(pos, span)})
                    side = low
                else:
                    continue
                escapees.molecules[side].append(replace(mol))
                escapees.indices[side].append(index)
                break
        return escapees