"""Depth ordering of particles by distance from a viewpoint."""

from __future__ import annotations

from typing import Iterable, Sequence

from mdcells.math3d import Vector3f


def sort_distances(indices: Sequence[int], distances: Sequence[float]) -> list[int]:
    """Reorder ``indices`` by distance.

    Walks the distances in ascending order and, for each position ``i``,
    swaps the index at ``i`` with the index at the first position that
    holds the ``i``-th smallest distance. The distances themselves are
    not moved.
    """
    if len(indices) != len(distances):
        raise ValueError("indices and distances must have the same length")
    order = list(indices)
    first_position: dict[float, int] = {}
    for position, dist in enumerate(distances):
        first_position.setdefault(dist, position)
    for i, dist in enumerate(sorted(distances)):
        j = first_position.get(dist)
        if j is None:
            continue
        order[i], order[j] = order[j], order[i]
    return order


def depth_order(positions: Iterable[Vector3f], viewpoint: Vector3f) -> list[int]:
    """Particle indices ordered by their distance from ``viewpoint``."""
    dists = [p.distance(viewpoint) for p in positions]
    return sort_distances(range(len(dists)), dists)