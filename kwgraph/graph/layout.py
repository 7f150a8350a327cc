"""Spring-embedder force simulation used to arrange diagrams."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from kwgraph.config import LayoutConfig


_GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))
_COINCIDENT_EPSILON = 1e-9


@dataclass(frozen=True)
class LayoutResult:
    """Outcome of a single relaxation pass."""

    positions: np.ndarray
    iterations: int
    converged: bool
    max_displacement: float


def seed_positions(count: int, *, center: Tuple[float, float], radius: float) -> np.ndarray:
    """Place ``count`` points evenly on a circle around ``center``.

    Args:
        count: Number of points to seed.
        center: Circle centre.
        radius: Base circle radius, widened when many points share the circle.

    Returns:
        np.ndarray: ``(count, 2)`` array of seed coordinates.
    """

    if count <= 0:
        return np.zeros((0, 2), dtype=float)
    effective_radius = radius * max(1.0, count / 6.0)
    angles = 2.0 * math.pi * np.arange(count, dtype=float) / count
    seeds = np.empty((count, 2), dtype=float)
    seeds[:, 0] = center[0] + effective_radius * np.cos(angles)
    seeds[:, 1] = center[1] + effective_radius * np.sin(angles)
    return seeds


def _fallback_directions(count: int) -> np.ndarray:
    """Deterministic antisymmetric unit vectors used to split coincident pairs."""

    index = np.arange(count, dtype=float)
    angles = _GOLDEN_ANGLE * (index[:, None] * count + index[None, :])
    directions = np.stack([np.cos(angles), np.sin(angles)], axis=2)
    upper = np.triu(np.ones((count, count), dtype=bool), k=1)
    directions = np.where(upper[..., None], directions, 0.0)
    return directions - np.transpose(directions, (1, 0, 2))


def _repulsion(
    positions: np.ndarray,
    config: LayoutConfig,
    fallback: np.ndarray,
) -> np.ndarray:
    delta = positions[:, None, :] - positions[None, :, :]
    distance = np.linalg.norm(delta, axis=2)
    unit = delta / np.maximum(distance, _COINCIDENT_EPSILON)[..., None]
    coincident = distance <= _COINCIDENT_EPSILON
    np.fill_diagonal(coincident, False)
    if coincident.any():
        unit = np.where(coincident[..., None], fallback, unit)
    safe = np.maximum(distance, config.min_distance)
    np.fill_diagonal(safe, np.inf)
    magnitude = config.repulsion_constant / np.square(safe)
    return (unit * magnitude[..., None]).sum(axis=1)


def _attraction(
    positions: np.ndarray,
    edges: np.ndarray,
    spring_lengths: np.ndarray,
    config: LayoutConfig,
) -> np.ndarray:
    forces = np.zeros_like(positions)
    if edges.size == 0:
        return forces
    source = edges[:, 0]
    target = edges[:, 1]
    delta = positions[target] - positions[source]
    distance = np.linalg.norm(delta, axis=1)
    safe = np.maximum(distance, config.min_distance)
    # Positive magnitudes pull the endpoints together, negative ones push them apart.
    magnitude = config.attraction_constant * (distance - spring_lengths)
    pull = delta / safe[:, None] * magnitude[:, None]
    np.add.at(forces, source, pull)
    np.add.at(forces, target, -pull)
    return forces


def _gravity(positions: np.ndarray, config: LayoutConfig) -> np.ndarray:
    """Pull every node towards the centroid so disconnected components settle."""

    return -config.gravity_constant * (positions - positions.mean(axis=0))


def compute_force_layout(
    initial_positions: np.ndarray,
    edges: Sequence[Tuple[int, int]],
    spring_lengths: Sequence[float],
    config: Optional[LayoutConfig] = None,
) -> LayoutResult:
    """Relax node positions with Coulomb repulsion, Hooke springs and centroid gravity.

    Velocities start at zero, are damped every iteration and clamped to a
    temperature that cools geometrically towards ``config.min_temperature``.
    The run stops once the largest per-node displacement stays below
    ``config.convergence_threshold`` for ``config.stable_iterations``
    consecutive iterations, or after ``config.max_iterations``. The result is
    re-centred so the bounding box midpoint sits on the origin.

    Args:
        initial_positions: ``(n, 2)`` starting coordinates.
        edges: Unique undirected edges as index pairs into ``initial_positions``.
        spring_lengths: Ideal length for each edge, aligned with ``edges``.
        config: Simulation constants; defaults to ``LayoutConfig()``.

    Returns:
        LayoutResult: Final coordinates and convergence metadata.
    """

    resolved = config or LayoutConfig()
    positions = np.array(initial_positions, dtype=float, copy=True).reshape(-1, 2)
    count = positions.shape[0]
    if count == 0:
        return LayoutResult(positions=positions, iterations=0, converged=True, max_displacement=0.0)
    if count == 1:
        return LayoutResult(
            positions=np.zeros((1, 2), dtype=float),
            iterations=0,
            converged=True,
            max_displacement=0.0,
        )

    edge_array = np.asarray(edges, dtype=int).reshape(-1, 2)
    lengths = np.asarray(spring_lengths, dtype=float).reshape(-1)
    if lengths.shape[0] != edge_array.shape[0]:
        raise ValueError("spring_lengths must align with edges")
    fallback = _fallback_directions(count)
    velocity = np.zeros_like(positions)
    temperature = resolved.initial_temperature
    stable = 0
    converged = False
    iterations = 0
    max_displacement = 0.0

    for iteration in range(resolved.max_iterations):
        forces = _repulsion(positions, resolved, fallback)
        forces += _attraction(positions, edge_array, lengths, resolved)
        forces += _gravity(positions, resolved)
        velocity = (velocity + forces) * resolved.damping
        speed = np.linalg.norm(velocity, axis=1)
        too_fast = speed > temperature
        if too_fast.any():
            velocity[too_fast] *= (temperature / speed[too_fast])[:, None]
            speed = np.minimum(speed, temperature)
        positions += velocity
        iterations = iteration + 1
        max_displacement = float(speed.max())
        if max_displacement < resolved.convergence_threshold:
            stable += 1
            if stable >= resolved.stable_iterations:
                converged = True
                break
        else:
            stable = 0
        temperature = max(resolved.min_temperature, temperature * resolved.cooling_rate)

    midpoint = (positions.min(axis=0) + positions.max(axis=0)) / 2.0
    positions -= midpoint
    return LayoutResult(
        positions=positions,
        iterations=iterations,
        converged=converged,
        max_displacement=max_displacement,
    )
