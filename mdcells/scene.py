"""Geometry and camera state for drawing the simulation box and its particles."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum

from mdcells.datafiles import Frame
from mdcells.distance import depth_order
from mdcells.math3d import Matrix4f, Vector3f
from mdcells.transforms import Pipeline

DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 768
DEFAULT_RADIUS = 0.275
SPHERE_SEGMENTS = 4

_FOV = 60.0
_Z_NEAR = 0.5
_Z_FAR = 1000.0
_ROTATION_SPEED = 0.075

_CUBE_VERTICES = (
    (-1, -1, 1),
    (-1, 1, 1), (-1, 1, -1), (-1, 1, 1),
    (1, 1, 1), (1, 1, -1), (1, 1, 1),
    (1, -1, 1), (1, -1, -1), (1, -1, 1),
    (-1, -1, 1),
    (-1, -1, -1),
    (-1, 1, -1),
    (1, 1, -1),
    (1, -1, -1),
    (-1, -1, -1),
)


@dataclass(frozen=True)
class Mesh:
    """Vertex positions and, for indexed meshes, triangle indices."""

    vertices: tuple[tuple[float, float, float], ...]
    indices: tuple[int, ...] = ()

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def index_count(self) -> int:
        return len(self.indices)


def sphere_mesh(segments: int = SPHERE_SEGMENTS) -> Mesh:
    """Unit sphere as a latitude/longitude grid of triangles."""
    if segments < 1:
        raise ValueError("a sphere needs at least one segment")
    vertices = []
    for lat in range(segments + 1):
        theta = lat * math.pi / segments
        sin_theta, cos_theta = math.sin(theta), math.cos(theta)
        for lon in range(segments + 1):
            phi = lon * 2 * math.pi / segments
            vertices.append(
                (math.cos(phi) * sin_theta, cos_theta, math.sin(phi) * sin_theta)
            )
    indices = []
    for lat in range(segments):
        for lon in range(segments):
            current = lat * (segments + 1) + lon
            below = current + segments + 1
            indices.extend(
                (current, below, current + 1, current + 1, below, below + 1)
            )
    return Mesh(tuple(vertices), tuple(indices))


def cube_line_strip() -> Mesh:
    """Edges of the cube [-1, 1]^3 as a single line strip."""
    return Mesh(tuple((float(x), float(y), float(z)) for x, y, z in _CUBE_VERTICES))


class Key(IntEnum):
    """Keys the viewer reacts to, with their keyboard codes."""

    SPACE = 32
    A = 65
    C = 67
    D = 68
    E = 69
    F = 70
    Q = 81
    S = 83
    W = 87


@dataclass
class Scene:
    """Camera and transforms for drawing a box of side ``2 * region``."""

    region: Vector3f
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    radius: float = DEFAULT_RADIUS
    pipeline: Pipeline = field(default_factory=Pipeline)
    should_close: bool = False

    def __post_init__(self) -> None:
        camera = self.pipeline.camera
        camera.set_camera(
            Vector3f(0.0, 0.1, -self.region.z * 2 - 1),
            Vector3f(0.0, 0.0, 1.0),
            Vector3f(0.0, 1.0, 0.0),
        )
        camera.set_perspective(_FOV, self.width, self.height, _Z_NEAR, _Z_FAR)
        self.pipeline.object.scale = Vector3f.zero()

    def handle_key(self, key: Key | int) -> None:
        """Move or turn the camera, or request closing; other keys are ignored."""
        try:
            key = Key(key)
        except ValueError:
            return
        camera = self.pipeline.camera
        step = 0.1 * self.region.z
        moves = {
            Key.W: Vector3f(0.0, 0.0, step),
            Key.S: Vector3f(0.0, 0.0, -step),
            Key.D: Vector3f(step, 0.0, 0.0),
            Key.A: Vector3f(-step, 0.0, 0.0),
            Key.SPACE: Vector3f(0.0, step, 0.0),
            Key.C: Vector3f(0.0, -step, 0.0),
        }
        if key is Key.F:
            self.should_close = True
        elif key in moves:
            camera.world_pos = camera.world_pos + moves[key]
        elif key is Key.E:
            camera.target = camera.target + Vector3f(_ROTATION_SPEED, 0.0, 0.0)
        elif key is Key.Q:
            camera.target = camera.target - Vector3f(_ROTATION_SPEED, 0.0, 0.0)

    def cube_transform(self) -> Matrix4f:
        """Transform of the box outline, enlarged by the particle radius."""
        obj = self.pipeline.object
        obj.world_pos = Vector3f.zero()
        obj.rotate = Vector3f.zero()
        obj.scale = Vector3f(
            self.region.x + self.radius,
            self.region.y + self.radius,
            self.region.z + self.radius,
        )
        return self.pipeline.transformation()

    def sphere_transforms(self, frame: Frame) -> list[tuple[Matrix4f, float]]:
        """Transform and mass of every particle, in drawing order."""
        obj = self.pipeline.object
        obj.scale = Vector3f(self.radius, self.radius, self.radius)
        obj.rotate = Vector3f.zero()
        result = []
        for index in depth_order(frame.positions, self.pipeline.camera.world_pos):
            obj.world_pos = frame.positions[index]
            result.append((self.pipeline.transformation(), frame.masses[index]))
        return result