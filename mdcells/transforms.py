"""Object placement, camera and the combined world-view-projection transform."""

from __future__ import annotations

from dataclasses import dataclass, field

from mdcells.math3d import Matrix4f, Vector3f


@dataclass
class ObjectTransform:
    """Scale, position and rotation (degrees) of a drawn object."""

    scale: Vector3f = field(default_factory=lambda: Vector3f(1.0, 1.0, 1.0))
    world_pos: Vector3f = field(default_factory=Vector3f.zero)
    rotate: Vector3f = field(default_factory=Vector3f.zero)


@dataclass(frozen=True)
class PerspectiveProjection:
    """Perspective parameters; ``fov`` is in degrees."""

    fov: float
    width: float
    height: float
    z_near: float
    z_far: float

    def matrix(self) -> Matrix4f:
        return Matrix4f.perspective(
            self.fov, self.width, self.height, self.z_near, self.z_far
        )


@dataclass
class Camera:
    """Viewer position, viewing direction and projection."""

    world_pos: Vector3f = field(default_factory=Vector3f.zero)
    target: Vector3f = field(default_factory=lambda: Vector3f(0.0, 0.0, 1.0))
    up: Vector3f = field(default_factory=lambda: Vector3f(0.0, 1.0, 0.0))
    projection: PerspectiveProjection | None = None

    def set_camera(self, world_pos: Vector3f, target: Vector3f, up: Vector3f) -> None:
        self.world_pos = world_pos
        self.target = target
        self.up = up

    def set_perspective(
        self, fov: float, width: float, height: float, z_near: float, z_far: float
    ) -> None:
        self.projection = PerspectiveProjection(fov, width, height, z_near, z_far)


@dataclass
class Pipeline:
    """Combines an object transform with a camera into a single matrix."""

    camera: Camera = field(default_factory=Camera)
    object: ObjectTransform = field(default_factory=ObjectTransform)

    def transformation(self) -> Matrix4f:
        """Projection @ camera rotation @ camera translation @ translation @ rotation @ scale."""
        if self.camera.projection is None:
            raise ValueError("camera has no perspective projection set")
        obj = self.object
        cam = self.camera
        return (
            cam.projection.matrix()
            @ Matrix4f.camera(cam.target, cam.up)
            @ Matrix4f.translation(-cam.world_pos.x, -cam.world_pos.y, -cam.world_pos.z)
            @ Matrix4f.translation(obj.world_pos.x, obj.world_pos.y, obj.world_pos.z)
            @ Matrix4f.rotation(obj.rotate.x, obj.rotate.y, obj.rotate.z)
            @ Matrix4f.scaling(obj.scale.x, obj.scale.y, obj.scale.z)
        )