import math

import pytest

from mdcells.datafiles import Frame
from mdcells.distance import depth_order
from mdcells.math3d import Vector3f
from mdcells.scene import Key, Scene, cube_line_strip, sphere_mesh
from mdcells.transforms import Camera, ObjectTransform, Pipeline


def make_scene(size=15.0):
    return Scene(Vector3f(size, size, size))


def test_sphere_mesh_sizes():
    mesh = sphere_mesh(4)
    assert mesh.vertex_count == 25
    assert mesh.index_count == 96


@pytest.mark.parametrize("segments", [1, 3, 4, 8])
def test_sphere_vertices_on_unit_sphere(segments):
    mesh = sphere_mesh(segments)
    assert mesh.vertex_count == (segments + 1) ** 2
    assert mesh.index_count == segments * segments * 6
    for x, y, z in mesh.vertices:
        assert math.sqrt(x * x + y * y + z * z) == pytest.approx(1.0)
    assert all(0 <= i < mesh.vertex_count for i in mesh.indices)


def test_sphere_poles():
    mesh = sphere_mesh(4)
    assert mesh.vertices[0] == pytest.approx((0.0, 1.0, 0.0))
    assert mesh.vertices[-1][1] == pytest.approx(-1.0)


def test_sphere_needs_segments():
    with pytest.raises(ValueError):
        sphere_mesh(0)


def test_cube_line_strip():
    mesh = cube_line_strip()
    assert mesh.vertex_count == 16
    assert mesh.indices == ()
    assert mesh.vertices[0] == (-1.0, -1.0, 1.0)
    assert all(abs(c) == 1.0 for v in mesh.vertices for c in v)


def test_initial_camera():
    scene = make_scene()
    cam = scene.pipeline.camera
    assert cam.world_pos == Vector3f(0.0, 0.1, -31.0)
    assert cam.target == Vector3f(0.0, 0.0, 1.0)
    assert cam.up == Vector3f(0.0, 1.0, 0.0)
    assert cam.projection.width == scene.width
    assert scene.should_close is False


@pytest.mark.parametrize("forward,back", [(Key.W, Key.S), (Key.D, Key.A), (Key.SPACE, Key.C)])
def test_movement_round_trip(forward, back):
    scene = make_scene()
    start = scene.pipeline.camera.world_pos
    scene.handle_key(forward)
    moved = scene.pipeline.camera.world_pos
    assert moved.distance(start) == pytest.approx(0.1 * scene.region.z)
    scene.handle_key(back)
    end = scene.pipeline.camera.world_pos
    assert end.distance(start) == pytest.approx(0.0, abs=1e-12)


def test_w_moves_forward_along_z():
    scene = make_scene()
    z0 = scene.pipeline.camera.world_pos.z
    scene.handle_key(Key.W)
    assert scene.pipeline.camera.world_pos.z > z0


def test_rotation_keys_round_trip():
    scene = make_scene()
    scene.handle_key(Key.E)
    assert scene.pipeline.camera.target.x == pytest.approx(0.075)
    scene.handle_key(Key.Q)
    assert scene.pipeline.camera.target.x == pytest.approx(0.0)


def test_f_requests_close():
    scene = make_scene()
    scene.handle_key(int(Key.F))
    assert scene.should_close is True


def test_unknown_key_ignored():
    scene = make_scene()
    before = (scene.pipeline.camera.world_pos, scene.pipeline.camera.target)
    scene.handle_key(999)
    assert (scene.pipeline.camera.world_pos, scene.pipeline.camera.target) == before
    assert scene.should_close is False


def test_cube_transform_scale():
    scene = make_scene()
    matrix = scene.cube_transform()
    obj = scene.pipeline.object
    assert obj.scale.x == pytest.approx(scene.region.x + scene.radius)
    assert obj.world_pos == Vector3f.zero()
    assert matrix == scene.pipeline.transformation()


def test_sphere_transforms_match_pipeline():
    scene = make_scene()
    pos = Vector3f(1.0, -2.0, 3.0)
    frame = Frame([0.7], [pos])
    ((matrix, mass),) = scene.sphere_transforms(frame)
    assert mass == 0.7
    cam = scene.pipeline.camera
    reference = Pipeline(
        Camera(cam.world_pos, cam.target, cam.up, cam.projection),
        ObjectTransform(
            scale=Vector3f(scene.radius, scene.radius, scene.radius), world_pos=pos
        ),
    )
    assert matrix == reference.transformation()


def test_sphere_transforms_order_and_masses():
    scene = make_scene()
    positions = [
        Vector3f(0.0, 0.0, 10.0),
        Vector3f(0.0, 0.0, -20.0),
        Vector3f(5.0, 5.0, 0.0),
        Vector3f(-3.0, 1.0, -5.0),
    ]
    masses = [0.5, 0.6, 0.7, 0.8]
    result = scene.sphere_transforms(Frame(masses, positions))
    order = depth_order(positions, scene.pipeline.camera.world_pos)
    assert [m for _, m in result] == [masses[i] for i in order]
    assert sorted(m for _, m in result) == masses


def test_sphere_transforms_empty_frame():
    assert make_scene().sphere_transforms(Frame()) == []