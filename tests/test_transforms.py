import pytest

from mdcells.math3d import Matrix4f, Vector3f
from mdcells.transforms import Camera, ObjectTransform, PerspectiveProjection, Pipeline

FOV, WIDTH, HEIGHT, NEAR, FAR = 60.0, 1280.0, 768.0, 0.5, 1000.0


def make_pipeline():
    pipeline = Pipeline()
    pipeline.camera.set_perspective(FOV, WIDTH, HEIGHT, NEAR, FAR)
    return pipeline


def test_object_transform_defaults():
    obj = ObjectTransform()
    assert obj.scale == Vector3f(1.0, 1.0, 1.0)
    assert obj.world_pos == Vector3f.zero()
    assert obj.rotate == Vector3f.zero()


def test_camera_defaults():
    cam = Camera()
    assert cam.world_pos == Vector3f.zero()
    assert cam.target == Vector3f(0.0, 0.0, 1.0)
    assert cam.up == Vector3f(0.0, 1.0, 0.0)


def test_set_camera_stores_vectors():
    cam = Camera()
    pos, target, up = Vector3f(1.0, 2.0, 3.0), Vector3f(0.0, 0.0, -1.0), Vector3f(1.0, 0.0, 0.0)
    cam.set_camera(pos, target, up)
    assert (cam.world_pos, cam.target, cam.up) == (pos, target, up)


def test_set_perspective_stores_parameters():
    cam = Camera()
    cam.set_perspective(FOV, WIDTH, HEIGHT, NEAR, FAR)
    assert cam.projection == PerspectiveProjection(FOV, WIDTH, HEIGHT, NEAR, FAR)


def test_transformation_without_projection_raises():
    with pytest.raises(ValueError):
        Pipeline().transformation()


def test_default_pipeline_equals_projection():
    result = make_pipeline().transformation()
    expected = Matrix4f.perspective(FOV, WIDTH, HEIGHT, NEAR, FAR)
    assert result.flat() == pytest.approx(expected.flat())


def test_object_at_camera_position_cancels_translation():
    pipeline = make_pipeline()
    pipeline.camera.world_pos = Vector3f(3.0, -1.0, 2.0)
    pipeline.object.world_pos = Vector3f(3.0, -1.0, 2.0)
    expected = Matrix4f.perspective(FOV, WIDTH, HEIGHT, NEAR, FAR)
    assert pipeline.transformation().flat() == pytest.approx(expected.flat())


def test_object_offset_moves_last_column():
    pipeline = make_pipeline()
    pipeline.object.world_pos = Vector3f(2.0, 0.0, 0.0)
    m = pipeline.transformation()
    proj = Matrix4f.perspective(FOV, WIDTH, HEIGHT, NEAR, FAR)
    assert m[0][3] == pytest.approx(proj[0][0] * 2.0)


def test_zero_scale_collapses_linear_part():
    pipeline = make_pipeline()
    pipeline.object.scale = Vector3f.zero()
    m = pipeline.transformation()
    assert all(m[i][j] == 0.0 for i in range(4) for j in range(3))