import io

import pytest

from mdcells.datafiles import Frame, RunParams, iter_frames, read_frame, read_params
from mdcells.math3d import Vector3f
from mdcells.modeling import Molecule, write_params, write_positions


def molecules(masses):
    return [
        Molecule(p=Vector3f(m, m + 1.0, m + 2.0), m=m) for m in masses
    ]


def encoded(*frames):
    stream = io.BytesIO()
    for frame in frames:
        write_positions(stream, frame)
    stream.seek(0)
    return stream


def test_read_params_round_trip(tmp_path):
    path = tmp_path / "params.bin"
    with open(path, "wb") as f:
        write_params(f, 8, 1012, 15.0)
    assert read_params(path) == RunParams(8, 1012, 15.0)


def test_read_params_truncated(tmp_path):
    path = tmp_path / "params.bin"
    path.write_bytes(b"\x08\x00\x00\x00")
    with pytest.raises(ValueError):
        read_params(path)


def test_read_frame_joins_streams_in_order():
    first = encoded(molecules([0.5, 0.75]))
    second = encoded(molecules([0.9]))
    frame = read_frame([first, second])
    assert frame.masses == [0.5, 0.75, 0.9]
    assert frame.positions == [
        Vector3f(0.5, 1.5, 2.5),
        Vector3f(0.75, 1.75, 2.75),
        Vector3f(0.9, 1.9, 2.9),
    ]
    assert len(frame) == 3


def test_read_frame_returns_none_at_end():
    stream = encoded(molecules([0.6]))
    assert read_frame([stream]) is not None
    assert read_frame([stream]) is None


def test_read_frame_empty_frame():
    frame = read_frame([encoded([])])
    assert frame == Frame([], [])


def test_read_frame_truncated():
    data = encoded(molecules([0.6, 0.7])).getvalue()
    with pytest.raises(ValueError):
        read_frame([io.BytesIO(data[:-5])])


def test_iter_frames_reads_all_frames(tmp_path):
    with open(tmp_path / "params.bin", "wb") as f:
        write_params(f, 2, 3, 15.0)
    (tmp_path / "result0.bin").write_bytes(
        encoded(molecules([0.5, 0.6]), molecules([0.7, 0.8])).getvalue()
    )
    (tmp_path / "result1.bin").write_bytes(
        encoded(molecules([0.55]), molecules([0.65])).getvalue()
    )
    frames = list(iter_frames(tmp_path))
    assert [frame.masses for frame in frames] == [[0.5, 0.6, 0.55], [0.7, 0.8, 0.65]]
    assert frames[1].positions[2] == Vector3f(0.65, 1.65, 2.65)