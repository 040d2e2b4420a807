# mdcells

A small molecular-dynamics package. Particles interact through a smoothed
Lennard-Jones potential inside a periodic cubic box and are advanced with a
leapfrog scheme. The box is split into a Cartesian grid of cells. Each cell
advances its own molecules and hands the ones that leave it to the
neighbouring cell. A run writes binary position frames for each cell and a
text log of system properties. These can be read back and turned into
geometry ready for drawing.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Running a simulation

```
mdcells-run
```

Options:

- `-n`, `--processes`: number of cells in the grid (default 8). The number
  is split into three balanced factors, and each factor must be at least 2.
  Otherwise the command prints an error and exits with status 1.
- `-o`, `--output`: directory for the output files (default `data`).
- `--steps`: number of steps to run. The default is the parameter set's
  step limit, which is 300000 steps.

The command prints the number of molecules, the grid shape and each cell's
molecule count. When the run finishes it prints timings. It writes these
files to the output directory:

- `params.bin`: the number of cells, the number of molecules and the box
  size, stored as little-endian int32, int32, float64.
- `result<N>.bin`: one file per cell. Every 100 steps it gets a frame made of
  the molecule count, then all masses, then all positions.
- `system.txt`: one line per averaging interval of 5000 steps. Each line holds
  the step, the time, the velocity sum divided by the molecule count, and the
  averaged total energy, kinetic energy and pressure, each followed by its
  spread.

All cells run one after another in a single Python process. The exchange
between neighbours goes through in-memory mailboxes.

## Using the library

- `mdcells.math3d`: `Vector3f` and `Vector3i`, which support `+`, `-`, `*`,
  `/` and unary minus, plus `dot`, `cross`, `length`, `distance` and
  `normalized`. `Matrix4f` supports `@` and `flat()` and has the constructors
  `identity`, `scaling`, `rotation`, `translation`, `camera` and
  `perspective`. The module also has `to_radian`, `to_degree` and
  `vector_normalize`.
- `mdcells.modeling`: the physics. It has `SimulationParams.for_dims`, and a
  `Cell` with `setup`, `calculate_forces`, `leapfrog_step`, `single_step`,
  `velocity_sums` and `find_escapees`. Running averages are kept in `Prop`
  and `Properties`. Binary output is written with `write_positions` and
  `write_params`, and log lines are produced by `format_system_line`.
- `mdcells.domain`: the grid of cells. It has `dims_create`, `cart_coords`,
  `cart_rank`, `neighbours` and `partition_range`. `Domain` builds every
  cell. Its `step` advances all cells and exchanges escaping molecules, and
  its `run` writes the output files and returns the timings. `main` is the
  `mdcells-run` command.
- `mdcells.datafiles`: reads a run's output back. `read_params` returns a
  `RunParams`. `read_frame` and `iter_frames` yield `Frame` objects that hold
  masses and positions.
- `mdcells.distance`: `sort_distances` and `depth_order`, which order
  particles by their distance from a viewpoint.
- `mdcells.transforms`: `ObjectTransform`, `Camera`, `PerspectiveProjection`
  and `Pipeline`. `Pipeline.transformation()` combines them into a single
  matrix.
- `mdcells.scene`: the meshes `sphere_mesh` and `cube_line_strip`, and a
  `Scene` that holds a camera. `handle_key` reacts to the `Key` values: W, S,
  A, D, Space and C move the camera, E and Q turn it, and F sets
  `should_close`. `cube_transform` gives the box matrix. `sphere_transforms`
  gives each particle's matrix and mass, ordered by distance from the camera.

Example:

```python
from mdcells.math3d import Matrix4f, Vector3f

a = Vector3f(1.0, 0.0, 0.0)
b = Vector3f(0.0, 1.0, 0.0)
print(a.cross(b))            # 0.00, 0.00, 1.00
print(a.distance(b))         # 1.414...

m = Matrix4f.translation(1.0, 2.0, 3.0) @ Matrix4f.scaling(2.0, 2.0, 2.0)
print(m.flat())
```

Reading frames from a finished run:

```python
from mdcells.datafiles import iter_frames
from mdcells.math3d import Vector3f
from mdcells.scene import Scene

scene = Scene(region=Vector3f(15.0, 15.0, 15.0))
for frame in iter_frames("data"):
    for matrix, mass in scene.sphere_transforms(frame):
        ...
```

## What it does not do

The package opens no window and does no drawing. `mdcells.scene` produces
meshes, matrices and camera state, and these must be handed to a graphics
library of your choice.