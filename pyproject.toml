[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mdcells"
version = "0.1.0"
description = "Lennard-Jones molecular dynamics on a periodic box split into a Cartesian grid of cells, with output readers and render-ready scene geometry"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "molecular dynamics",
    "lennard-jones",
    "leapfrog",
    "domain decomposition",
    "simulation",
    "n-body",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mdcells-run = "mdcells.domain:main"

[tool.hatch.build.targets.wheel]
packages = ["mdcells"]

[tool.pytest.ini_options]
addopts = "-ra"
