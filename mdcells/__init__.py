"""Cell-decomposed Lennard-Jones molecular dynamics, output readers and scene geometry."""

__version__ = "0.1.0"