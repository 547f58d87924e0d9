"""A top-down Formula racing game with ghost laps, live standings and split-screen races."""

__version__ = "0.1.0"