[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "formulac"
version = "0.1.0"
description = "A top-down Formula racing game with ghost laps, live standings and split-screen races"
requires-python = ">=3.10"
dependencies = [
    "pygame",
]
keywords = ["game", "racing", "formula", "pygame", "split-screen", "ghost-car"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: X11 Applications",
    "Environment :: MacOS X",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Simulation",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
formulac = "formulac.app:main"

[tool.hatch.build.targets.wheel]
packages = ["formulac"]

[tool.pytest.ini_options]
addopts = "-ra"
