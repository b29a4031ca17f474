[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hedgemaze"
version = "1.0.0"
description = "A timed hedge-maze game with a reader and renderer for Mappy FMP tile maps"
requires-python = ">=3.10"
keywords = ["game", "maze", "tilemap", "mappy", "fmp", "pygame"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: MacOS X",
    "Environment :: Win32 (MS Windows)",
    "Environment :: X11 Applications",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Puzzle Games",
]
dependencies = [
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
hedgemaze = "hedgemaze.game:main"

[tool.hatch.build.targets.wheel]
packages = ["hedgemaze"]

[tool.pytest.ini_options]
addopts = "-ra"
