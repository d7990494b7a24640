[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "beeframe"
version = "0.1.0"
description = "Define binary serial-frame protocols, decode live or recorded streams, and aggregate one-second and ten-second values"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = [
    "serial",
    "uart",
    "binary protocol",
    "frame parser",
    "checksum",
    "crc16",
    "telemetry",
    "data logging",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
    "Topic :: Communications",
    "Topic :: Terminals :: Serial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
beeframe = "beeframe.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["beeframe"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
