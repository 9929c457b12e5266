[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ft8radio"
version = "0.1.0"
description = "Digital filters and a SpyServer IQ client for software-defined radio receivers"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["sdr", "dsp", "fir", "iir", "filter", "spyserver", "iq", "ham-radio"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Communications :: Ham Radio",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["ft8radio"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
