[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "branchsim"
version = "0.1.0"
description = "Trace-driven simulator of a BTB with two-bit branch predictors"
requires-python = ">=3.10"
dependencies = []
keywords = ["branch prediction", "btb", "simulator", "computer architecture", "trace"]
classifiers = [
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Topic :: System :: Emulators",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
branchsim = "branchsim.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["branchsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
