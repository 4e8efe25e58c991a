[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slurmops"
version = "0.2.0"
description = "Building blocks for a Slurm cluster operator: pod and revision control, keyed value stores, annotation parsing and batch helpers."
requires-python = ">=3.10"
dependencies = []
keywords = ["slurm", "operator", "cluster", "pods", "controller", "revisions"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Clustering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["slurmops"]

[tool.pytest.ini_options]
addopts = "-ra"
