[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xfscarve"
version = "0.1.0"
description = "Read XFS superblocks, allocation group headers and free-space B+tree leaves from raw images, plus a small JSON serializer"
requires-python = ">=3.10"
dependencies = []
keywords = ["xfs", "filesystem", "forensics", "carving", "recovery", "json"]
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
    "Topic :: System :: Recovery Tools",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["xfscarve"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
