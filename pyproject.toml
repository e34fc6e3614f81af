[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "onejoin"
version = "0.1.0"
description = "Similarity join and DBSCAN clustering of strings under edit distance, using CGK embedding and locality-sensitive hashing"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "edit distance",
    "similarity join",
    "locality-sensitive hashing",
    "CGK embedding",
    "DBSCAN",
    "DNA",
    "clustering",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
onejoin = "onejoin.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["onejoin"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
