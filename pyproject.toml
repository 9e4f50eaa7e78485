[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "trow"
version = "0.1.0"
description = "Building blocks for a cluster container registry: digests, manifests, admission validation, metrics and configuration"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "container",
    "registry",
    "docker",
    "oci",
    "manifest",
    "digest",
    "kubernetes",
    "admission",
]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: System :: Software Distribution",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
trow = "trow.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["trow"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
