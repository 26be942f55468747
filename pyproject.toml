[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dbuswire"
version = "0.1.0"
description = "Decode and validate D-Bus wire format data"
requires-python = ">=3.10"
dependencies = []
keywords = ["dbus", "d-bus", "wire-format", "unmarshal", "validation", "ipc"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Object Brokering",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dbuswire"]

[tool.pytest.ini_options]
addopts = "-ra"
