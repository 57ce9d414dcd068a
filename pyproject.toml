[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "confbus"
version = "0.1.0"
description = "Per-application JSON configuration served on an in-process message bus, with change notifications"
requires-python = ">=3.10"
dependencies = []
keywords = ["configuration", "json", "bus", "settings", "service"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
confbus-service = "confbus.service:main"
confbus-app = "confbus.application:main"

[tool.hatch.build.targets.wheel]
packages = ["confbus"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
