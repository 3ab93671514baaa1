[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "portknock"
version = "1.4.1"
description = "A port-knocking client with saved, optionally password-protected presets"
requires-python = ">=3.11"
keywords = ["port-knocking", "knock", "networking", "firewall", "cli"]
classifiers = [
    "Development Status :: 5 - Production/Stable",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]
dependencies = [
    "cryptography",
    "platformdirs",
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
connection = "portknock.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["portknock"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
