[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "maptaws"
version = "1.0.0"
description = "Lookups and planning helpers for provisioning AWS test machines: regions, zones, AMIs, spot choices, Mac dedicated hosts, network layouts and schedules"
requires-python = ">=3.10"
dependencies = []
keywords = ["aws", "ec2", "spot", "provisioning", "dedicated-host", "infrastructure"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
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

[tool.hatch.build.targets.wheel]
packages = ["maptaws"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
