[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lightwatch"
version = "0.1.0"
description = "Poll a smart-light service over HTTP and report added, changed and removed lights"
requires-python = ">=3.10"
dependencies = []
keywords = ["smart-home", "lights", "monitoring", "polling", "http"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Home Automation",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
lightwatch = "lightwatch.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["lightwatch"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
