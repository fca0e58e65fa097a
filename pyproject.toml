[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "composekit"
version = "0.1.0"
description = "Progress rendering, prompts, line-splitting writers and end-to-end test helpers for container compose tooling"
requires-python = ">=3.10"
dependencies = []
keywords = ["compose", "progress", "terminal", "e2e", "testing", "docker"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["composekit"]

[tool.pytest.ini_options]
addopts = "-ra"
