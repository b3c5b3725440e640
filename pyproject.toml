[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zapkit"
version = "0.1.0"
description = "Building blocks for structured, leveled logging: levels, sinks, buffered writers and stack traces"
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "structured-logging", "log-level", "sink", "buffered-writer", "stacktrace"]
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
    "Topic :: System :: Logging",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
zapkit-readme = "zapkit.readme:main"

[tool.hatch.build.targets.wheel]
packages = ["zapkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
