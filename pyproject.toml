[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mbsim"
version = "0.1.0"
description = "Host-side model of a small educational board's runtime: pin modes, audio routing, a chunked flash file system, UART and data logging"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "embedded",
    "simulation",
    "gpio",
    "pin-modes",
    "flash-filesystem",
    "uart",
    "data-logging",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems",
    "Topic :: Education",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mbsim-antigravity = "mbsim.antigravity:main"

[tool.hatch.build.targets.wheel]
packages = ["mbsim"]

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
