[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "taotu"
version = "0.1.0"
description = "Building blocks for reactor-style TCP networking: poller, eventers, acceptor, I/O buffer, timers, load balancer and length-prefixed framing"
requires-python = ">=3.10"
dependencies = []
keywords = ["tcp", "reactor", "epoll", "poll", "networking", "buffer", "timer", "framing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-timeout",
]

[tool.hatch.build.targets.wheel]
packages = ["taotu"]

[tool.hatch.build.targets.sdist]
include = ["taotu", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
