[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "modelrouter"
version = "0.1.0"
description = "Routing strategies, health tracking, latency averaging and retry timing for pools of language model backends"
requires-python = ">=3.10"
dependencies = []
keywords = ["routing", "load-balancing", "llm", "retry", "health-check", "round-robin", "latency"]
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
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["modelrouter"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
