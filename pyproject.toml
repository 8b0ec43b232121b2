[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "formica"
version = "0.1.0"
description = "VWAP calculation, trading signal generation, performance monitoring and a VWAP strategy for OHLCV market data"
requires-python = ">=3.10"
dependencies = []
keywords = ["vwap", "trading", "ohlcv", "finance", "signals", "strategy"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Financial and Insurance Industry",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["formica"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
