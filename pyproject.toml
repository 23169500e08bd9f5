[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "stockcast"
version = "0.1.0"
description = "Technical indicators, AR price forecasts and a genetic trend model for daily stock quotes"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "stocks",
    "technical-analysis",
    "kdj",
    "macd",
    "moving-average",
    "autoregression",
    "genetic-algorithm",
    "forecasting",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
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
    "Topic :: Scientific/Engineering :: Information Analysis",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
stockcast = "stockcast.pipeline:main"

[tool.hatch.build.targets.wheel]
packages = ["stockcast"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
