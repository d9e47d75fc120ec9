[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "qnetgate"
version = "0.1.0"
description = "D-STAR gateway building blocks: DSVT packets, slow data, routing, echo/voicemail, APRS beacons and Icom ITAP framing"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = [
    "d-star",
    "dstar",
    "ham radio",
    "amateur radio",
    "gateway",
    "dsvt",
    "itap",
    "aprs",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Ham Radio",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["qnetgate"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
