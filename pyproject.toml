[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "rtuslave"
version = "0.1.0"
description = "A Modbus RTU slave protocol stack with an in-memory register bank"
requires-python = ">=3.10"
dependencies = []
keywords = ["modbus", "rtu", "slave", "crc16", "serial", "embedded"]
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
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.setuptools.packages.find]
include = ["rtuslave*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
