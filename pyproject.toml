[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "decafc"
version = "0.1.0"
description = "Back end of a Decaf compiler: symbol tables, ILOC code, register allocation and Y86 output"
requires-python = ">=3.10"
dependencies = []
keywords = ["compiler", "decaf", "iloc", "register-allocation", "y86"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["decafc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
