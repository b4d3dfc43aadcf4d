[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wasmhost"
version = "0.1.0"
description = "Host-side support for a WebAssembly interpreter: signatures, code pages, libc, tracer and WASI host functions"
requires-python = ">=3.10"
dependencies = []
keywords = ["webassembly", "wasm", "wasi", "interpreter", "host functions"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Interpreters",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wasmhost"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
