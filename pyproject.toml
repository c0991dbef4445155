[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "microbench"
version = "0.1.0"
description = "POSIX operating-system micro-benchmarks (IPC, syscalls, processes, signals, sleeps, page faults), pointer-chain layouts and result statistics"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "benchmark",
    "latency",
    "microbenchmark",
    "ipc",
    "syscall",
    "memory",
    "statistics",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["microbench"]

[tool.pytest.ini_options]
addopts = "-ra"
