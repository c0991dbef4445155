"""POSIX operating-system micro-benchmarks, pointer-chain layouts and result statistics."""

__version__ = "0.1.0"