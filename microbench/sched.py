"""CPU placement of benchmark processes, driven by LMBENCH_SCHED."""

from __future__ import annotations

import enum
import os
import re
from typing import Mapping, Optional


class SchedulePolicy(enum.Enum):
    """Placement policies accepted in the LMBENCH_SCHED variable."""

    DEFAULT = "DEFAULT"
    SINGLE = "SINGLE"
    BALANCED = "BALANCED"
    BALANCED_SPREAD = "BALANCED_SPREAD"
    UNIQUE = "UNIQUE"
    UNIQUE_SPREAD = "UNIQUE_SPREAD"
    CUSTOM = "CUSTOM"
    CUSTOM_UNIQUE = "CUSTOM_UNIQUE"


def reverse_bits(cpu: int, ncpus: int) -> int:
    """Reverse the low bits of ``cpu`` so that neighbouring ids land far apart."""
    nbits = 1
    i = (ncpus - 1) >> 1
    while i > 0:
        i >>= 1
        nbits += 1
    result = 0
    for bit in range(nbits):
        if cpu & (1 << bit):
            result |= 1 << (nbits - bit - 1)
    return result


def parse_custom(spec: str) -> list[int]:
    """Return the CPU ids listed in a custom schedule string."""
    return [int(run) for run in re.findall(r"\d+", spec)]


def _custom(spec: str, index: int) -> int:
    values = parse_custom(spec)
    if not values:
        return 0
    return values[index % len(values)]


def cpu_count() -> int:
    """Return the number of online processors."""
    try:
        count = os.sysconf("SC_NPROCESSORS_ONLN")
    except (AttributeError, ValueError, OSError):
        count = os.cpu_count() or 1
    return count if count and count > 0 else 1


def pin(cpu: int) -> int:
    """Bind the current process to the ``cpu``-th allowed processor.

    Returns the id of the processor chosen.
    """
    get_affinity = getattr(os, "sched_getaffinity", None)
    set_affinity = getattr(os, "sched_setaffinity", None)
    if get_affinity is None or set_affinity is None:
        raise OSError("CPU pinning is not supported on this platform")
    allowed = sorted(get_affinity(0))
    if not allowed:
        raise OSError("no processors are available to this process")
    chosen = allowed[cpu % len(allowed)]
    set_affinity(0, {chosen})
    return chosen


def choose_cpu(
    spec: Optional[str],
    childno: int,
    benchproc: int,
    nbenchprocs: int,
    ncpus: int,
) -> Optional[int]:
    """Return the processor a process should run on, or None to leave it alone.

    ``childno`` is the benchmark process id, ``benchproc`` the id of a helper
    process within it (0 for the benchmark process itself) and
    ``nbenchprocs`` the number of helpers each benchmark process creates.
    """
    if spec is None:
        return None
    upper = spec.upper()
    unique_id = childno * (nbenchprocs + 1) + benchproc

    if upper == SchedulePolicy.DEFAULT.value:
        return None
    if upper == SchedulePolicy.SINGLE.value:
        cpu = 0
    elif upper == SchedulePolicy.BALANCED.value:
        cpu = childno
    elif upper == SchedulePolicy.BALANCED_SPREAD.value:
        cpu = reverse_bits(childno, ncpus)
    elif upper == SchedulePolicy.UNIQUE.value:
        cpu = unique_id
    elif upper == SchedulePolicy.UNIQUE_SPREAD.value:
        cpu = reverse_bits(unique_id, ncpus)
    elif upper.startswith(SchedulePolicy.CUSTOM.value + " "):
        cpu = _custom(spec[len(SchedulePolicy.CUSTOM.value):], childno)
    elif upper.startswith(SchedulePolicy.CUSTOM_UNIQUE.value + " "):
        cpu = _custom(spec[len(SchedulePolicy.CUSTOM_UNIQUE.value):], unique_id)
    else:
        return None
    return cpu % ncpus


def handle_scheduler(
    childno: int,
    benchproc: int,
    nbenchprocs: int,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[int]:
    """Place the current process according to LMBENCH_SCHED.

    Returns the processor pinned to, or None when placement is left to the OS.
    """
    env = os.environ if environ is None else environ
    ncpus = cpu_count()
    cpu = choose_cpu(env.get("LMBENCH_SCHED"), childno, benchproc, nbenchprocs, ncpus)
    if cpu is None:
        return None
    return pin(cpu)