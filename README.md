# microbench

Small, focused operating-system benchmarks for POSIX systems, with helpers to
summarise the measurements. Each benchmark is a plain object or function that
performs a given number of iterations of one operation and returns a count or
value from that work, so you time it with whatever harness you like.

## Benchmarks

| Module | What it does per iteration |
| --- | --- |
| `microbench.pipe_latency` | `PipeLatency`: one-byte round trip over two pipes to a forked echo child |
| `microbench.unix_latency` | `UnixLatency`: `msize`-byte round trip over an `AF_UNIX` socket pair to a forked child |
| `microbench.unix_connect` | `UnixConnectLatency`: connect to and close a UNIX-domain socket; `serve` and `shutdown_server` run and stop the server |
| `microbench.tcp_latency` | `TcpLatency`: `msize`-byte round trip to a TCP echo server; `serve`, `serve_connection`, `shutdown_server` |
| `microbench.udp_latency` | `UdpLatency`: sequence-numbered datagram round trip; `serve`, `shutdown_server` |
| `microbench.sem_latency` | `SemaphoreLatency`: hand-off between two processes through two semaphores |
| `microbench.select_latency` | `SelectLatency`: zero-timeout `select` for writing over many duplicates of a file or TCP descriptor |
| `microbench.proc_latency` | `do_procedure`, `do_fork`, `do_forkexec`, `do_shell` |
| `microbench.pmake` | `ParallelMake`: fork `jobs` workers that each chase a pointer a fixed number of times, and wait for them |
| `microbench.signal_latency` | `do_install`, `do_send`, `do_catch`, and `subtract_overhead` to remove the send cost from the catch cost |
| `microbench.syscall_latency` | `SyscallBench`: `null` (getppid), `read` (/dev/zero), `write` (/dev/null), `stat`, `fstat`, `open_close` |
| `microbench.sleep_latency` | `SleepLatency` with a `SleepMethod` of `usleep`, `nanosleep`, `select` or `itimer`; `set_realtime` |
| `microbench.rand_latency` | `bench_random`, `bench_randint`, `bench_getrandbits` |
| `microbench.pagefault` | `PagefaultBench`: read one byte from every page of a mapped file in random order, then remap; `run_mmap` only remaps |

Classes that hold resources are context managers, so setup and cleanup stay
outside the timed region.

```python
import time
from microbench.pipe_latency import PipeLatency

with PipeLatency() as bench:
    iterations = 10_000
    t0 = time.perf_counter()
    bench.run(iterations)
    elapsed = time.perf_counter() - t0

print(f"Pipe latency: {elapsed / iterations * 1e6:.4f} microseconds")
```

```python
import time
from microbench.syscall_latency import SyscallBench

with SyscallBench("/etc/hosts") as bench:
    t0 = time.perf_counter()
    bench.stat(50_000)
    print((time.perf_counter() - t0) / 50_000 * 1e6, "us per stat")
```

A TCP echo server and client in one process:

```python
import threading
from microbench.tcp import SockOpt, sockport, tcp_server
from microbench.tcp_latency import TcpLatency, serve, shutdown_server

listener = tcp_server(0, SockOpt.REUSE)
port = sockport(listener)
server = threading.Thread(target=serve, args=(listener,))
server.start()

with TcpLatency("localhost", port, msize=64) as bench:
    bench.run(1000)

shutdown_server("localhost", port)
server.join()
```

## Supporting modules

* `microbench.stats` — `median`, `mean`, `minimum`, `maximum`, `variance`,
  `moment`, `stderr`, `skew`, `kurtosis`, `bootstrap_stderr` (200 resamples)
  and `regression`, a weighted or unweighted straight-line fit returning a
  `Regression` with `a`, `b`, `sig_a`, `sig_b` and `chi2`. Integer data give
  truncated integer means and medians.
* `microbench.debug` — `Sample` (microseconds `u` over `n` iterations),
  `percent_point`, `format_results`, `bw_quartile`, `nano_quartile`, and
  `chain_offsets` / `check_chain` for pointer chains held as address maps.
* `microbench.memory` — `MemState` and the layouts `stride_initialize`,
  `thrash_initialize`, `mem_initialize`, `line_initialize`, `tlb_initialize`
  (plus `base_initialize` and `words_initialize`), with `walk` and
  `chain_length` to follow a chain. Chains are modelled as maps from byte
  offsets to the offsets they point at.
* `microbench.sched` — CPU placement from the `LMBENCH_SCHED` environment
  variable (`DEFAULT`, `SINGLE`, `BALANCED`, `BALANCED_SPREAD`, `UNIQUE`,
  `UNIQUE_SPREAD`, `CUSTOM <ids>`, `CUSTOM_UNIQUE <ids>`), through
  `handle_scheduler`, `choose_cpu`, `reverse_bits`, `parse_custom`,
  `cpu_count` and `pin`. Pinning uses the scheduler-affinity interface and
  raises `OSError` where it is missing.
* `microbench.tcp` — `tcp_server`, `tcp_accept`, `tcp_connect` (retries
  refused or reset connections), `sock_optimize` with `SockOpt` flags, and
  `sockport`.

```python
from microbench import stats

samples = [12.1, 11.8, 12.4, 12.0, 13.9]
print(stats.median(samples), stats.mean(samples), stats.stderr(samples))

fit = stats.regression([1, 2, 3, 4], [2.1, 3.9, 6.2, 7.8], None)
print(fit.a, fit.b)
```

## What it does not do

* There are no command-line programs; everything is called from Python.
* There is no timing harness: the package does not repeat runs, pick
  iteration counts, run benchmarks in parallel or print reports. Time the
  `run` methods yourself and pass the figures to `microbench.stats` or
  `microbench.debug`.
* `microbench.memory` builds and checks pointer-chain layouts; it does not
  allocate real memory or measure memory latency, line size or parallelism.
* There is no RPC latency benchmark and no protection-fault signal benchmark.

## Requirements

Python 3.10 or later on a POSIX system. No third-party packages. Several
benchmarks fork child processes, open sockets on the loopback interface or
memory-map files.