# -----------------------------------------------------------------------------
#  primality.py
#  Miller-Rabin primality test over k random witnesses, evaluated in parallel
# -----------------------------------------------------------------------------

from __future__ import annotations

import operator
import os
import random
import sys
import time
from collections.abc import Callable
from concurrent.futures import ALL_COMPLETED, FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass

import gmpy2
from colorama import Fore, Style

from probprime.fmt import abbr_int, format_duration
from probprime.runtime import CFG
from probprime.runtime import current as _rt_current
from probprime.sampler import random_in_range
from probprime.witness import Decomposition, decompose, evaluate

DEFAULT_WITNESSES = 10
_SMALL_PRIMES = (2, 3)
_MIN_BASE = 2
_QUEUE_DEPTH = 2          # submitted-but-unfinished tasks per worker

RngFactory = Callable[[], random.Random]


class WitnessTaskError(RuntimeError):
    pass


# ---------- Data models -------------------------------------------------------

@dataclass(frozen=True)
class WitnessOutcome:
    base: int
    verdict: bool    # True = base does not prove n composite


@dataclass(frozen=True)
class PrimalityReport:
    n: int
    witnesses: int                              # normalized count
    decomposition: Decomposition | None         # None when no witness ran
    outcomes: tuple[WitnessOutcome, ...]
    elapsed: float                              # seconds
    boundary_verdict: bool | None = None        # set for n <= 3

    @property
    def probably_prime(self) -> bool:
        if self.boundary_verdict is not None:
            return self.boundary_verdict
        return all(o.verdict for o in self.outcomes)

    @property
    def composite_bases(self) -> tuple[int, ...]:
        return tuple(o.base for o in self.outcomes if not o.verdict)


# ---------- Helpers -----------------------------------------------------------

def normalize_witnesses(witnesses: int) -> int:
    k = operator.index(witnesses)
    return k if k > 0 else DEFAULT_WITNESSES


def _default_rng_factory() -> RngFactory:
    """
    Per-task generator source. With BEHAVIOUR.SEED set in the active profile,
    task generators are seeded from one master generator so a run can be
    reproduced; otherwise each task gets an OS-seeded generator.
    """
    seed = CFG("BEHAVIOUR.SEED", None)
    if isinstance(seed, int) and not isinstance(seed, bool):
        master = random.Random(seed)
        return lambda: random.Random(master.getrandbits(64))
    return random.Random


def _resolve_workers(max_workers: int | None, witnesses: int) -> int:
    if max_workers is None:
        max_workers = CFG("BEHAVIOUR.MAX_WORKERS", 0)
    try:
        max_workers = int(max_workers)
    except (TypeError, ValueError):
        max_workers = 0
    if max_workers <= 0:
        max_workers = os.cpu_count() or 1
    return min(max_workers, witnesses)


def _draw_base(n: int, rng: random.Random) -> int:
    hi = n - 2
    if hi == _MIN_BASE:
        # n == 4: the base interval holds a single value
        return _MIN_BASE
    while True:
        a = random_in_range(_MIN_BASE, hi, rng)
        if _MIN_BASE <= a <= hi:
            return a


def _run_witness(n: int, dec: Decomposition, rng: random.Random) -> WitnessOutcome:
    a = _draw_base(n, rng)
    # gmpy2 contexts are thread-local; let powmod run without the GIL here
    with gmpy2.context(allow_release_gil=True):
        verdict = evaluate(n, dec.d, dec.s, a)
    return WitnessOutcome(base=a, verdict=verdict)


def _print_debug_outcome(n: int, i: int, outcome: WitnessOutcome) -> None:
    if outcome.verdict:
        stat = f"{Style.DIM}pass{Style.RESET_ALL}"
    else:
        stat = f"{Fore.RED}{Style.BRIGHT}WITNESS{Style.RESET_ALL}"
    sys.stderr.write(
        f"[debug] n={abbr_int(n)} #{i + 1:<3} {stat}  a={abbr_int(outcome.base)}\n"
    )


def _collect(futures: list[Future]) -> tuple[WitnessOutcome, ...]:
    """Barrier over every task, then surface the first failure in submission order."""
    wait(futures, return_when=ALL_COMPLETED)
    for i, fut in enumerate(futures):
        exc = fut.exception()
        if exc is not None:
            raise WitnessTaskError(f"witness task #{i + 1} of {len(futures)} failed: {exc}") from exc
    return tuple(fut.result() for fut in futures)


# ---------- Main API ----------------------------------------------------------

def check_primality(
    n: int,
    witnesses: int = DEFAULT_WITNESSES,
    *,
    max_workers: int | None = None,
    rng_factory: RngFactory | None = None,
) -> PrimalityReport:
    """
    Run the Miller-Rabin test on n with `witnesses` random bases and return
    the full report.

      * n <= 1 is not prime; n in {2, 3} is prime; neither spawns tasks
      * witnesses <= 0 falls back to DEFAULT_WITNESSES
      * every base is drawn from [2, n-2] with its own generator
      * all tasks run to completion before the verdict is formed
      * a failing task fails the whole call with WitnessTaskError
    """
    n = operator.index(n)
    k = normalize_witnesses(witnesses)
    t0 = time.perf_counter()

    if n <= 1 or n in _SMALL_PRIMES:
        return PrimalityReport(
            n=n,
            witnesses=k,
            decomposition=None,
            outcomes=(),
            elapsed=time.perf_counter() - t0,
            boundary_verdict=n > 1,
        )

    dec = decompose(n)
    factory = rng_factory or _default_rng_factory()
    workers = _resolve_workers(max_workers, k)
    debug = _rt_current().debug

    futures: list[Future] = []
    in_flight: set[Future] = set()
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="witness") as pool:
        for _ in range(k):
            if len(in_flight) >= workers * _QUEUE_DEPTH:
                _, in_flight = wait(in_flight, return_when=FIRST_COMPLETED)
            # each generator is built on this thread and handed to one task
            fut = pool.submit(_run_witness, n, dec, factory())
            futures.append(fut)
            in_flight.add(fut)
        outcomes = _collect(futures)

    elapsed = time.perf_counter() - t0
    if debug:
        for i, outcome in enumerate(outcomes):
            _print_debug_outcome(n, i, outcome)
        sys.stderr.write(
            f"[debug] n-1 = d*2^{dec.s}, {k} witness(es) on {workers} thread(s) in {format_duration(elapsed)}\n"
        )
        sys.stderr.flush()

    return PrimalityReport(
        n=n,
        witnesses=k,
        decomposition=dec,
        outcomes=outcomes,
        elapsed=elapsed,
    )


def is_probably_prime(
    n: int,
    witnesses: int = DEFAULT_WITNESSES,
    *,
    max_workers: int | None = None,
    rng_factory: RngFactory | None = None,
) -> bool:
    """True if no sampled base proves n composite."""
    return check_primality(
        n, witnesses, max_workers=max_workers, rng_factory=rng_factory
    ).probably_prime
