# tests/test_primality.py
"""
Primality orchestrator: verdicts, boundary handling, witness-count
normalization, task ownership of generators, barrier semantics and
concurrent callers.

Run: pytest -v
"""

from __future__ import annotations

import random
import threading
from concurrent.futures import ThreadPoolExecutor

import gmpy2
import pytest
from sympy import isprime, nextprime

import probprime.primality as primality
from probprime.primality import (
    DEFAULT_WITNESSES,
    WitnessTaskError,
    check_primality,
    is_probably_prime,
)
from probprime.runtime import APPLY, current

# ---------- helpers -----------------------------------------------------------

M13, M17, M19, M61, M127 = (2**p - 1 for p in (13, 17, 19, 61, 127))


class CountingFactory:
    """rng_factory that remembers every generator it handed out."""

    def __init__(self, seed: int = 1):
        self.master = random.Random(seed)
        self.made: list[random.Random] = []

    def __call__(self) -> random.Random:
        rng = random.Random(self.master.getrandbits(64))
        self.made.append(rng)
        return rng


class ThreadTrackingRandom(random.Random):
    """Generator that records which threads drew bytes from it."""

    def __init__(self, seed):
        super().__init__(seed)
        self.threads: set[int] = set()

    def randbytes(self, n):
        self.threads.add(threading.get_ident())
        return super().randbytes(n)


def _forbid_sampling(monkeypatch):
    def _boom(*args, **kwargs):
        raise AssertionError("sampler must not be called")
    monkeypatch.setattr(primality, "random_in_range", _boom)


# ---------- verdicts ----------------------------------------------------------

PRIMES = [2, 3, 5, 7, 17, 97, 7919, M13, M17, M19, M61, M127]
PRIME_IDS = ["2", "3", "5", "7", "17", "97", "7919", "M13", "M17", "M19", "M61", "M127"]


@pytest.mark.parametrize("n", PRIMES, ids=PRIME_IDS)
def test_primes_are_probably_prime(n):
    assert is_probably_prime(n, 10) is True


@pytest.mark.parametrize("k", [1, 2, 5, 10])
@pytest.mark.parametrize("n", [4, 15])
def test_small_composites_for_any_k(n, k):
    # 4 has the single base 2 and 15 has no strong liars in [2, 13]
    for _ in range(5):
        assert is_probably_prime(n, k) is False


@pytest.mark.parametrize("n", [341, 561, 1105, 2047, 41041, 3215031751, 2**67 - 1])
def test_composites_are_detected(n):
    assert is_probably_prime(n, 10) is False


def test_semiprime_of_two_large_primes():
    p = nextprime(10**12)
    q = nextprime(p)
    assert is_probably_prime(p * q, 10) is False
    assert is_probably_prime(q, 10) is True


@pytest.mark.parametrize("n", [1, 0, -1, -2, -7, -(2**127 - 1)])
@pytest.mark.parametrize("k", [1, 10, 0, -3])
def test_non_positive_and_one_are_not_prime(n, k):
    assert is_probably_prime(n, k) is False


def test_agrees_with_sympy_below_600():
    for n in range(-5, 600):
        assert is_probably_prime(n, 20) == isprime(n), n


def test_accepts_gmpy2_integers():
    assert is_probably_prime(gmpy2.mpz(M61)) is True


@pytest.mark.parametrize("bad", [7.0, "7", None])
def test_non_integral_candidate_raises(bad):
    with pytest.raises(TypeError):
        is_probably_prime(bad)


def test_non_integral_witness_count_raises():
    with pytest.raises(TypeError):
        is_probably_prime(97, "3")


# ---------- boundaries --------------------------------------------------------

@pytest.mark.parametrize("n", [2, 3])
@pytest.mark.parametrize("k", [1, 3, 10])
def test_two_and_three_never_sample(monkeypatch, n, k):
    _forbid_sampling(monkeypatch)
    report = check_primality(n, k)
    assert report.probably_prime is True
    assert report.outcomes == ()
    assert report.decomposition is None


def test_four_uses_its_only_base_without_sampling(monkeypatch):
    _forbid_sampling(monkeypatch)
    report = check_primality(4, 6)
    assert report.probably_prime is False
    assert [o.base for o in report.outcomes] == [2] * 6
    assert report.composite_bases == (2,) * 6


def test_bases_stay_within_two_and_n_minus_two():
    report = check_primality(5, 50)
    assert {o.base for o in report.outcomes} <= {2, 3}
    report = check_primality(M61, 50)
    assert all(2 <= o.base <= M61 - 2 for o in report.outcomes)


# ---------- witness count -----------------------------------------------------

@pytest.mark.parametrize("k", [0, -5])
def test_non_positive_witness_count_means_default(k):
    factory = CountingFactory()
    report = check_primality(M19, k, rng_factory=factory)
    assert report.witnesses == DEFAULT_WITNESSES == 10
    assert len(report.outcomes) == 10
    assert len(factory.made) == 10
    assert report.probably_prime is True


@pytest.mark.parametrize("k", [1, 7, 25])
def test_exactly_k_tasks_each_with_its_own_generator(k):
    factory = CountingFactory()
    report = check_primality(M61, k, rng_factory=factory)
    assert len(report.outcomes) == k
    assert len(factory.made) == k
    assert len({id(r) for r in factory.made}) == k


def test_each_generator_is_used_by_a_single_thread():
    made: list[ThreadTrackingRandom] = []

    def factory():
        rng = ThreadTrackingRandom(len(made))
        made.append(rng)
        return rng

    check_primality(M127, 16, rng_factory=factory)
    assert len(made) == 16
    assert all(len(r.threads) == 1 for r in made)


# ---------- barrier and failures ----------------------------------------------

def test_every_witness_runs_even_after_a_composite_verdict(monkeypatch):
    calls = []
    lock = threading.Lock()

    def always_composite(n, d, s, a):
        with lock:
            calls.append(a)
        return False

    monkeypatch.setattr(primality, "evaluate", always_composite)
    assert is_probably_prime(M61, 12) is False
    assert len(calls) == 12


def test_task_failure_fails_the_whole_call_after_the_barrier(monkeypatch):
    calls = []
    lock = threading.Lock()

    def flaky(n, d, s, a):
        with lock:
            calls.append(a)
            first = len(calls) == 1
        if first:
            raise ArithmeticError("boom")
        return True

    monkeypatch.setattr(primality, "evaluate", flaky)
    with pytest.raises(WitnessTaskError) as info:
        is_probably_prime(M61, 8)
    assert isinstance(info.value.__cause__, ArithmeticError)
    assert len(calls) == 8


def test_report_lists_composite_bases():
    report = check_primality(341, 10)
    assert report.probably_prime is False
    assert report.composite_bases
    assert report.elapsed >= 0


# ---------- configuration -----------------------------------------------------

def test_seeded_profile_reproduces_bases():
    APPLY({"BEHAVIOUR": {"SEED": 42}})
    first = [o.base for o in check_primality(M127, 10).outcomes]
    APPLY({"BEHAVIOUR": {"SEED": 42}})
    second = [o.base for o in check_primality(M127, 10).outcomes]
    APPLY({"BEHAVIOUR": {"SEED": 43}})
    third = [o.base for o in check_primality(M127, 10).outcomes]
    assert first == second
    assert first != third


def test_max_workers_from_profile_caps_threads(monkeypatch):
    seen: set[str] = set()
    lock = threading.Lock()
    real = primality.evaluate

    def tracking(n, d, s, a):
        with lock:
            seen.add(threading.current_thread().name)
        return real(n, d, s, a)

    monkeypatch.setattr(primality, "evaluate", tracking)
    APPLY({"BEHAVIOUR": {"MAX_WORKERS": 2}})
    assert is_probably_prime(M127, 20) is True
    assert 1 <= len(seen) <= 2
    assert all(name.startswith("witness") for name in seen)


def test_explicit_max_workers_overrides_profile(monkeypatch):
    seen: set[int] = set()
    lock = threading.Lock()
    real = primality.evaluate

    def tracking(n, d, s, a):
        with lock:
            seen.add(threading.get_ident())
        return real(n, d, s, a)

    monkeypatch.setattr(primality, "evaluate", tracking)
    APPLY({"BEHAVIOUR": {"MAX_WORKERS": 8}})
    assert is_probably_prime(M61, 10, max_workers=1) is True
    assert len(seen) == 1


def test_debug_trace_goes_to_stderr(capsys):
    current().debug = True
    check_primality(M17, 5)
    err = capsys.readouterr().err
    assert err.count("[debug] n=") == 5
    assert "witness(es)" in err


# ---------- concurrent callers ------------------------------------------------

def test_hundred_concurrent_callers_agree():
    with ThreadPoolExecutor(max_workers=16) as pool:
        primes = list(pool.map(lambda _: is_probably_prime(M127, 10), range(100)))
        composites = list(pool.map(lambda _: is_probably_prime(2**67 - 1, 10), range(20)))
    assert all(primes)
    assert not any(composites)


# ---------- threads and the GIL -----------------------------------------------

def test_witness_arithmetic_runs_with_the_gil_released(monkeypatch):
    flags: list[bool] = []
    lock = threading.Lock()
    real = primality.evaluate

    def recording(n, d, s, a):
        with lock:
            flags.append(gmpy2.get_context().allow_release_gil)
        return real(n, d, s, a)

    monkeypatch.setattr(primality, "evaluate", recording)
    assert is_probably_prime(M127, 6) is True
    assert flags == [True] * 6
    # the calling thread keeps its own context
    assert not gmpy2.get_context().allow_release_gil


def test_default_pool_follows_cpu_count(monkeypatch):
    seen: set[str] = set()
    lock = threading.Lock()
    real = primality.evaluate

    def tracking(n, d, s, a):
        with lock:
            seen.add(threading.current_thread().name)
        return real(n, d, s, a)

    monkeypatch.setattr(primality, "evaluate", tracking)
    monkeypatch.setattr(primality.os, "cpu_count", lambda: 3)
    assert is_probably_prime(M127, 40) is True
    assert 1 <= len(seen) <= 3


def test_generators_are_created_as_tasks_are_submitted(monkeypatch):
    lock = threading.Lock()
    alive = 0
    peak = 0
    real = primality.evaluate

    def factory():
        nonlocal alive, peak
        with lock:
            alive += 1
            peak = max(peak, alive)
        return random.Random(peak)

    def finishing(n, d, s, a):
        nonlocal alive
        result = real(n, d, s, a)
        with lock:
            alive -= 1
        return result

    monkeypatch.setattr(primality, "evaluate", finishing)
    report = check_primality(M127, 200, max_workers=2, rng_factory=factory)
    assert len(report.outcomes) == 200
    assert report.probably_prime is True
    assert peak <= 2 * primality._QUEUE_DEPTH
