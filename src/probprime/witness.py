# -----------------------------------------------------------------------------
#  witness.py
#  Miller-Rabin: decomposition of n-1 and single-base witness evaluation
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass

import gmpy2


@dataclass(frozen=True)
class Decomposition:
    d: int   # odd part of n-1
    s: int   # n-1 == d * 2**s

    def __iter__(self):
        yield self.d
        yield self.s


def decompose(n: int) -> Decomposition:
    """Write n-1 as d * 2**s with d odd. Requires n >= 2."""
    if n < 2:
        raise ValueError(f"cannot decompose n-1 for n={n}")
    d = n - 1
    s = 0
    while d % 2 == 0:
        d //= 2
        s += 1
    return Decomposition(d=d, s=s)


def evaluate(n: int, d: int, s: int, a: int) -> bool:
    """
    One Miller-Rabin round for base a.

    Returns True when a does not prove n composite (inconclusive), False when
    a is a witness for compositeness. Expects n > 3 and 2 <= a <= n-2.
    """
    n_minus_1 = n - 1
    x = gmpy2.powmod(a, d, n)
    if x == 1 or x == n_minus_1:
        return True

    for _ in range(s - 1):
        x = gmpy2.powmod(x, 2, n)
        if x == 1:
            return False          # nontrivial square root of 1
        if x == n_minus_1:
            break

    return x == n_minus_1
