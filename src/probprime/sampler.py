# -----------------------------------------------------------------------------
#  sampler.py
#  Uniform random integers in an inclusive range, drawn from byte buffers
# -----------------------------------------------------------------------------

from __future__ import annotations

import random


class InvalidRangeError(ValueError):
    pass


def byte_length(value: int) -> int:
    """
    Number of bytes in the signed (two's-complement, little-endian) encoding
    of a non-negative value. One spare bit is always kept for the sign, so
    255 needs two bytes and 127 needs one.
    """
    return value.bit_length() // 8 + 1


def random_in_range(lo: int, hi: int, rng: random.Random) -> int:
    """
    Return a uniformly distributed integer v with lo <= v <= hi.

    The buffer is sized to the width of the range (not of hi), filled from
    `rng` and read as a signed integer. Draws with the sign bit set are
    rejected, and so are draws in the incomplete top block, so that the final
    reduction modulo the range has no bias.

    `rng` must be owned by the caller; it is mutated here.
    """
    if lo >= hi:
        raise InvalidRangeError(f"lower bound {lo} must be less than upper bound {hi}")

    span = hi - lo + 1
    nbytes = byte_length(span)
    limit = 1 << (8 * nbytes - 1)          # count of non-negative draws
    ceiling = limit - limit % span

    while True:
        draw = int.from_bytes(rng.randbytes(nbytes), "little", signed=True)
        if draw < 0 or draw >= ceiling:
            continue
        return lo + draw % span
