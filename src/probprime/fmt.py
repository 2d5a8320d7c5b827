# -----------------------------------------------------------------------------
#  fmt.py
#  Text rendering of candidates, verdicts and timings
# -----------------------------------------------------------------------------

from __future__ import annotations

import re

from colorama import Fore, Style

from probprime.utility import dec_digits

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")
ELLIPSIS = "…"
SHORT_DIGITS = 35   # printed in full up to this many digits


def abbr_int(n: int, *, edge: int = 10, threshold: int = SHORT_DIGITS) -> str:
    """
    n in full when it has at most `threshold` digits, otherwise its first and
    last `edge` digits around an ellipsis. Huge values are never turned into
    one long string.
    """
    digits = dec_digits(n)
    if digits <= max(threshold, 2 * edge):
        return str(n)
    a = abs(n)
    head = a // 10 ** (digits - edge)
    tail = str(a % 10 ** edge).zfill(edge)
    return f"{'-' if n < 0 else ''}{head}{ELLIPSIS}{tail}"


def describe_int(n: int, *, threshold: int = SHORT_DIGITS) -> str:
    """Like abbr_int, with a dimmed digit count appended when abbreviated."""
    digits = dec_digits(n)
    text = abbr_int(n, threshold=threshold)
    if digits <= threshold:
        return text
    return f"{text} {Style.DIM}({digits} digits){Style.RESET_ALL}"


def format_verdict(probably_prime: bool) -> str:
    if probably_prime:
        return f"{Fore.GREEN}{Style.BRIGHT}probably prime{Style.RESET_ALL}"
    return f"{Fore.RED}not prime{Style.RESET_ALL}"


def strip_ansi(s: str | None) -> str:
    return "" if s is None else ANSI_RE.sub("", s)


def format_duration(seconds: float) -> str:
    """'412 ms', '3.207 s', '2:05.118' (m:ss) or '1:02:05.118' (h:mm:ss)."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.3f} s"
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(int(minutes), 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:06.3f}"
    return f"{minutes}:{secs:06.3f}"
