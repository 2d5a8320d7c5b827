# -----------------------------------------------------------------------------
#  utility.py
#  Input limits, terminal and output-file helpers shared by the CLI modules
# -----------------------------------------------------------------------------

from __future__ import annotations

import os
import sys

import gmpy2

from probprime.runtime import CFG

DEFAULT_MAX_DIGITS = 100_000

# result logs must never clobber code or configuration
_PROTECTED_SUFFIXES = (".py", ".toml", ".md")


class UserInputError(Exception):
    """Bad command-line input or an unusable profile; reported without traceback."""


def dec_digits(n: int) -> int:
    """Exact number of decimal digits of |n|, without converting it to str."""
    n = abs(n)
    digits = gmpy2.num_digits(n, 10)     # exact or one too many
    if digits > 1 and n < gmpy2.mpz(10) ** (digits - 1):
        digits -= 1
    return digits


def effective_digit_limit() -> int:
    """
    Largest accepted candidate, in decimal digits: BEHAVIOUR.MAX_DIGITS,
    tightened by Python's int/str conversion guard when that one is lower
    (a guard of 0 means unlimited).
    """
    limit = int(CFG("BEHAVIOUR.MAX_DIGITS", DEFAULT_MAX_DIGITS))
    guard = getattr(sys, "get_int_max_str_digits", lambda: 0)()
    return min(limit, guard) if guard else limit


def clear_screen() -> None:
    """Clear the terminal, keeping scrollback where the platform allows it."""
    if not sys.stdout.isatty():
        return
    if os.name == "nt":
        os.system("cls")
    else:
        sys.stdout.write("\x1b[H\x1b[2J")
        sys.stdout.flush()


def validate_output_setting(output_file: str | None) -> str | None:
    """
    Check an --output / OUTPUT.OUTPUT_FILE value. None or "" means screen only
    and is returned as is; a usable file name is returned unchanged.
    """
    if not output_file:
        return output_file
    if output_file.endswith(("/", "\\")):
        raise ValueError(f"{output_file} is a directory, expected a file")
    suffix = os.path.splitext(output_file)[1].lower()
    if suffix in _PROTECTED_SUFFIXES:
        raise ValueError(f"refusing to append results to a {suffix} file")
    return output_file
