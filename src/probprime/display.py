# src/probprime/display.py
from __future__ import annotations

from colorama import Fore, Style

from probprime.config import list_profiles_with_descriptions, read_current_profile
from probprime.fmt import abbr_int, describe_int, format_duration, format_verdict
from probprime.output_manager import OutputManager
from probprime.primality import PrimalityReport


def print_report(report: PrimalityReport, elapsed: float, *, show_details: bool = False,
                 om: OutputManager | None = None) -> None:
    """
    Number / verdict / elapsed time, then (optionally) the witness table.
    `elapsed` is the wall-clock time measured around the call by the caller.
    """
    out = om.write if om is not None else print

    out(f"Number: {describe_int(report.n)}")
    out(format_verdict(report.probably_prime))
    out(f"Elapsed Time: {format_duration(elapsed)}")

    if show_details:
        if report.decomposition is None:
            out(f"{Style.DIM}  decided without witnesses (n <= 3){Style.RESET_ALL}")
        else:
            d, s = report.decomposition
            out(f"{Style.DIM}  n-1 = {abbr_int(d)} * 2^{s}, {report.witnesses} witness(es){Style.RESET_ALL}")
            for i, o in enumerate(report.outcomes, start=1):
                mark = f"{Fore.GREEN}pass{Style.RESET_ALL}" if o.verdict else f"{Fore.RED}{Style.BRIGHT}composite{Style.RESET_ALL}"
                out(f"  #{i:<3} a={abbr_int(o.base):<24} {mark}")
    out()


def show_intro_help(om: OutputManager | None = None) -> None:
    out = om.write if om is not None else print
    lines = [
        "",
        f"{Fore.GREEN}Welcome to ProbPrime{Style.RESET_ALL}",
        f"{'-'*78}",
        "Miller-Rabin primality test with random witnesses evaluated in parallel.",
        "A composite number passes one random witness with probability at most 1/4,",
        "so k witnesses bound the error by 4^-k.",
        "",
        f"{Fore.MAGENTA + Style.BRIGHT}Input:{Style.RESET_ALL}",
        " • Integers: 97, 1_000_003, 1 000 003, 0xFF, 0b1011, 0o17.",
        " • Expressions: ( ) ** + - * // % << >> & ^ |   Example: 2**127-1.",
        " • Scientific notation: 1e12+39.  Mersenne shorthand: M521 (= 2**521-1).",
        "",
        f"{Fore.MAGENTA + Style.BRIGHT}Commands:{Style.RESET_ALL}",
        "   k <count>           set the witness count for this session (k alone shows it).",
        "   debug on|off|status switch the witness trace on stderr (and tracebacks).",
        "   details on|off      show n-1 = d*2^s and every witness base after the verdict.",
        "   p                   list profiles; enter a profile name to switch.",
        "   h or help           show this help.",
        "   q or quit           leave.",
        "",
    ]
    for line in lines:
        out(line)


def print_profiles_with_descriptions() -> None:
    pairs = list_profiles_with_descriptions()

    if not pairs:
        print("\nAvailable profiles: (none)")
        return

    current = read_current_profile()

    lines = []
    for name, desc in pairs:
        mark = "*" if current and name == current else " "
        lines.append(f"{mark} {name:13} — {desc}")
    print("\nAvailable profiles:\n  " + "\n  ".join(lines))
