# src/probprime/cli.py
"""
probprime: command-line front end to the parallel Miller-Rabin test.

    probprime [profile] N [N ...] [-k K] [--details] [--output FILE] [--quiet]
    probprime --demo
    probprime init | where | profiles
    probprime [profile]                  (interactive session)

Every tested number prints its value, the verdict and the wall-clock time
of the test.
"""

from __future__ import annotations

import argparse
import faulthandler
import os
import sys
import threading
import time
import traceback
from collections.abc import Iterable
from dataclasses import dataclass
from importlib.resources import files as pkg_files

from colorama import Fore, Style
from colorama import init as colorama_init

from probprime import __version__, config
from probprime.display import print_profiles_with_descriptions, print_report, show_intro_help
from probprime.expreval import parse_int_or_expr
from probprime.output_manager import OutputManager
from probprime.primality import DEFAULT_WITNESSES, check_primality
from probprime.runtime import APPLY, CFG
from probprime.runtime import current as _rt_current
from probprime.utility import DEFAULT_MAX_DIGITS, UserInputError, clear_screen, validate_output_setting
from probprime.workspace import seed_workspace, workspace_dir

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_USER = 2
EXIT_INTERRUPTED = 130

COMMANDS = ("init", "where", "profiles")

# Benchmark set for --demo: two ordinary numbers, a
# composite 2^1001-1 and three large Mersenne primes.
DEMO_CANDIDATES = (
    ("17", 17),
    ("1701411834604692317316873037158841057", 1701411834604692317316873037158841057),
    ("2**1001-1", 2**1001 - 1),
    ("2**23209-1", 2**23209 - 1),
    ("2**44497-1", 2**44497 - 1),
    ("2**110503-1", 2**110503 - 1),
)


def _debug(msg: str) -> None:
    print(f"{Style.DIM}[debug]{Style.RESET_ALL} {msg}", file=sys.stderr)


def _print_error(msg: str) -> None:
    print(f"{Fore.RED}Error:{Style.RESET_ALL} {msg}", file=sys.stderr)


def _install_debug_hooks() -> None:
    """Full tracebacks for uncaught errors, on the main and the witness threads."""
    try:
        faulthandler.enable()
    except (AttributeError, ValueError):
        pass  # stderr without a file descriptor

    def report(kind, exc_type, exc, tb):
        sys.stderr.write(f"\n[UNCAUGHT {kind}]\n")
        traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
        sys.stderr.flush()

    sys.excepthook = lambda t, e, tb: report("EXCEPTION", t, e, tb)
    threading.excepthook = lambda a: report("THREAD EXCEPTION", a.exc_type, a.exc_value, a.exc_traceback)


def _utf8_pipes() -> None:
    """Redirected output on non-UTF-8 consoles is switched to UTF-8 so '…' survives."""
    if os.environ.get("PYTHONIOENCODING") or sys.stdout.isatty():
        return
    if (sys.stdout.encoding or "").lower().replace("-", "") == "utf8":
        return
    for stream in (sys.stdout, sys.stderr):
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(encoding="utf-8", errors="replace")


def _parse_candidate(text: str) -> int:
    n = parse_int_or_expr(text)
    if n is None:
        raise UserInputError(f"'{text}' is not an integer or integer expression.")
    return n


def _profile_witnesses() -> int:
    return int(CFG("BEHAVIOUR.WITNESSES", DEFAULT_WITNESSES))


def _activate_profile(name: str, *, debug: bool) -> None:
    """Load profile `name` into the runtime; the --debug flag wins over the profile."""
    settings = config.load_settings(name)
    APPLY(settings)
    rt = _rt_current()
    rt.debug = rt.debug or debug

    # Python's int/str guard follows the profile, so long candidates can be parsed
    if hasattr(sys, "set_int_max_str_digits") and not os.environ.get("PYTHONINTMAXSTRDIGITS"):
        sys.set_int_max_str_digits(max(int(CFG("BEHAVIOUR.MAX_DIGITS", DEFAULT_MAX_DIGITS)), 640))

    if rt.debug:
        _debug(f"active profile: {settings.name}")
        _debug(f"profile file: {settings.path}")
        for key, value in rt.flat().items():
            _debug(f"  {key:.<36} {value!r} ({type(value).__name__})")


@dataclass
class Session:
    profile: str
    witnesses: int
    output_file: str | None = None
    quiet: bool = False
    details: bool = False

    def check(self, numbers: Iterable[int]) -> None:
        """Test each number and print its report; one output batch per call."""
        om = OutputManager(output_file=self.output_file, quiet=self.quiet)
        try:
            for n in numbers:
                t0 = time.perf_counter()
                report = check_primality(n, self.witnesses)
                print_report(report, time.perf_counter() - t0, show_details=self.details, om=om)
        finally:
            om.close()

    def switch_profile(self, name: str) -> None:
        _activate_profile(name, debug=_rt_current().debug)
        config.write_current_profile(name)
        self.profile = name
        self.witnesses = _profile_witnesses()
        print(f"Applied profile: {name}")

    def set_witnesses(self, arg: str) -> None:
        if not arg:
            print(f"Witness count is {self.witnesses}.")
            return
        try:
            k = int(arg)
        except ValueError:
            print("Usage: k <count>")
            return
        if k <= 0:
            print(f"Non-positive count, the test will use {DEFAULT_WITNESSES} witnesses.")
        self.witnesses = k
        print(f"Witness count set to {k}.")

    def prompt(self) -> str:
        return (f"\nProfile: {self.profile}, k={self.witnesses} | "
                "number, command or profile (h=help, q=quit): ")


def _switch(arg: str, current: bool, what: str) -> bool:
    """Shared on/off/status handling for 'debug' and 'details'."""
    if arg in ("on", "off"):
        current = arg == "on"
        print(f"{what} {'enabled' if current else 'disabled'} for this session.")
    elif arg in ("", "status"):
        print(f"{what} is currently {'ON' if current else 'OFF'}.")
    else:
        print(f"Usage: {what.lower()} [on|off|status]")
    return current


def _repl_step(session: Session, line: str) -> None:
    word, _, arg = line.lower().partition(" ")
    arg = arg.strip()
    if word in ("h", "help") and not arg:
        show_intro_help()
    elif word in ("p", "profiles") and not arg:
        print_profiles_with_descriptions()
    elif word == "k":
        session.set_witnesses(arg)
    elif word == "debug":
        rt = _rt_current()
        rt.debug = _switch(arg, rt.debug, "Debug")
    elif word == "details":
        session.details = _switch(arg, session.details, "Details")
    elif config.has_profile(line):
        session.switch_profile(line)
    else:
        session.check([_parse_candidate(line)])


def _repl(session: Session) -> int:
    if not _rt_current().debug:
        clear_screen()
    print(f"{Fore.YELLOW}{Style.BRIGHT}ProbPrime v{__version__}: "
          f"Miller-Rabin with parallel random witnesses{Style.RESET_ALL}")
    while True:
        try:
            line = input(session.prompt()).strip()
            if line.lower() in ("", "q", "quit"):
                return EXIT_OK
            _repl_step(session, line)
        except (EOFError, KeyboardInterrupt):
            print()
            return EXIT_OK
        except UserInputError as e:
            print(f"{Fore.RED}Invalid input:{Style.RESET_ALL} {e}", file=sys.stderr)
        except Exception as e:
            if _rt_current().debug:
                traceback.print_exc()
            else:
                _print_error(f"{type(e).__name__}: {e}")


def _run_command(name: str) -> int:
    if name == "init":
        copied = seed_workspace()
        print(f"Workspace ready at: {workspace_dir()}")
        print(f"Profiles copied: {copied}")
    elif name == "where":
        print(f"Workspace: {workspace_dir()}")
        print(f"Package:   {pkg_files('probprime')}")
    else:
        print_profiles_with_descriptions()
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="probprime",
        description="Miller-Rabin probable-prime test with random witnesses evaluated in parallel.",
        epilog=(
            "commands:\n"
            "  init      create the workspace and copy missing sample profiles\n"
            "  where     show the workspace and package paths\n"
            "  profiles  list the available profiles\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("items", nargs="*", metavar="[profile] N",
                   help="a command, or an optional profile name followed by integers/expressions")
    p.add_argument("-k", "--witnesses", type=int, default=None,
                   help=f"random witnesses per number (default: profile, else {DEFAULT_WITNESSES})")
    p.add_argument("--demo", action="store_true", help="test the built-in benchmark candidates")
    p.add_argument("--details", action="store_true", help="show n-1 = d*2^s and every witness base")
    p.add_argument("--output", default=None, help="append results to this file (relative to the workspace)")
    p.add_argument("--quiet", action="store_true", help="no screen output (use with --output)")
    p.add_argument("--debug", action="store_true", help="profile dump, witness trace on stderr, tracebacks")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def _run(argv: list[str]) -> int:
    colorama_init(autoreset=True)
    _utf8_pipes()
    args = _build_parser().parse_args(argv)
    if args.debug:
        _rt_current().debug = True
        _install_debug_hooks()

    items = list(args.items)
    if items and items[0] in COMMANDS:
        return _run_command(items[0])

    seed_workspace()
    explicit = items.pop(0) if items and config.has_profile(items[0]) else None
    last = config.read_current_profile()
    profile = explicit or (last if last and config.has_profile(last) else "default")
    _activate_profile(profile, debug=args.debug)

    try:
        output_file = validate_output_setting(args.output) or CFG("OUTPUT.OUTPUT_FILE", None)
    except ValueError as e:
        raise UserInputError(f"--output: {e}") from None

    session = Session(
        profile=profile,
        witnesses=args.witnesses if args.witnesses is not None else _profile_witnesses(),
        output_file=output_file,
        quiet=args.quiet,
        details=args.details,
    )
    if args.demo or items:
        numbers = [n for _, n in DEMO_CANDIDATES] if args.demo else []
        numbers += [_parse_candidate(text) for text in items]
        session.check(numbers)
        return EXIT_OK
    return _repl(session)


def main(argv: list[str] | None = None) -> int:
    """Console entry point: user errors exit 2 without a traceback, others exit 1."""
    argv = sys.argv[1:] if argv is None else list(argv)
    try:
        return _run(argv)
    except UserInputError as e:
        _print_error(str(e))
        return EXIT_USER
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except Exception as e:
        if "--debug" in argv:
            raise
        print(f"Unexpected error: {type(e).__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return EXIT_UNEXPECTED


if __name__ == "__main__":
    raise SystemExit(main())
