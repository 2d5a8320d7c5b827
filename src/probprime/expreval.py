# -----------------------------------------------------------------------------
#  expreval.py
#  Candidate input: integer literals, Mersenne shorthand and safe expressions
# -----------------------------------------------------------------------------

from __future__ import annotations

import ast
import operator
import re

from probprime.utility import UserInputError, dec_digits, effective_digit_limit

_SEPARATORS = " ,._\u00A0\u2009\u202F"     # digit-group separators, NBSP variants included
_GROUPED_RE = re.compile(rf"[+-]?\d{{1,3}}(?:[{_SEPARATORS}]\d{{3}})+")
_PLAIN_RE = re.compile(r"[+-]?\d[\d_]*")
_PREFIXED_RE = re.compile(r"[+-]?0[xXbBoO][0-9a-fA-F_]+")
_MERSENNE_RE = re.compile(r"[Mm]\s*(\d+)")
_SCI_RE = re.compile(r"(?<![\w.])(\d+)[eE]([+-]?\d+)(?![\w.])")

_BINOPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.FloorDiv: operator.floordiv,
    ast.LShift: operator.lshift,
    ast.RShift: operator.rshift,
    ast.BitAnd: operator.and_,
    ast.BitXor: operator.xor,
    ast.BitOr: operator.or_,
}
_RING_OPS = (ast.Add, ast.Sub, ast.Mult)    # commute with reduction mod m
_MAX_NODES = 256


class _NotNumeric(Exception):
    """The text is not an integer expression; callers may try it as a command."""


def _too_many_digits(limit: int) -> UserInputError:
    return UserInputError(
        f"number has more than {limit} decimal digits. "
        "Increase BEHAVIOUR.MAX_DIGITS in the profile or pass a smaller value."
    )


def _min_digits(bits: int) -> int:
    """Fewest decimal digits an integer of magnitude >= 2**bits can have."""
    return 1 + bits * 30102 // 100000       # log10(2), rounded down


def _check_digits(value: int, limit: int) -> int:
    if dec_digits(value) > limit:
        raise _too_many_digits(limit)
    return value


class _Evaluator:
    """
    Integer-only AST walker. Under `x % m` the modulus is pushed down through
    + - * so that `a ** b % m` becomes a modular power. Every operation that
    can grow a value (** * <<) is checked against the digit limit before it
    runs, from the operands' bit lengths.
    """

    def __init__(self, limit: int):
        self.limit = limit

    def _guard_bits(self, bits: int) -> None:
        if bits > 0 and _min_digits(bits) > self.limit:
            raise _too_many_digits(self.limit)

    def eval(self, node: ast.AST, modulus: int | None = None) -> int:
        if isinstance(node, ast.Constant):
            if type(node.value) is not int:
                raise _NotNumeric("only integers are allowed")
            return _check_digits(node.value, self.limit)
        if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.UAdd, ast.USub)):
            value = self.eval(node.operand, modulus)
            return -value if isinstance(node.op, ast.USub) else value
        if isinstance(node, ast.BinOp):
            if isinstance(node.op, ast.Mod):
                return self._mod(node)
            if isinstance(node.op, ast.Pow):
                return self._pow(node, modulus)
            return self._binop(node, modulus)
        raise _NotNumeric(f"unsupported syntax: {type(node).__name__}")

    def _mod(self, node: ast.BinOp) -> int:
        m = self.eval(node.right)
        if m == 0:
            raise _NotNumeric("modulo by zero")
        return self.eval(node.left, m) % m

    def _pow(self, node: ast.BinOp, modulus: int | None) -> int:
        base = self.eval(node.left, modulus)
        exp = self.eval(node.right)
        if exp < 0:
            raise UserInputError("negative exponents are not allowed in integer expressions")
        if modulus is not None:
            return pow(base, exp, modulus)
        if abs(base) > 1:
            self._guard_bits((abs(base).bit_length() - 1) * exp)
        return base ** exp

    def _binop(self, node: ast.BinOp, modulus: int | None) -> int:
        kind = type(node.op)
        if kind not in _BINOPS:
            raise _NotNumeric(f"unsupported operator: {kind.__name__}")
        inner = modulus if kind in _RING_OPS else None
        left = self.eval(node.left, inner)
        right = self.eval(node.right, inner)
        if inner is not None:
            left, right = left % inner, right % inner
        if kind is ast.FloorDiv and right == 0:
            raise _NotNumeric("division by zero")
        if kind in (ast.LShift, ast.RShift) and right < 0:
            raise _NotNumeric("negative shift count")
        if kind is ast.LShift and left:
            self._guard_bits(abs(left).bit_length() - 1 + right)
        if kind is ast.Mult and left and right:
            self._guard_bits(abs(left).bit_length() + abs(right).bit_length() - 2)
        return _BINOPS[kind](left, right)


def _expand_scientific(text: str) -> str:
    """'3e4' -> '(3*10**4)'; a negative exponent is not an integer."""
    def repl(m: re.Match) -> str:
        if int(m.group(2)) < 0:
            raise _NotNumeric("negative exponent in scientific notation")
        return f"({m.group(1)}*10**{int(m.group(2))})"
    return _SCI_RE.sub(repl, text)


def _eval_expression(text: str, limit: int) -> int:
    try:
        tree = ast.parse(_expand_scientific(text), mode="eval")
    except (SyntaxError, ValueError) as e:
        raise _NotNumeric("invalid integer expression") from e
    if sum(1 for _ in ast.walk(tree)) > _MAX_NODES:
        raise _NotNumeric("expression too large")
    return _Evaluator(limit).eval(tree.body)


def _parse_literal(text: str, limit: int) -> int | None:
    """42, -7, 1_000_003, 1 000 003, 1.000.003, 0xFF, 0b1011, 0o17; else None."""
    if _PREFIXED_RE.fullmatch(text):
        try:
            return int(text, 0)
        except ValueError:
            return None
    if _PLAIN_RE.fullmatch(text):
        digits = text.lstrip("+-").replace("_", "")
    elif _GROUPED_RE.fullmatch(text):
        digits = re.sub(f"[{_SEPARATORS}]", "", text.lstrip("+-"))
    else:
        return None
    if len(digits.lstrip("0")) > limit:
        raise _too_many_digits(limit)
    try:
        value = int(digits)
    except ValueError:
        return None
    return -value if text.startswith("-") else value


def _parse_mersenne(text: str, limit: int) -> int | None:
    """'M127' -> 2**127 - 1."""
    m = _MERSENNE_RE.fullmatch(text)
    if m is None:
        return None
    p = int(m.group(1))
    if p > 1 and _min_digits(p - 1) > limit:
        raise _too_many_digits(limit)
    return (1 << p) - 1


def parse_int_or_expr(text: str) -> int | None:
    """
    Parse CLI/REPL input into an int. Returns None when the text is not
    number-like at all (callers may treat it as a command or profile name);
    raises UserInputError when it is number-like but unacceptable, e.g. larger
    than BEHAVIOUR.MAX_DIGITS.
    """
    s = (text or "").strip()
    if not s:
        return None
    limit = effective_digit_limit()
    value = _parse_literal(s, limit)
    if value is None:
        value = _parse_mersenne(s, limit)
    if value is None:
        try:
            value = _eval_expression(s, limit)
        except _NotNumeric:
            return None
    return _check_digits(value, limit)
