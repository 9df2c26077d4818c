# advanced_calculator.py
# Core library for the menu-driven calculator (importable, testable)

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, Context, MAX_EMAX, MAX_PREC, MIN_EMIN
from enum import Enum
from fractions import Fraction
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union
import argparse
import logging
import math
import re
import sys

from rapidfuzz import fuzz, process

logger = logging.getLogger(__name__)

# Fractional digits kept by div and percent
SCALE = 12

# Signed 64-bit range used by the base conversions
LONG_MIN = -(2 ** 63)
LONG_MAX = 2 ** 63 - 1
_MASK64 = 2 ** 64 - 1

# Largest power of ten accepted in operand text
MAX_EXPONENT = 9999

# Largest n accepted by factorial
MAX_FACTORIAL = 10000

DEFAULT_HISTORY_FILE = 'history.txt'
DEFAULT_FUZZY_THRESHOLD = 70

# Unbounded context: add/sub/mul/mod/abs never round
_EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)

Number = Union[Decimal, int, str]


# ---------- Errors ----------
class CalculatorError(Exception):
    """Base class for every error the calculator reports to the user."""


class DivisionByZero(CalculatorError):
    pass


class NegativeSquareRoot(CalculatorError):
    pass


class NegativeFactorial(CalculatorError):
    pass


class DomainError(CalculatorError):
    pass


class InvalidNumberFormat(CalculatorError):
    pass


class UnknownOperation(CalculatorError):
    """Raised for an operation token that names nothing in the requested group.

    ``suggestion`` holds the closest known operation name, if one is close enough.
    """

    def __init__(self, token: str, suggestion: Optional[str] = None):
        self.token = token
        self.suggestion = suggestion
        msg = f"Unknown operation '{token}'."
        if suggestion:
            msg += f" Did you mean '{suggestion}'?"
        super().__init__(msg)


class IOFailure(CalculatorError):
    pass


# ---------- Operations ----------
class OperationKind(Enum):
    BINARY = "binary"
    UNARY = "unary"
    CONVERSION = "conversion"

    @property
    def arity(self) -> int:
        return 2 if self is OperationKind.BINARY else 1


class Operation(Enum):
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    MOD = "mod"
    POW = "pow"
    PERCENT = "percent"
    SQRT = "sqrt"
    FACTORIAL = "factorial"
    LOG = "log"
    LN = "ln"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    ABS = "abs"
    DEC_TO_BIN = "dec->bin"
    BIN_TO_DEC = "bin->dec"
    DEC_TO_HEX = "dec->hex"
    HEX_TO_DEC = "hex->dec"

    @property
    def kind(self) -> OperationKind:
        if self in _BINARY_OPS:
            return OperationKind.BINARY
        if self in _CONVERSION_OPS:
            return OperationKind.CONVERSION
        return OperationKind.UNARY


_BINARY_OPS = frozenset({
    Operation.ADD, Operation.SUB, Operation.MUL, Operation.DIV,
    Operation.MOD, Operation.POW, Operation.PERCENT,
})
_CONVERSION_OPS = (
    Operation.DEC_TO_BIN, Operation.BIN_TO_DEC,
    Operation.DEC_TO_HEX, Operation.HEX_TO_DEC,
)

# Symbols accepted in place of binary operation names
_SYMBOL_ALIASES = {
    '+': Operation.ADD,
    '-': Operation.SUB,
    '*': Operation.MUL,
    'x': Operation.MUL,
    '/': Operation.DIV,
    '%': Operation.MOD,
    '^': Operation.POW,
}


def _aliases_for(kind: Optional[OperationKind]) -> Dict[str, Operation]:
    table: Dict[str, Operation] = {}
    for operation in Operation:
        if kind is not None and operation.kind is not kind:
            continue
        table[operation.value] = operation
        if operation.kind is OperationKind.CONVERSION:
            # dec->bin may also be typed as dec2bin or decbin
            table[operation.value.replace('->', '2')] = operation
            table[operation.value.replace('->', '')] = operation
    if kind in (None, OperationKind.BINARY):
        table.update(_SYMBOL_ALIASES)
    if kind is OperationKind.CONVERSION:
        # numbers from the conversions submenu
        for number, operation in enumerate(_CONVERSION_OPS, start=1):
            table[str(number)] = operation
    return table


def suggest_operation(token: str, kind: Optional[OperationKind] = None,
                      threshold: int = DEFAULT_FUZZY_THRESHOLD) -> Optional[str]:
    """Return the known operation name closest to ``token``, or None."""
    choices = [op.value for op in Operation if kind is None or op.kind is kind]
    if not token or not choices:
        return None
    best = process.extractOne(token, choices, scorer=fuzz.WRatio, score_cutoff=threshold)
    return best[0] if best else None


def normalize_operation(value: Union[Operation, str], kind: Optional[OperationKind] = None) -> Operation:
    """
    Map a typed token (name, symbol or alias) to an Operation.

    Args:
        value: Operation member or the text the user typed.
        kind: Restrict the lookup to one group of operations.

    Returns:
        The matching Operation.

    Raises:
        UnknownOperation: when nothing in the group matches.
    """
    if isinstance(value, Operation):
        if kind is not None and value.kind is not kind:
            raise UnknownOperation(value.value)
        return value
    token = str(value).strip().lower()
    key = re.sub(r"\s+", "", token)
    table = _aliases_for(kind)
    if key in table:
        return table[key]
    raise UnknownOperation(token, suggest_operation(key, kind))


class TrigMode(Enum):
    DEGREES = "Degrees"
    RADIANS = "Radians"

    def toggled(self) -> TrigMode:
        return TrigMode.RADIANS if self is TrigMode.DEGREES else TrigMode.DEGREES


# ---------- Input validation ----------
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_INTEGER_RE = {
    2: re.compile(r"[+-]?[01]+"),
    10: re.compile(r"[+-]?[0-9]+"),
    16: re.compile(r"[+-]?[0-9a-fA-F]+"),
}
_BASE_NAMES = {2: 'binary', 10: 'integer', 16: 'hex'}
# Most significant digits a signed 64-bit value can have in each base
_LONG_DIGITS = {2: 64, 10: 19, 16: 16}


def parse_decimal(text: str) -> Decimal:
    """Parse operand text as a finite decimal, or raise InvalidNumberFormat."""
    s = str(text).strip()
    if not _DECIMAL_RE.fullmatch(s):
        raise InvalidNumberFormat(f"Invalid decimal: '{s}'")
    value = Decimal(s)
    if not value.is_zero() and abs(value.adjusted()) > MAX_EXPONENT:
        raise InvalidNumberFormat(f"Decimal out of range: '{s}'")
    return value


def parse_int(text: str) -> int:
    s = str(text).strip()
    if not _INTEGER_RE[10].fullmatch(s):
        raise InvalidNumberFormat(f"Invalid integer: '{s}'")
    try:
        return int(s)
    except ValueError:
        # beyond the interpreter's digit limit for int()
        raise InvalidNumberFormat(f"Integer too large: '{s[:20]}...'") from None


def parse_long(text: str, base: int = 10) -> int:
    """Parse signed digit text in ``base`` (2, 10 or 16) as a 64-bit integer."""
    s = str(text).strip()
    if not _INTEGER_RE[base].fullmatch(s):
        raise InvalidNumberFormat(f"Invalid {_BASE_NAMES[base]} number: '{s}'")
    digits = s.lstrip('+-').lstrip('0')
    if len(digits) > _LONG_DIGITS[base]:
        raise InvalidNumberFormat(f"Value out of 64-bit range: '{s[:20]}...'")
    value = int(s, base)
    if not LONG_MIN <= value <= LONG_MAX:
        raise InvalidNumberFormat(f"Value out of 64-bit range: '{s}'")
    return value


def coerce_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidNumberFormat(f"Invalid decimal: '{value}'")
        return value
    if isinstance(value, bool):
        raise InvalidNumberFormat(f"Invalid decimal: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    return parse_decimal(value)


# ---------- Formatting ----------
def plain(value: Decimal) -> str:
    """Trimmed plain-decimal text: no exponent, no trailing zeros, no '-0'."""
    if not value.is_finite():
        return str(value)
    if value.is_zero():
        return '0'
    return format(_EXACT.normalize(value), 'f')


def _strip(value: Decimal) -> Decimal:
    if value.is_zero():
        return Decimal(0)
    return _EXACT.normalize(value)


def _from_float(x: float) -> Decimal:
    if not math.isfinite(x):
        raise DomainError("Result out of range.")
    # shortest round-tripping text of the float
    return _strip(Decimal(repr(x)))


def _round_scale(exact: Fraction) -> Decimal:
    """Round to SCALE fractional digits, halves away from zero."""
    units = math.floor(abs(exact) * 10 ** SCALE + Fraction(1, 2))
    if exact < 0:
        units = -units
    return Decimal(units).scaleb(-SCALE, _EXACT)


# ---------- Arithmetic ----------
def add(a: Decimal, b: Decimal) -> Decimal:
    return _EXACT.add(a, b)


def subtract(a: Decimal, b: Decimal) -> Decimal:
    return _EXACT.subtract(a, b)


def multiply(a: Decimal, b: Decimal) -> Decimal:
    return _EXACT.multiply(a, b)


def divide(a: Decimal, b: Decimal) -> Decimal:
    if b.is_zero():
        raise DivisionByZero("Division by zero.")
    return _strip(_round_scale(Fraction(a) / Fraction(b)))


def modulo(a: Decimal, b: Decimal) -> Decimal:
    """Remainder carrying the dividend's sign: a - b * trunc(a / b)."""
    if b.is_zero():
        raise DivisionByZero("Division by zero.")
    return _EXACT.remainder(a, b)


def power(a: Decimal, b: Decimal) -> Decimal:
    # float-backed so fractional exponents work
    try:
        return _from_float(math.pow(float(a), float(b)))
    except ValueError:
        raise DomainError(f"pow undefined for {plain(a)} ^ {plain(b)}.") from None
    except OverflowError:
        raise DomainError(f"pow result too large for {plain(a)} ^ {plain(b)}.") from None


def percent(a: Decimal, b: Decimal) -> Decimal:
    """b percent of a."""
    return _strip(_round_scale(Fraction(a) * Fraction(b) / 100))


def square_root(x: Decimal) -> Decimal:
    if x < 0:
        raise NegativeSquareRoot("Square root of negative number.")
    return _from_float(math.sqrt(float(x)))


def factorial(n: int) -> int:
    if n < 0:
        raise NegativeFactorial("Factorial of negative number.")
    if n > MAX_FACTORIAL:
        raise InvalidNumberFormat(f"Factorial input too large (max {MAX_FACTORIAL}).")
    result = 1
    for i in range(2, n + 1):
        result *= i
    return result


def log10(x: Decimal) -> Decimal:
    if x <= 0:
        raise DomainError("log undefined for <= 0.")
    try:
        return _from_float(math.log10(float(x)))
    except ValueError:
        # positive but below the smallest float
        raise DomainError(f"log operand too small: {x}") from None


def natural_log(x: Decimal) -> Decimal:
    if x <= 0:
        raise DomainError("ln undefined for <= 0.")
    try:
        return _from_float(math.log(float(x)))
    except ValueError:
        raise DomainError(f"ln operand too small: {x}") from None


def _trig(func, angle: Decimal, mode: TrigMode) -> Decimal:
    value = float(angle)
    if mode is TrigMode.DEGREES:
        value = math.radians(value)
    try:
        return _from_float(func(value))
    except ValueError:
        raise DomainError(f"Angle out of range: {plain(angle)}") from None


def to_binary(n: int) -> str:
    """Binary digits of n; negatives as 64-bit two's complement."""
    return format(n & _MASK64, 'b')


def to_hex(n: int) -> str:
    return format(n & _MASK64, 'X')


_BINARY_FUNCS = {
    Operation.ADD: add,
    Operation.SUB: subtract,
    Operation.MUL: multiply,
    Operation.DIV: divide,
    Operation.MOD: modulo,
    Operation.POW: power,
    Operation.PERCENT: percent,
}

_UNARY_FUNCS = {
    Operation.SQRT: square_root,
    Operation.LOG: log10,
    Operation.LN: natural_log,
    Operation.ABS: lambda x: x.copy_abs(),
}

_TRIG_FUNCS = {
    Operation.SIN: math.sin,
    Operation.COS: math.cos,
    Operation.TAN: math.tan,
}


# ---------- History ----------
class History:
    """Append-only list of record strings for one session."""

    def __init__(self) -> None:
        self._entries: List[str] = []

    def append(self, entry: str) -> None:
        self._entries.append(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def entries(self) -> List[str]:
        return list(self._entries)

    def numbered(self) -> List[Tuple[int, str]]:
        """Entries paired with their 1-based position, oldest first."""
        return list(enumerate(self._entries, start=1))

    def export(self, path: Union[str, Path]) -> int:
        """
        Write one line per entry to ``path``, replacing any existing content.

        Args:
            path: Destination filename.

        Returns:
            int: Number of lines written; 0 means the history was empty and
            the destination was left untouched.

        Raises:
            IOFailure: when the file cannot be opened or written.
        """
        if not self._entries:
            logger.info("History is empty; nothing written to %s", path)
            return 0
        try:
            p = Path(path)
            p.parent.mkdir(parents=True, exist_ok=True)
            with p.open('w', encoding='utf-8', newline='\n') as f:
                for entry in self._entries:
                    f.write(entry + '\n')
        except OSError as e:
            logger.exception("Failed to save history to %s: %s", path, e)
            raise IOFailure(f"Could not save history to {path}: {e}") from e
        logger.info("Saved %d history entries to %s", len(self._entries), path)
        return len(self._entries)


# ---------- Evaluator ----------
@dataclass(frozen=True)
class Evaluation:
    operation: Operation
    result: Union[Decimal, int, str]
    record: str


class Evaluator:
    """
    Runs calculator operations and records each success in ``history``.

    The trig mode lives on the instance; only ``toggle_trig_mode`` changes it.
    Failed operations raise a CalculatorError and leave the history alone.
    """

    def __init__(self, trig_mode: TrigMode = TrigMode.DEGREES, history: Optional[History] = None):
        self.trig_mode = trig_mode
        self.history = history if history is not None else History()

    def toggle_trig_mode(self) -> TrigMode:
        self.trig_mode = self.trig_mode.toggled()
        logger.info("Trig mode is now %s", self.trig_mode.value)
        return self.trig_mode

    def _record(self, operation: Operation, result, record: str) -> Evaluation:
        self.history.append(record)
        logger.debug("Recorded %s: %s", operation.value, record)
        return Evaluation(operation, result, record)

    def binary(self, op: Union[Operation, str], a: Number, b: Number) -> Evaluation:
        operation = normalize_operation(op, OperationKind.BINARY)
        a, b = coerce_decimal(a), coerce_decimal(b)
        try:
            result = _BINARY_FUNCS[operation](a, b)
        except CalculatorError as e:
            logger.info("%s(%s, %s) failed: %s", operation.value, a, b, e)
            raise
        record = f"{plain(a)} {operation.value} {plain(b)} = {plain(result)}"
        return self._record(operation, result, record)

    def unary(self, op: Union[Operation, str], x: Number) -> Evaluation:
        operation = normalize_operation(op, OperationKind.UNARY)
        x = coerce_decimal(x)
        try:
            if operation is Operation.FACTORIAL:
                if x != x.to_integral_value():
                    raise InvalidNumberFormat(f"Factorial needs an integer, got '{plain(x)}'")
                result = Decimal(factorial(int(x)))
            elif operation in _TRIG_FUNCS:
                result = _trig(_TRIG_FUNCS[operation], x, self.trig_mode)
            else:
                result = _UNARY_FUNCS[operation](x)
        except CalculatorError as e:
            logger.info("%s(%s) failed: %s", operation.value, x, e)
            raise
        record = f"{operation.value}({plain(x)}) = {plain(result)}"
        return self._record(operation, result, record)

    def convert(self, op: Union[Operation, str], text: Union[int, str]) -> Evaluation:
        operation = normalize_operation(op, OperationKind.CONVERSION)
        raw = str(text).strip()
        if operation in (Operation.DEC_TO_BIN, Operation.DEC_TO_HEX):
            value = parse_long(raw)
            render = to_binary if operation is Operation.DEC_TO_BIN else to_hex
            shown, result = str(value), render(value)
            output = result
        else:
            base = 2 if operation is Operation.BIN_TO_DEC else 16
            shown, result = raw, parse_long(raw, base)
            output = str(result)
        record = f"{operation.value}: {shown} -> {output}"
        return self._record(operation, result, record)

    def evaluate(self, op: Union[Operation, str], *operands: Number) -> Evaluation:
        """Dispatch on the operation's group; operands may be text."""
        operation = normalize_operation(op)
        if len(operands) != operation.kind.arity:
            raise InvalidNumberFormat(
                f"{operation.value} takes {operation.kind.arity} operand(s), got {len(operands)}")
        if operation.kind is OperationKind.BINARY:
            return self.binary(operation, *operands)
        if operation.kind is OperationKind.UNARY:
            return self.unary(operation, *operands)
        return self.convert(operation, *operands)


# ---------- Interactive session ----------
def read_decimal(prompt: str) -> Decimal:
    """Prompt until the user types a valid decimal. EOFError ends the prompt."""
    while True:
        try:
            return parse_decimal(input(prompt))
        except InvalidNumberFormat:
            print("Invalid decimal. Try again.")


def read_int(prompt: str) -> int:
    while True:
        try:
            return parse_int(input(prompt))
        except InvalidNumberFormat:
            print("Invalid integer. Try again.")


def read_long(prompt: str) -> int:
    while True:
        try:
            return parse_long(input(prompt))
        except InvalidNumberFormat:
            print("Invalid integer. Try again.")


def print_welcome():
    print("=== Advanced Calculator ===")
    print("Built-in operations: + - * / % pow sqrt factorial log ln sin cos tan")
    print("Conversions: decimal <-> binary, decimal <-> hex")
    print("History available and can be saved to a file.")


def print_menu(mode: TrigMode):
    print("\nMenu:")
    print(" 1) Binary operations (two operands)  e.g. add, sub, mul, div, pow, mod, percent")
    print(" 2) Unary operations (single operand) e.g. sqrt, factorial, log, ln, sin, cos, tan")
    print(" 3) Conversions (decimal <-> binary/hex)")
    print(f" 4) Toggle trig mode (currently {mode.value})")
    print(" 5) Show history")
    print(" 6) Save history to file")
    print(" 0) Exit")


def binary_operation(calc: Evaluator) -> Evaluation:
    print("Binary operations: add, sub, mul, div, mod, pow, percent")
    operation = normalize_operation(input("Enter operation: "), OperationKind.BINARY)
    a = read_decimal("Enter first number: ")
    b = read_decimal("Enter second number: ")
    return calc.binary(operation, a, b)


def unary_operation(calc: Evaluator) -> Evaluation:
    print("Unary operations: sqrt, factorial, log, ln, sin, cos, tan, abs")
    operation = normalize_operation(input("Enter operation: "), OperationKind.UNARY)
    if operation is Operation.FACTORIAL:
        x = read_int("Enter non-negative integer: ")
    elif operation in (Operation.LOG, Operation.LN):
        x = read_decimal("Enter number (>0): ")
    elif operation in _TRIG_FUNCS:
        x = read_decimal(f"Enter angle ({calc.trig_mode.value.lower()}): ")
    else:
        x = read_decimal("Enter number: ")
    return calc.unary(operation, x)


def conversions_menu(calc: Evaluator) -> Evaluation:
    print("Conversions:")
    print(" 1) Decimal to Binary")
    print(" 2) Binary to Decimal")
    print(" 3) Decimal to Hex")
    print(" 4) Hex to Decimal")
    operation = normalize_operation(input("Choose: "), OperationKind.CONVERSION)
    if operation in (Operation.DEC_TO_BIN, Operation.DEC_TO_HEX):
        return calc.convert(operation, read_long("Enter integer (decimal): "))
    base_name = 'binary' if operation is Operation.BIN_TO_DEC else 'hex'
    return calc.convert(operation, input(f"Enter {base_name} string: "))


def show_history(history: History):
    rows = history.numbered()
    if not rows:
        print("History is empty.")
        return
    print("History:")
    for i, entry in rows:
        print(f"{i}: {entry}")


def save_history(history: History, default_path: str = DEFAULT_HISTORY_FILE):
    if not len(history):
        print("Nothing to save - history is empty.")
        return
    filename = input(f"Enter filename to save [{default_path}]: ").strip() or default_path
    written = history.export(filename)
    print(f"History saved to {filename} ({written} entries)")


def user_menu(calc: Optional[Evaluator] = None, history_file: str = DEFAULT_HISTORY_FILE) -> Evaluator:
    """Interactive menu loop. Returns the evaluator when the user exits or input ends."""
    if calc is None:
        calc = Evaluator()
    print_welcome()
    actions = {
        '1': lambda: print(binary_operation(calc).record),
        '2': lambda: print(unary_operation(calc).record),
        '3': lambda: print(conversions_menu(calc).record),
        '4': lambda: print(f"Trig mode is now: {calc.toggle_trig_mode().value}"),
        '5': lambda: show_history(calc.history),
        '6': lambda: save_history(calc.history, history_file),
    }
    while True:
        print_menu(calc.trig_mode)
        try:
            choice = input("Choose option: ").strip()
            if choice in ('0', 'q', 'quit', 'exit'):
                print("Exiting. Bye!")
                break
            action = actions.get(choice)
            if action is None:
                print("Invalid choice - try again.")
                continue
            action()
        except CalculatorError as e:
            print(f"Error: {e}")
        except (EOFError, KeyboardInterrupt):
            print("\nExiting. Bye!")
            break
    return calc


# ---------- Command line ----------
def run_once(calc: Evaluator, tokens: List[str], save_path: Optional[str] = None) -> int:
    """Evaluate ``OP OPERAND [OPERAND]`` from the command line. Returns an exit status."""
    op, *operands = tokens
    try:
        evaluation = calc.evaluate(op, *operands)
        print(evaluation.record)
        if save_path:
            calc.history.export(save_path)
    except CalculatorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    return 0


def _parse_args(argv=None):
    p = argparse.ArgumentParser(description="Advanced Calculator: arithmetic, trig, logs and base conversions")
    p.add_argument('--radians', action='store_true', help='Start with trig functions in radian mode (default: degrees)')
    p.add_argument('--history-file', type=str, default=DEFAULT_HISTORY_FILE,
                   help=f'Default filename offered when saving history (default: {DEFAULT_HISTORY_FILE})')
    p.add_argument('--calc', nargs='+', metavar='TOKEN', default=None,
                   help='Evaluate one operation and exit, e.g. --calc div 1 3 or --calc dec->hex 255')
    p.add_argument('--save', type=str, default=None, help='With --calc, write the result record to this file')
    p.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default='WARNING',
                   help='Logging verbosity (default: WARNING)')
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))

    mode = TrigMode.RADIANS if args.radians else TrigMode.DEGREES
    calc = Evaluator(trig_mode=mode)

    if args.calc:
        return run_once(calc, args.calc, save_path=args.save)

    user_menu(calc, history_file=args.history_file)
    return 0


if __name__ == '__main__':
    sys.exit(main())
