import math
from decimal import Decimal

import pytest

from advanced_calculator import (
    Evaluator, TrigMode, Operation, SCALE,
    DivisionByZero, NegativeSquareRoot, NegativeFactorial, DomainError,
    InvalidNumberFormat, UnknownOperation, MAX_FACTORIAL,
    divide, percent, modulo, parse_decimal,
)


@pytest.fixture
def calc():
    return Evaluator()


def test_add_sub_mul_are_exact(calc):
    assert calc.binary('add', '0.1', '0.2').result == Decimal('0.3')
    assert calc.binary('sub', '1', '0.0000000000000000000000000001').result == Decimal('0.9999999999999999999999999999')
    big_a, big_b = 12345678901234567890123, 98765432109876543210
    assert calc.binary('mul', str(big_a), str(big_b)).result == Decimal(big_a * big_b)


def test_binary_record_format(calc):
    ev = calc.binary('add', '2.50', '3')
    assert ev.record == '2.5 add 3 = 5.5'
    assert ev.operation is Operation.ADD


def test_symbol_aliases_record_canonical_name(calc):
    assert calc.binary('+', '1', '2').record == '1 add 2 = 3'
    assert calc.binary('x', '4', '5').record == '4 mul 5 = 20'
    assert calc.binary('^', '2', '10').record == '2 pow 10 = 1024'


def test_divide_rounds_to_scale(calc):
    ev = calc.binary('div', '1', '3')
    assert ev.result == Decimal('0.333333333333')
    assert ev.record == '1 div 3 = 0.333333333333'
    assert calc.binary('div', '2', '3').result == Decimal('0.666666666667')
    assert calc.binary('div', '10', '4').record == '10 div 4 = 2.5'


def test_divide_rounds_half_up_away_from_zero():
    assert divide(Decimal(1), Decimal('2000000000000')) == Decimal('1E-12')
    assert divide(Decimal(-1), Decimal('2000000000000')) == Decimal('-1E-12')


@pytest.mark.parametrize('a,b', [('1', '3'), ('22', '7'), ('-5.5', '0.3'), ('123456.789', '-0.007')])
def test_divide_then_multiply_returns_dividend(a, b):
    a, b = Decimal(a), Decimal(b)
    q = divide(a, b)
    assert abs(q * b - a) <= Decimal(10) ** -SCALE * abs(b)


def test_divide_by_zero_records_nothing(calc):
    with pytest.raises(DivisionByZero):
        calc.binary('div', '5', '0')
    with pytest.raises(DivisionByZero):
        calc.binary('/', '5', '0.000')
    assert len(calc.history) == 0


def test_modulo_truncates_toward_zero():
    assert modulo(Decimal(7), Decimal(3)) == 1
    assert modulo(Decimal(-7), Decimal(3)) == -1
    assert modulo(Decimal(7), Decimal(-3)) == 1
    assert modulo(Decimal('5.5'), Decimal(2)) == Decimal('1.5')
    with pytest.raises(DivisionByZero):
        modulo(Decimal(1), Decimal(0))


def test_pow_supports_fractional_exponents(calc):
    assert calc.binary('pow', '4', '0.5').result == 2
    assert calc.binary('pow', '2', '-1').record == '2 pow -1 = 0.5'


def test_pow_domain_failures(calc):
    with pytest.raises(DomainError):
        calc.binary('pow', '-8', '0.5')
    with pytest.raises(DomainError):
        calc.binary('pow', '10', '400')
    assert len(calc.history) == 0


def test_percent():
    assert percent(Decimal(200), Decimal(15)) == 30
    assert percent(Decimal(50), Decimal('12.5')) == Decimal('6.25')
    assert percent(Decimal(1), Decimal(1)) == Decimal('0.01')


def test_sqrt(calc):
    assert calc.unary('sqrt', '4').result == 2
    assert calc.unary('sqrt', '4').record == 'sqrt(4) = 2'
    assert float(calc.unary('sqrt', '2').result) == math.sqrt(2)
    with pytest.raises(NegativeSquareRoot):
        calc.unary('sqrt', '-1')


@pytest.mark.parametrize('n,expected', [(0, 1), (1, 1), (5, 120), (20, 2432902008176640000),
                                        (21, 51090942171709440000)])
def test_factorial(calc, n, expected):
    assert calc.unary('factorial', n).result == expected


def test_factorial_errors(calc):
    with pytest.raises(NegativeFactorial):
        calc.unary('factorial', -3)
    with pytest.raises(InvalidNumberFormat):
        calc.unary('factorial', '2.5')
    assert len(calc.history) == 0


def test_factorial_record(calc):
    assert calc.unary('factorial', '5').record == 'factorial(5) = 120'


def test_logarithms(calc):
    assert calc.unary('log', '100').result == 2
    assert calc.unary('ln', '1').result == 0
    assert float(calc.unary('ln', '10').result) == pytest.approx(math.log(10))
    for bad in ('0', '-1'):
        with pytest.raises(DomainError):
            calc.unary('log', bad)
        with pytest.raises(DomainError):
            calc.unary('ln', bad)
    assert len(calc.history) == 3


def test_trig_in_degrees_by_default(calc):
    assert calc.trig_mode is TrigMode.DEGREES
    assert calc.unary('sin', '90').result == 1
    assert calc.unary('cos', '0').record == 'cos(0) = 1'
    assert float(calc.unary('tan', '45').result) == pytest.approx(1.0)


def test_trig_in_radians(calc):
    calc.toggle_trig_mode()
    half_pi = Decimal(repr(math.pi / 2))
    assert float(calc.unary('sin', half_pi).result) == pytest.approx(1.0)
    assert calc.unary('sin', '0').result == 0


def test_toggle_twice_restores_mode(calc):
    assert calc.toggle_trig_mode() is TrigMode.RADIANS
    assert calc.toggle_trig_mode() is TrigMode.DEGREES
    assert len(calc.history) == 0


def test_abs_is_exact(calc):
    ev = calc.unary('abs', '-3.50')
    assert ev.result == Decimal('3.50')
    assert ev.record == 'abs(-3.5) = 3.5'


def test_wrong_group_is_unknown(calc):
    with pytest.raises(UnknownOperation):
        calc.binary('sqrt', '1', '2')
    with pytest.raises(UnknownOperation):
        calc.unary('add', '1')


def test_invalid_operand_text(calc):
    with pytest.raises(InvalidNumberFormat):
        calc.binary('add', 'abc', '1')
    assert len(calc.history) == 0


def test_history_counts_only_successes(calc):
    calc.binary('add', '1', '1')
    with pytest.raises(DivisionByZero):
        calc.binary('div', '1', '0')
    calc.unary('abs', '-2')
    with pytest.raises(NegativeSquareRoot):
        calc.unary('sqrt', '-4')
    calc.convert('dec->bin', '2')
    assert calc.history.entries() == ['1 add 1 = 2', 'abs(-2) = 2', 'dec->bin: 2 -> 10']


def test_evaluate_dispatches_by_group(calc):
    assert calc.evaluate('add', '1', '2').result == 3
    assert calc.evaluate('sqrt', '9').result == 3
    assert calc.evaluate('hex->dec', 'FF').result == 255
    with pytest.raises(InvalidNumberFormat):
        calc.evaluate('add', '1')
    assert len(calc.history) == 3


def test_log_of_tiny_positive_operand_is_domain_error(calc):
    with pytest.raises(DomainError):
        calc.unary('log', '1e-400')
    with pytest.raises(DomainError):
        calc.unary('ln', '1e-400')
    assert len(calc.history) == 0


def test_float_overflow_is_domain_error(calc):
    with pytest.raises(DomainError):
        calc.unary('sqrt', '1e400')
    with pytest.raises(DomainError):
        calc.binary('pow', '1e400', '1')
    with pytest.raises(DomainError):
        calc.unary('log', '1e400')
    assert len(calc.history) == 0


def test_factorial_input_is_capped(calc):
    assert calc.unary('factorial', MAX_FACTORIAL).result > 0
    with pytest.raises(InvalidNumberFormat):
        calc.unary('factorial', MAX_FACTORIAL + 1)
    with pytest.raises(InvalidNumberFormat):
        calc.unary('factorial', '100000000')
    assert len(calc.history) == 1


def test_operand_exponent_boundary():
    assert parse_decimal('1e9999') == Decimal('1E+9999')
    assert parse_decimal('1e-9999') == Decimal('1E-9999')
    with pytest.raises(InvalidNumberFormat):
        parse_decimal('1e10000')
    with pytest.raises(InvalidNumberFormat):
        parse_decimal('1e-10000')
