## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import math
from typing import Callable

from .types import Variable
from .errors import WrapprTypeError, WrapprValueError, WrapprZeroDivisionError


_UNSUPPORTED = ('nil', 'invalid', 'array')


def _check_operands(op: str, *operands: Variable) -> None:
    for v in operands:
        if v.type in _UNSUPPORTED:
            raise WrapprTypeError(f"Operator `{op}` does not support {v.type} operands.")

def _compatible_operands(op: str, a: Variable, b: Variable) -> tuple[Variable, Variable]:
    """Stringify both operands when either is a string, otherwise coerce both to float."""
    _check_operands(op, a, b)
    if 'string' in (a.type, b.type):
        return Variable('string', a.to_string()), Variable('string', b.to_string())
    return Variable('float', a.to_float()), Variable('float', b.to_float())

def _arithmetic(op: str, a: Variable, b: Variable) -> tuple[float, float]:
    a, b = _compatible_operands(op, a, b)
    if a.type == 'string':
        raise WrapprTypeError(f"Operator `{op}` is not supported for strings.")
    return a.value, b.value

def _floats(op: str, a: Variable, b: Variable) -> tuple[float, float]:
    _check_operands(op, a, b)
    return a.to_float(), b.to_float()

def _math(op: str, fn: Callable[[float, float], float], x: float, y: float) -> Variable:
    try:
        return Variable('float', fn(x, y))
    except (ValueError, OverflowError) as exc:
        raise WrapprValueError(f"Operator `{op}` failed on {x!r} and {y!r}: {exc}.") from None


## ARITHMETIC
def op_add(a: Variable, b: Variable) -> Variable:
    a, b = _compatible_operands('+', a, b)
    return Variable(a.type, a.value + b.value)

def op_sub(a: Variable, b: Variable) -> Variable:
    x, y = _arithmetic('-', a, b)
    return Variable('float', x - y)

def op_mul(a: Variable, b: Variable) -> Variable:
    x, y = _arithmetic('*', a, b)
    return Variable('float', x * y)

def op_div(a: Variable, b: Variable) -> Variable:
    x, y = _arithmetic('/', a, b)
    if y == 0: raise WrapprZeroDivisionError("Division by zero.")
    return Variable('float', x / y)

def op_mod(a: Variable, b: Variable) -> Variable:
    x, y = _floats('%', a, b)
    # Remainder is undefined for a zero divisor or infinite dividend, both give nan.
    if y == 0 or math.isinf(x): return Variable('float', math.nan)
    return _math('%', math.fmod, x, y)

def op_pow(a: Variable, b: Variable) -> Variable:
    return _math('^', math.pow, *_floats('^', a, b))

def op_neg(x: Variable) -> Variable:
    if x.type not in ('integer', 'float'):
        raise WrapprTypeError(f"Unary `-` requires a numeric operand, got {x.type}.")
    return Variable('float', -float(x.value))

## COMPARISONS
def _compare(op: str, fn: Callable[[object, object], bool], a: Variable, b: Variable) -> Variable:
    a, b = _compatible_operands(op, a, b)
    if a.type == 'string' and op not in ('==', '!='):
        raise WrapprTypeError(f"Operator `{op}` is not supported for strings.")
    return Variable('boolean', fn(a.value, b.value))

def op_eq(a: Variable, b: Variable) -> Variable: return _compare('==', lambda x, y: x == y, a, b)
def op_ne(a: Variable, b: Variable) -> Variable: return _compare('!=', lambda x, y: x != y, a, b)
def op_lt(a: Variable, b: Variable) -> Variable: return _compare('<', lambda x, y: x < y, a, b)
def op_le(a: Variable, b: Variable) -> Variable: return _compare('<=', lambda x, y: x <= y, a, b)
def op_gt(a: Variable, b: Variable) -> Variable: return _compare('>', lambda x, y: x > y, a, b)
def op_ge(a: Variable, b: Variable) -> Variable: return _compare('>=', lambda x, y: x >= y, a, b)

## BOOLEAN LOGIC
def op_and(a: Variable, b: Variable) -> Variable: return Variable('boolean', a.is_truthy() and b.is_truthy())
def op_or(a: Variable, b: Variable) -> Variable: return Variable('boolean', a.is_truthy() or b.is_truthy())
def op_xor(a: Variable, b: Variable) -> Variable: return Variable('boolean', a.is_truthy() != b.is_truthy())
def op_not(x: Variable) -> Variable: return Variable('boolean', not x.is_truthy())


BINARY: dict[str, Callable[[Variable, Variable], Variable]] = {
    '+': op_add, '-': op_sub, '*': op_mul, '/': op_div, '%': op_mod, '^': op_pow,
    '==': op_eq, '!=': op_ne, '<': op_lt, '<=': op_le, '>': op_gt, '>=': op_ge,
    '&&': op_and, '||': op_or, '^^': op_xor,
}

UNARY: dict[str, Callable[[Variable], Variable]] = {'-': op_neg, '!': op_not}

# Binding tiers; logical-or/xor sit below everything, comparisons share a tier with `+ - &&`.
PRECEDENCE: dict[str, int] = {
    '||': 0, '^^': 0,
    '+': 1, '-': 1, '==': 1, '!=': 1, '<': 1, '<=': 1, '>': 1, '>=': 1, '&&': 1,
    '*': 2, '/': 2, '%': 2,
    '^': 4,
}
UNARY_PRECEDENCE: dict[str, int] = {'-': 3, '!': 5}

AUGMENTED: dict[str, str] = {'+=': '+', '-=': '-', '*=': '*', '/=': '/', '%=': '%', '^=': '^'}
