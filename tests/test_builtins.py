## taskwrappr — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from taskwrappr import builtins
from taskwrappr.types import Variable, Block
from taskwrappr.errors import WrapprTypeError, WrapprValueError
from taskwrappr.builtins import load_builtins_environment


def _call(name: str, *values, env=None):
    """Helper: invoke a built-in action directly with Python values as arguments."""
    env = env or load_builtins_environment()
    return env.get_action(name).execute_fn(env, [Variable.from_value(v) for v in values])

def _bools(result):
    return [v.value for v in result]


def test_builtins_are_registered():
    env = load_builtins_environment()
    for name in ('if', 'elseIf', 'else', 'for', 'print', 'wait', 'pass',
                 'and', 'or', 'not', 'xor', 'nand', 'toString', 'toInteger', 'toFloat', 'toBoolean'):
        assert env.lookup_action(name) is not None, name
    assert env.get_action('if').validate_fn is builtins.requires_block


def test_logic_actions():
    assert _bools(_call('and', True, True, False)) == [False]
    assert _bools(_call('or', False, True)) == [True]
    assert _bools(_call('nand', True, True)) == [False]
    assert _bools(_call('not', False)) == [True]
    assert _bools(_call('xor', True, False, True)) == [False]
    assert _bools(_call('xor', True, True, True)) == [True]


def test_logic_argument_errors():
    with pytest.raises(WrapprTypeError, match="only accepts booleans"):
        _call('and', True, 1)
    with pytest.raises(WrapprTypeError, match="at least 2"):
        _call('xor', True)
    with pytest.raises(WrapprTypeError, match="at least 1"):
        _call('or')
    with pytest.raises(WrapprTypeError):
        _call('not', True, False)


def test_type_casts():
    assert _call('toString', 2.5) == [Variable('string', '2.5')]
    assert _call('toInteger', "3.7") == [Variable('integer', 3)]
    assert _call('toFloat', True) == [Variable('float', 1.0)]
    assert _call('toBoolean', "false") == [Variable('boolean', False)]
    assert _call('toBoolean', 0) == [Variable('boolean', False)]
    with pytest.raises(WrapprValueError):
        _call('toBoolean', "maybe")
    with pytest.raises(WrapprValueError):
        _call('toInteger', "1e400")
    with pytest.raises(WrapprValueError):
        _call('toInteger', "nan")
    with pytest.raises(WrapprTypeError):
        _call('toString', None)


def test_wait_sleeps_in_milliseconds(monkeypatch):
    delays = []
    monkeypatch.setattr(builtins.time, 'sleep', delays.append)
    assert _call('wait', 250) == []
    assert delays == [0.25]


def test_print_and_pass_return_arguments(capsys):
    assert _call('print', "hi", [1, "a"]) == [Variable('string', 'hi'), Variable.from_value([1, 'a'])]
    assert capsys.readouterr().out == 'hi [1, "a"]\n'
    assert _call('pass', 1, 2) == [Variable('integer', 1), Variable('integer', 2)]
    with pytest.raises(WrapprTypeError):
        _call('pass')


def test_if_conditions():
    assert _bools(_call('if', True)) == [True]
    assert _bools(_call('if', "")) == [False]
    with pytest.raises(WrapprTypeError):
        _call('if', 1.0)
    with pytest.raises(WrapprTypeError):
        _call('if', True, False)


def _with_last_result(value):
    env = load_builtins_environment()
    Block(env).last_result = None if value is None else Variable.from_value(value)
    return env

def test_else_if_only_tests_open_chains():
    assert _call('elseIf', True, env=_with_last_result(True)) == []
    assert _call('elseIf', True, env=_with_last_result(None)) == []
    assert _bools(_call('elseIf', True, env=_with_last_result(False))) == [True]
    assert _bools(_call('elseIf', False, env=_with_last_result(False))) == [False]


def test_else_negates_boolean_last_result():
    assert _bools(_call('else', env=_with_last_result(False))) == [True]
    assert _bools(_call('else', env=_with_last_result(True))) == [False]
    assert _bools(_call('else', env=_with_last_result(None))) == [False]
    assert _bools(_call('else', env=_with_last_result("text"))) == [False]
    with pytest.raises(WrapprTypeError):
        _call('else', True)
