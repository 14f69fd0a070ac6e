## taskwrappr — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from taskwrappr.api import Runtime
from taskwrappr.errors import (WrapprNameError, WrapprTypeError, WrapprValueError, WrapprValidationError,
                               WrapprZeroDivisionError)


def _run(source: str, **kwargs):
    """Helper: run source in a fresh runtime and return it for inspection."""
    rt = Runtime()
    rt.run(source, **kwargs)
    return rt


def test_if_else_branches():
    source = "y = 0\nif(x > 1) {\n  y = 1\n} else {\n  y = 2\n}"
    for x, expected in [(5, 1), (0, 2)]:
        rt = Runtime()
        rt.set_variable('x', x)
        rt.run(source)
        assert rt.get_variable('y') == expected


def test_else_if_chain():
    source = """
    y = 0
    if(x == 1) { y = 10 }
    elseIf(x == 2) { y = 20 }
    elseIf(x == 3) { y = 30 }
    else { y = 40 }
    """
    for x, expected in [(1, 10), (2, 20), (3, 30), (4, 40)]:
        rt = Runtime()
        rt.set_variable('x', x)
        rt.run(source)
        assert rt.get_variable('y') == expected, x


def test_nested_block_mutates_outer_scope():
    rt = _run("count = 1\nif(true) {\n  if(true) {\n    count = count + 1\n  }\n}")
    assert rt.get_variable('count') == 2


def test_block_local_variables_stay_local():
    rt = _run("if(true) {\n  inner = 1\n}")
    with pytest.raises(WrapprNameError):
        rt.get_variable('inner')


def test_for_runs_block_once():
    rt = _run("n = 0\nfor(true) {\n  n += 1\n}\nfor(false) {\n  n += 1\n}")
    assert rt.get_variable('n') == 1


def test_failure_keeps_earlier_effects():
    rt = Runtime()
    with pytest.raises(WrapprZeroDivisionError) as exc:
        rt.run("a = 1\nb = a / 0\nc = 3")
    assert exc.value.line == 2
    assert rt.get_variable('a') == 1
    with pytest.raises(WrapprNameError):
        rt.get_variable('c')


def test_validation_aborts_before_side_effects():
    rt = Runtime()
    with pytest.raises(WrapprValidationError, match="requires a trailing block"):
        rt.run("a = 1\nif(true)")
    with pytest.raises(WrapprNameError):
        rt.get_variable('a')


def test_trailing_block_needs_single_result():
    rt = Runtime()
    rt.register_function('pair', lambda: (True, True))
    with pytest.raises(WrapprTypeError, match="trailing block needs one"):
        rt.run("pair() {\n  x = 1\n}")


def test_trailing_block_conditions():
    rt = Runtime()
    rt.register_function('one', lambda: 1)
    rt.register_function('word', lambda: "abc")
    rt.run("hit = false\none() {\n  hit = true\n}")
    assert rt.get_variable('hit') is True
    with pytest.raises(WrapprValueError):
        rt.run("word() {\n  hit = false\n}")


def test_if_condition_types():
    with pytest.raises(WrapprTypeError, match="boolean condition"):
        _run("if(1) {\n}")
    rt = _run('y = 0\nif("x") {\n  y = 1\n}\nz = 0\nif("") {\n  z = 1\n}')
    assert rt.get_variable('y') == 1 and rt.get_variable('z') == 0


def test_augmented_assignment():
    rt = _run("p = 2\np ^= 3\np -= 1")
    assert rt.get_variable('p') == 7
    with pytest.raises(WrapprNameError) as exc:
        _run("x = 1\nq += 1")
    assert exc.value.line == 2


def test_print_writes_values(capsys):
    _run('print("a", 1, true)\nprint()')
    assert capsys.readouterr().out == "a 1 true\n\n"


def test_block_states():
    rt = Runtime()
    root = rt.run("if(true) {\n  x = 1\n}\nif(false) {\n  x = 2\n}")
    assert root.state == "completed" and root.executed
    ran, skipped = root.actions[0].block, root.actions[1].block
    assert ran.state == "completed" and ran.executed
    assert skipped.state == "pending" and not skipped.executed
    assert isinstance(root.last_result.value, bool)


def test_failed_block_state():
    rt = Runtime()
    rt.register_function('boom', lambda: 1 / 0)
    with pytest.raises(ZeroDivisionError) as exc:
        rt.run("x = 1\nboom()")
    assert exc.value.line == 2
    assert exc.value.action.name == 'boom'


def test_verbose_trace_and_stats(capsys):
    stats = {}
    _run("x = 1\nif(true) {\n  y = 2\n}", verbosity=2, stats=stats)
    out = capsys.readouterr().out
    assert "=>" in out and "x = 1" in out and "y = 2" in out
    assert stats['steps'] == 3


def test_blocks_only_trace_at_low_verbosity(capsys):
    _run("x = 1\nif(true) {\n  y = 2\n}", verbosity=1)
    out = capsys.readouterr().out
    assert "if(true)" in out and "x = 1" not in out
