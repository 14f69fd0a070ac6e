## taskwrappr — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from taskwrappr import parser
from taskwrappr.errors import WrapprParseError, WrapprIncompleteParse, WrapprNameError
from taskwrappr.builtins import load_builtins_environment
from taskwrappr.normalizer import SourceLine


def _parse(source: str):
    """Helper: parse source against a fresh built-in environment."""
    env = load_builtins_environment()
    return parser.parse(source, env, filename="<test>"), env


def test_classify_line_shapes():
    assert parser.classify_line('print(1, 2)') == parser.Statement('call', 'print', body='1, 2')
    assert parser.classify_line('x = 1 + 2') == parser.Statement('assign', 'x', '=', ' 1 + 2')
    assert parser.classify_line('x += 2').operator == '+='
    assert parser.classify_line('x ^= 2').kind == 'augmented'
    assert parser.classify_line('text.toUpper(a)').name == 'text.toUpper'
    assert parser.classify_line('else') == parser.Statement('call', 'else')
    assert parser.classify_line('{').kind == 'open'
    assert parser.classify_line('}').kind == 'close'


@pytest.mark.parametrize("line", ['1 + 2', 'x == 1', 'print(1) extra', '"text"', 'a.1 = 2'])
def test_invalid_lines(line):
    with pytest.raises(WrapprParseError):
        parser.classify_line(line)


def test_block_tree_structure():
    root, env = _parse("x = 1\nif(true) {\n  x = 2\n}\n")
    assert root.environment is env and env.block is root
    assert len(root.actions) == 2
    trailing = root.actions[1].block
    assert trailing is not None and len(trailing.actions) == 1
    assert trailing.environment.parent is env
    assert root.actions[0].block is None


def test_action_templates_are_cloned_per_call_site():
    root, env = _parse('print(1)\nprint(2, 3)')
    first, second = root.actions
    template = env.get_action('print')
    assert first is not template and second is not template
    assert template.arguments == []
    assert [len(first.arguments), len(second.arguments)] == [1, 2]
    assert first.meta['line'] == 1 and second.meta['line'] == 2


def test_unmatched_closing_brace():
    with pytest.raises(WrapprParseError, match="Unmatched closing brace"):
        _parse("x = 1\n}")
    with pytest.raises(WrapprParseError, match="Unmatched closing brace"):
        parser.parse_lines([SourceLine(1, '}')], load_builtins_environment())


def test_unmatched_opening_brace():
    with pytest.raises(WrapprParseError, match="Unmatched opening brace"):
        _parse("if(true) {\nx = 1")
    with pytest.raises(WrapprParseError, match="Unmatched opening brace") as exc:
        parser.parse_lines([SourceLine(1, 'if(true)'), SourceLine(1, '{')], load_builtins_environment())
    assert exc.value.line == 1


def test_unclosed_brace_is_incomplete_for_repl():
    with pytest.raises(WrapprIncompleteParse):
        _parse("if(true) {")


def test_block_without_preceding_action():
    with pytest.raises(WrapprParseError, match="Block without preceding action"):
        _parse("{\n}")


def test_duplicate_trailing_block():
    with pytest.raises(WrapprParseError, match="already has a trailing block"):
        _parse("if(true) {\n}\n{\n}")


def test_unknown_action_reports_line():
    with pytest.raises(WrapprNameError) as exc:
        _parse("x = 1\nfoo(1)")
    assert exc.value.line == 2
    assert exc.value.filename == "<test>"


def test_expression_errors_report_line():
    with pytest.raises(WrapprParseError) as exc:
        _parse("x = 1\ny = 2 @ 3")
    assert exc.value.line == 2


def test_augmented_assignment_resolves_at_run_time():
    root, env = _parse("z += 1")
    assert len(root.actions) == 1
