## taskwrappr — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from taskwrappr.lexer import tokenize
from taskwrappr.errors import WrapprLexError


def _kinds(source: str):
    """Helper: lex a source string into `(kind, value)` pairs."""
    return [(t.kind, t.value) for t in tokenize(source)]


def test_call_with_arguments():
    assert _kinds('print(1, "a")') == [
        ('identifier', 'print'), ('expression_delimiter', '('), ('literal', '1'),
        ('argument_delimiter', ','), ('literal', '"a"'), ('expression_delimiter', ')'), ('eof', ''),
    ]


def test_delimiters_are_single_tokens():
    assert [k for k, _ in _kinds('{ } [ ]')] == ['block_delimiter'] * 2 + ['indexing_delimiter'] * 2 + ['eof']


def test_operators_use_longest_match():
    values = [v for k, v in _kinds('a += 1 <= b && !c ^^ d') if k == 'operator']
    assert values == ['+=', '<=', '&&', '!', '^^']


def test_all_augmented_operators_lex_whole():
    for op in ('+=', '-=', '*=', '/=', '%=', '^='):
        assert _kinds(f'x {op} 2')[1] == ('operator', op)


def test_keywords_become_literals_but_prefixes_stay_identifiers():
    assert _kinds('true trueish nil false') == [
        ('literal', 'true'), ('identifier', 'trueish'), ('literal', 'nil'), ('literal', 'false'), ('eof', ''),
    ]


def test_numbers_always_convert_to_float():
    tok = next(tokenize('-3.5'))
    assert tok.kind == 'literal' and tok.to_variable().value == -3.5
    var = next(tokenize('10')).to_variable()
    assert var.type == 'float' and var.value == 10.0


def test_literal_tokens_convert_to_variables():
    tokens = list(tokenize(r'"say \"hi\"" true nil'))
    assert tokens[0].to_variable().value == 'say "hi"'
    assert tokens[1].to_variable().value is True
    assert tokens[2].to_variable().type == 'nil'


def test_unterminated_string_yields_accumulated_text():
    [tok, eof] = list(tokenize('"abc'))
    assert tok.to_variable().value == 'abc'
    assert eof.kind == 'eof'


def test_comments_and_separators_are_skipped():
    tokens = list(tokenize('x # comment ( ]\n; y'))
    assert [t.value for t in tokens] == ['x', 'y', '']
    assert (tokens[1].line, tokens[1].column) == (2, 3)


def test_line_offset_and_index():
    tok = next(tokenize('  abc', line=5))
    assert (tok.line, tok.column, tok.index) == (5, 3, 2)


def test_unrecognized_character_reports_position():
    with pytest.raises(WrapprLexError) as exc:
        list(tokenize('a @ b'))
    assert (exc.value.line, exc.value.column) == (1, 3)
    assert "Unexpected character `@`" in str(exc.value)


def test_tokens_are_produced_lazily():
    tokens = tokenize('a @')
    assert next(tokens).value == 'a'
    with pytest.raises(WrapprLexError):
        next(tokens)
