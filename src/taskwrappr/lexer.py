## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re
from typing import Iterator, Literal, NamedTuple

import lark

from .types import Variable, STRING_PATTERN, nil
from .errors import WrapprLexError


MAX_OPERATOR_LENGTH = 4

OPERATORS = (
    '+=', '-=', '*=', '/=', '%=', '^=',
    '==', '!=', '<=', '>=', '&&', '||', '^^', ':=',
    '+', '-', '*', '/', '%', '^', '<', '>', '!', '=', '.',
)

GRAMMAR = r"""start: _token*
_token: IDENTIFIER | TRUE | FALSE | NIL | NUMBER | STRING | OPERATOR
      | LBRACE | RBRACE | LPAR | RPAR | LSQB | RSQB | COMMA

// LITERALS
TRUE: "true"
FALSE: "false"
NIL: "nil"
NUMBER: /-?(?:\d+(?:\.\d*)?|\.\d+)/
STRING: /"(?:[^"\\]|\\.)*"?/s
IDENTIFIER: /[^\W\d]\w*/

// OPERATORS, longest first
OPERATOR: /%OPERATORS%/

// DELIMITERS
LBRACE: "{"
RBRACE: "}"
LPAR: "("
RPAR: ")"
LSQB: "["
RSQB: "]"
COMMA: ","

// SEPARATORS & COMMENTS
SEMICOLON: ";"
COMMENT: /#[^\n]*/

%import common.WS
%ignore WS
%ignore SEMICOLON
%ignore COMMENT
""".replace('%OPERATORS%', '|'.join(re.escape(op).replace('/', r'\/') for op in sorted(OPERATORS, key=len, reverse=True)))


TokenKind = Literal["identifier", "operator", "literal", "argument_delimiter", "block_delimiter",
                    "expression_delimiter", "indexing_delimiter", "eof"]

_KINDS: dict[str, TokenKind] = {
    'IDENTIFIER': 'identifier', 'OPERATOR': 'operator',
    'TRUE': 'literal', 'FALSE': 'literal', 'NIL': 'literal', 'NUMBER': 'literal', 'STRING': 'literal',
    'COMMA': 'argument_delimiter',
    'LBRACE': 'block_delimiter', 'RBRACE': 'block_delimiter',
    'LPAR': 'expression_delimiter', 'RPAR': 'expression_delimiter',
    'LSQB': 'indexing_delimiter', 'RSQB': 'indexing_delimiter',
}


class Token(NamedTuple):
    kind: TokenKind
    value: str
    line: int
    column: int
    index: int

    def __repr__(self):
        return f"Token({self.kind}, {self.value!r}, {self.line}:{self.column})"

    def to_variable(self) -> Variable:
        """Convert a literal token into its value; numbers always lex as floats."""
        if self.kind != 'literal':
            raise WrapprLexError(f"Token `{self.value}` is not a literal.", line=self.line, column=self.column)
        match self.value:
            case 'true' | 'false': return Variable('boolean', self.value == 'true')
            case 'nil': return nil()
        if self.value.startswith('"'):
            # Unterminated strings at end of input keep whatever was accumulated.
            body = self.value[1:-1] if STRING_PATTERN.fullmatch(self.value) else self.value[1:]
            return Variable('string', re.sub(r'\\(["\\])', r'\1', body))
        return Variable('float', float(self.value))


_LEXER: lark.Lark | None = None

def _get_lexer() -> lark.Lark:
    global _LEXER
    if _LEXER is None:
        _LEXER = lark.Lark(GRAMMAR, parser='lalr', lexer='basic')
    return _LEXER


def tokenize(source: str, *, line: int = 1) -> Iterator[Token]:
    """Lazily yield tokens from `source`, finishing with an `eof` token.

    The first unrecognized character raises `WrapprLexError` while iterating, with the
    position of the offending character; `line` offsets the reported line numbers.
    """
    offset = line - 1
    stream = _get_lexer().lex(source)
    while True:
        try:
            tok = next(stream)
        except StopIteration:
            break
        except lark.exceptions.UnexpectedCharacters as exc:
            raise WrapprLexError(f"Unexpected character `{exc.char}`.", line=exc.line + offset, column=exc.column) from None
        yield Token(_KINDS[tok.type], tok.value, tok.line + offset, tok.column, tok.start_pos)

    last_line = source.count('\n') + 1 + offset
    last_column = len(source) - (source.rfind('\n') + 1) + 1
    yield Token('eof', '', last_line, last_column, len(source))
