## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Iterable, Literal, NamedTuple

from .types import Action, Block
from .lexer import tokenize
from .errors import WrapprError, WrapprParseError, WrapprRuntimeError
from .operators import BINARY, AUGMENTED
from .normalizer import SourceLine, normalize_lines
from .expressions import compile_expression, compile_call, find_closing_paren


LineKind = Literal["open", "close", "call", "assign", "augmented"]


class Statement(NamedTuple):
    kind: LineKind
    name: str = ''
    operator: str = ''
    body: str = ''


def classify_line(text: str, line: int = 1) -> Statement:
    """Decide what a normalized line is from its first few tokens."""
    if text in ('{', '}'):
        return Statement('open' if text == '{' else 'close')

    tokens = tokenize(text, line=line)
    first = next(tokens)
    if first.kind != 'identifier':
        raise WrapprParseError(f"Invalid line `{text}`.", line=line, column=first.column)

    name, tok = first.value, next(tokens)
    # Dotted names address actions registered by host modules.
    while tok.kind == 'operator' and tok.value == '.':
        if (part := next(tokens)).kind != 'identifier':
            raise WrapprParseError(f"Invalid name in line `{text}`.", line=line, column=part.column)
        name, tok = f"{name}.{part.value}", next(tokens)

    if tok.value == '(' and tok.kind == 'expression_delimiter':
        if find_closing_paren(text, tok.index) != len(text) - 1:
            raise WrapprParseError(f"Invalid call `{text}`, unexpected content after arguments.", line=line)
        return Statement('call', name, body=text[tok.index + 1:-1])
    if tok.kind == 'eof':
        return Statement('call', name)
    if tok.kind == 'operator' and tok.value == '=' and '.' not in name:
        return Statement('assign', name, '=', text[tok.index + 1:])
    if tok.kind == 'operator' and tok.value in AUGMENTED and '.' not in name:
        return Statement('augmented', name, tok.value, text[tok.index + len(tok.value):])
    raise WrapprParseError(f"Invalid line `{text}`.", line=line, column=tok.column)


def _evaluate_single(expression: Action, env, name: str):
    if len(values := expression.execute(env)) != 1:
        raise WrapprRuntimeError(f"Assignment to `{name}` requires exactly one value, got {len(values)}.")
    return values[0]

def make_assignment(name: str, expression: Action, meta: dict) -> Action:
    def execute(env, _):
        return [env.set_variable(name, _evaluate_single(expression, env, name))]
    return Action(execute, name=f"{name} =", meta=meta)

def make_augmented_assignment(name: str, operator: str, expression: Action, meta: dict) -> Action:
    binary = BINARY[AUGMENTED[operator]]

    def execute(env, _):
        current = env.get_variable(name)
        return [env.set_variable(name, binary(current, _evaluate_single(expression, env, name)))]
    return Action(execute, name=f"{name} {operator}", meta=meta)


def parse_lines(lines: Iterable[SourceLine], environment, *, filename: str | None = None) -> Block:
    """Build the block tree for normalized lines, rooted in `environment`."""
    root = Block(environment)
    stack: list[tuple[Block, int]] = [(root, 0)]

    for line, text in lines:
        current = stack[-1][0]
        meta = {'line': line, 'filename': filename, 'source': text}
        try:
            match (stmt := classify_line(text, line)).kind:
                case 'open':
                    stack.append((Block(current.environment.child()), line))
                case 'close':
                    if len(stack) == 1:
                        raise WrapprParseError("Unmatched closing brace `}`.", line=line)
                    finished, _ = stack.pop()
                    parent = stack[-1][0]
                    if not parent.actions:
                        raise WrapprParseError("Block without preceding action.", line=line)
                    if (target := parent.actions[-1]).block is not None:
                        raise WrapprParseError(f"Action `{target.name}` already has a trailing block.", line=line)
                    target.block = finished
                case 'call':
                    current.actions.append(compile_call(stmt.name, stmt.body, current.environment, meta=meta))
                case 'assign':
                    expression = compile_expression(stmt.body, current.environment, meta=meta)
                    current.actions.append(make_assignment(stmt.name, expression, meta))
                case 'augmented':
                    expression = compile_expression(stmt.body, current.environment, meta=meta)
                    current.actions.append(make_augmented_assignment(stmt.name, stmt.operator, expression, meta))
        except WrapprError as exc:
            if exc.line is None:
                exc.line, exc.column = line, None
            exc.filename = exc.filename or filename
            raise

    if len(stack) > 1:
        raise WrapprParseError("Unmatched opening brace `{`.", line=stack[-1][1], filename=filename)
    return root


def parse(content: str, environment, *, filename: str | None = None) -> Block:
    return parse_lines(normalize_lines(content, filename=filename), environment, filename=filename)
