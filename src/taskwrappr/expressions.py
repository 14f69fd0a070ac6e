## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re
from typing import Literal, NamedTuple

from .types import Action, Variable, TRUE_LITERAL, FALSE_LITERAL, NIL_LITERAL, parse_literal
from .errors import WrapprParseError, WrapprLexError, WrapprRuntimeError
from .lexer import OPERATORS, MAX_OPERATOR_LENGTH
from .operators import BINARY, UNARY, PRECEDENCE, UNARY_PRECEDENCE


NUMBER_RE = re.compile(r'-?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?')
IDENTIFIER_RE = re.compile(r'[^\W\d]\w*(?:\.[^\W\d]\w*)*')
OPERATOR_CHARS = frozenset(''.join(OPERATORS) + '&|')


class Element(NamedTuple):
    kind: Literal["number", "string", "name", "call", "operator", "lparen", "rparen"]
    text: str
    offset: int


class Term(NamedTuple):
    kind: Literal["literal", "variable", "action", "binary", "unary", "lparen", "rparen"]
    text: str
    value: Variable | Action | None = None

    def __repr__(self):
        return self.text


def _is_prefix_position(previous) -> bool:
    """A `-` or `!` is unary at the start, after `(`, or after another operator."""
    return previous is None or previous.kind in ('operator', 'lparen', 'binary', 'unary')


def find_closing_paren(text: str, start: int) -> int:
    """Index of the `)` matching the `(` at `start`, skipping quoted strings; -1 if unmatched."""
    depth, in_quote, escaped = 0, False, False
    for i in range(start, len(text)):
        ch = text[i]
        if in_quote:
            if escaped: escaped = False
            elif ch == '\\': escaped = True
            elif ch == '"': in_quote = False
        elif ch == '"': in_quote = True
        elif ch == '(': depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0: return i
    return -1


def _find_closing_quote(text: str, start: int) -> int:
    escaped = False
    for i in range(start + 1, len(text)):
        if escaped: escaped = False
        elif text[i] == '\\': escaped = True
        elif text[i] == '"': return i
    return -1


def split_arguments(text: str) -> list[str]:
    """Split a call's argument text at top-level commas, respecting parens and strings."""
    args, current = [], []
    depth, in_quote, escaped = 0, False, False
    for ch in text:
        if in_quote:
            if escaped: escaped = False
            elif ch == '\\': escaped = True
            elif ch == '"': in_quote = False
        elif ch == '"': in_quote = True
        elif ch == '(': depth += 1
        elif ch == ')': depth -= 1
        elif ch == ',' and depth == 0:
            args.append(''.join(current).strip())
            current = []
            continue
        current.append(ch)
    args.append(''.join(current).strip())
    return [a for a in args if a]


def segment(text: str) -> list[Element]:
    elements: list[Element] = []
    i = 0
    while i < len(text):
        ch = text[i]
        previous = elements[-1] if elements else None

        if ch.isspace():
            i += 1
            continue

        if (m := NUMBER_RE.match(text, i)) and (ch != '-' or _is_prefix_position(previous)):
            elements.append(Element('number', m.group(), i))
            i = m.end()
        elif (ch.isalpha() or ch == '_') and (m := IDENTIFIER_RE.match(text, i)):
            end = m.end()
            if end < len(text) and text[end] == '(':
                if (close := find_closing_paren(text, end)) < 0:
                    raise WrapprParseError(f"Unmatched `(` in call to `{m.group()}`.", column=i + 1)
                elements.append(Element('call', text[i:close + 1], i))
                i = close + 1
            else:
                elements.append(Element('name', m.group(), i))
                i = end
        elif ch == '"':
            if (close := _find_closing_quote(text, i)) < 0:
                raise WrapprParseError("Unclosed string literal in expression.", column=i + 1)
            elements.append(Element('string', text[i:close + 1], i))
            i = close + 1
        elif ch in '()':
            elements.append(Element('lparen' if ch == '(' else 'rparen', ch, i))
            i += 1
        elif ch in OPERATOR_CHARS:
            for length in range(MAX_OPERATOR_LENGTH, 0, -1):
                if text[i:i + length] in OPERATORS: break
            else:
                raise WrapprParseError(f"Unknown operator `{ch}`.", column=i + 1)
            elements.append(Element('operator', text[i:i + length], i))
            i += length
        else:
            raise WrapprLexError(f"Unexpected character `{ch}` in expression.", column=i + 1)
    return elements


def classify(elements: list[Element], env, *, meta: dict | None = None) -> list[Term]:
    terms: list[Term] = []
    for el in elements:
        previous = terms[-1] if terms else None
        match el.kind:
            case 'number' | 'string':
                terms.append(Term('literal', el.text, parse_literal(el.text)))
            case 'name' if el.text in (TRUE_LITERAL, FALSE_LITERAL, NIL_LITERAL):
                terms.append(Term('literal', el.text, parse_literal(el.text)))
            case 'name':
                terms.append(Term('variable', el.text))
            case 'call':
                name, _, rest = el.text.partition('(')
                terms.append(Term('action', el.text, compile_call(name, rest[:-1], env, meta=meta)))
            case 'lparen' | 'rparen':
                terms.append(Term(el.kind, el.text))
            case 'operator' if el.text in UNARY and _is_prefix_position(previous):
                terms.append(Term('unary', el.text))
            case 'operator' if el.text in BINARY:
                terms.append(Term('binary', el.text))
            case _:
                raise WrapprParseError(f"Operator `{el.text}` is not supported in expressions.", column=el.offset + 1)
    return terms


def to_rpn(terms: list[Term]) -> list[Term]:
    """Reorder infix terms by precedence tiers with the shunting-yard algorithm."""
    output, stack = [], []

    def tier(t: Term) -> int:
        return UNARY_PRECEDENCE[t.text] if t.kind == 'unary' else PRECEDENCE[t.text]

    for t in terms:
        match t.kind:
            case 'literal' | 'variable' | 'action':
                output.append(t)
            case 'unary' | 'lparen':
                stack.append(t)
            case 'binary':
                while stack and stack[-1].kind != 'lparen' and tier(stack[-1]) >= tier(t):
                    output.append(stack.pop())
                stack.append(t)
            case 'rparen':
                while stack and stack[-1].kind != 'lparen':
                    output.append(stack.pop())
                if not stack:
                    raise WrapprRuntimeError("Malformed expression, unmatched `)`.")
                stack.pop()
    while stack:
        if (t := stack.pop()).kind == 'lparen':
            raise WrapprRuntimeError("Malformed expression, unmatched `(`.")
        output.append(t)
    return output


def evaluate_rpn(rpn: list[Term], env) -> Variable:
    stack: list[Variable] = []
    for t in rpn:
        match t.kind:
            case 'literal':
                stack.append(t.value.copy())
            case 'variable':
                stack.append(env.get_variable(t.text))
            case 'action':
                if len(result := t.value.execute(env)) != 1:
                    raise WrapprRuntimeError(f"Action `{t.value.name}` returned {len(result)} values, expected exactly one in expression.")
                stack.append(result[0])
            case 'unary':
                if not stack:
                    raise WrapprRuntimeError(f"Malformed expression, operator `{t.text}` is missing its operand.")
                stack.append(UNARY[t.text](stack.pop()))
            case 'binary':
                if len(stack) < 2:
                    raise WrapprRuntimeError(f"Malformed expression, operator `{t.text}` is missing operands.")
                b, a = stack.pop(), stack.pop()
                stack.append(BINARY[t.text](a, b))
    if len(stack) != 1:
        raise WrapprRuntimeError(f"Malformed expression, {len(stack)} values remain after evaluation.")
    return stack[0]


def compile_expression(text: str, env, *, meta: dict | None = None) -> Action:
    """Compile expression source into a zero-argument action that evaluates it on demand."""
    if not (text := text.strip()):
        raise WrapprParseError("Empty expression.")
    terms = classify(segment(text), env, meta=meta)

    if len(terms) == 1:
        match (term := terms[0]).kind:
            case 'action': execute = lambda env, _: term.value.execute(env)
            case 'variable': execute = lambda env, _: [env.get_variable(term.text)]
            case 'literal': execute = lambda env, _: [term.value.copy()]
            case _: raise WrapprRuntimeError(f"Malformed expression `{text}`.")
    else:
        rpn = to_rpn(terms)
        execute = lambda env, _: [evaluate_rpn(rpn, env)]
    return Action(execute, name=text, meta=dict(meta or {}, expression=text))


def compile_call(name: str, args_text: str, env, *, meta: dict | None = None) -> Action:
    """Clone the action template `name` and attach its compiled argument expressions."""
    action = env.get_action(name).clone()
    action.arguments = [compile_expression(arg, env, meta=meta) for arg in split_arguments(args_text)]
    action.meta = dict(meta or {})
    return action
