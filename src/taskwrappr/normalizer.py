## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import NamedTuple

from .errors import WrapprParseError, WrapprIncompleteParse


class SourceLine(NamedTuple):
    line: int
    text: str


def normalize_lines(content: str, *, filename: str | None = None) -> list[SourceLine]:
    """Split raw source into one statement per entry, each tagged with its source line.

    Comments and blank lines are dropped, braces are placed on their own line, and an
    unquoted `;` or newline ends a statement unless parentheses are still open.
    """
    result: list[SourceLine] = []
    buffer: list[str] = []
    start: int | None = None
    in_quote = escaped = in_comment = False
    parens = braces = 0
    line, column = 1, 0
    quote_at = (0, 0)

    def append(ch):
        nonlocal start
        if start is None and not ch.isspace(): start = line
        buffer.append(ch)

    def flush():
        nonlocal start
        if (text := ''.join(buffer).strip()):
            result.append(SourceLine(start, text))
        buffer.clear()
        start = None

    for ch in content:
        column += 1
        if ch == '\n':
            if in_quote:
                raise WrapprParseError("Unclosed string literal.", line=quote_at[0], column=quote_at[1], filename=filename)
            in_comment = False
            if parens == 0: flush()
            else: append(' ')
            line, column = line + 1, 0
            continue
        if in_comment:
            continue

        if in_quote:
            append(ch)
            if escaped: escaped = False
            elif ch == '\\': escaped = True
            elif ch == '"': in_quote = False
            continue

        match ch:
            case '"':
                in_quote, quote_at = True, (line, column)
                append(ch)
            case '#':
                in_comment = True
            case ';' if parens == 0:
                flush()
            case '(':
                parens += 1
                append(ch)
            case ')':
                if parens == 0:
                    raise WrapprParseError("Unbalanced parentheses, unexpected `)`.", line=line, column=column, filename=filename)
                parens -= 1
                append(ch)
            case '{' | '}':
                if parens > 0:
                    raise WrapprParseError(f"Unbalanced parentheses before `{ch}`.", line=line, column=column, filename=filename)
                if ch == '}' and braces == 0:
                    raise WrapprParseError("Unmatched closing brace `}`.", line=line, column=column, filename=filename)
                braces += 1 if ch == '{' else -1
                flush()
                result.append(SourceLine(line, ch))
            case _:
                append(ch)

    if in_quote:
        raise WrapprParseError("Unclosed string literal.", line=quote_at[0], column=quote_at[1], filename=filename)
    if braces > 0:
        raise WrapprIncompleteParse(f"Unmatched opening brace `{{`, {braces} block(s) left open.", line=line, filename=filename)
    if parens > 0:
        raise WrapprIncompleteParse(f"Unbalanced parentheses, {parens} left open.", line=start, filename=filename)
    flush()
    return result


def normalize(content: str) -> str:
    return '\n'.join(text for _, text in normalize_lines(content))
