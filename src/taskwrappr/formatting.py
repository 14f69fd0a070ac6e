## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re

from .types import Action, Variable, format_literal


def write_without_ansi(write_fn):
    """Wrapper function that strips ANSI codes before calling the original writer."""
    ansi_re = re.compile(r'\033\[[0-9;]*m')
    return lambda text: write_fn(ansi_re.sub('', text))


def format_value(var: Variable | None, *, quoted: bool = False) -> str:
    """Human-readable rendering; strings are only quoted when `quoted` or nested in an array."""
    if var is None: return '∅'
    match var.type:
        case 'array': return '[' + ', '.join(format_value(v, quoted=True) for v in var.value) + ']'
        case 'string': return format_literal(var) if quoted else var.value
        case 'nil': return 'nil'
        case 'invalid': return f'≪invalid:{type(var.value).__name__}≫'
    return var.to_string()


def format_action(action: Action) -> str:
    if (source := action.meta.get('source')) is not None: return source
    return f"{action.name}({', '.join(a.name for a in action.arguments)})"


def show_action_and_result(action: Action, result: list[Variable], depth=0, width=56):
    line = action.meta.get('line')
    text = ('  ' * depth) + format_action(action)
    if len(text) > width:
        text = text[:width-2] + ' …'
    values = ' '.join(format_value(v, quoted=True) for v in result) if result else '∅'
    print(f"\033[90m{line if line is not None else '?':>4} :\033[0m  {text:<{width}} \033[36m => \033[0m {values}")


def format_parse_error_context(filename, line, column, token_value='', source=None):
    lines = source.splitlines(keepends=True) if source is not None else open(filename, 'r').readlines()
    if line is None or not lines:
        return ''
    start_line, end_line = max(0, line - 3), min(len(lines), line + 2)
    result = [f"\033[97m  File \"{filename}\", line {line}\033[0m"]

    for i in range(start_line, end_line):
        line_content = lines[i].rstrip('\n')
        line_color = '\033[90m'
        if i+1 == line:
            line_color = '\033[97m'
            if column is not None and 0 < column <= len(line_content):
                width = max(1, len(token_value))
                line_content = (
                    line_content[:column-1] +
                    f"\033[48;5;30m\033[1;97m{line_content[column-1:column+width-1]}\033[0m" +
                    line_content[column+width-1:]
                )
        result.append(f"{line_color}{i+1:>5} |\033[0m {line_content}")
    return '\n' + '\n'.join(result) + '\n'
