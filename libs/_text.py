## taskwrappr — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re

from taskwrappr.errors import WrapprValueError


def act_to_upper(text: str) -> str: return str(text).upper()
def act_to_lower(text: str) -> str: return str(text).lower()
def act_trim(text: str) -> str: return str(text).strip()
def act_length(text: str) -> int: return len(str(text))
def act_contains(text: str, part: str) -> bool: return str(part) in str(text)
def act_split(text: str, sep: str) -> list: return str(text).split(str(sep))
def act_join(sep: str, *items) -> str: return str(sep).join(_as_text(i) for i in items)


def _as_text(value) -> str:
    if isinstance(value, bool): return 'true' if value else 'false'
    return str(value)


def act_format(template: str, *values) -> str:
    """Substitute `%1`..`%N` with the values, and `%%` with a literal percent."""
    def substitute(m):
        if m.group(1) == '%': return '%'
        if not m.group(1):
            raise WrapprValueError("Invalid placeholder after `%`, expected digits or `%%`.")
        if not 1 <= (idx := int(m.group(1))) <= len(values):
            raise WrapprValueError(f"Placeholder %{idx} out of range for {len(values)} value(s).")
        return _as_text(values[idx - 1])
    return re.sub(r'%(%|\d*)', substitute, str(template))


__actions__ = [act_to_upper, act_to_lower, act_trim, act_length, act_contains, act_split, act_join, act_format]
