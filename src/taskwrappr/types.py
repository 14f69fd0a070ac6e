## taskwrappr — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re
from typing import Any, Callable, Literal, NamedTuple
from dataclasses import dataclass, field

from .errors import WrapprTypeError, WrapprValueError, WrapprRuntimeError


VarType = Literal["string", "integer", "float", "boolean", "array", "nil", "invalid"]

TRUE_LITERAL, FALSE_LITERAL, NIL_LITERAL = 'true', 'false', 'nil'

# Concrete Python representation expected for each type tag.
_REPRESENTATIONS: dict[str, Callable[[Any], bool]] = {
    'string': lambda v: isinstance(v, str),
    'integer': lambda v: isinstance(v, int) and not isinstance(v, bool),
    'float': lambda v: isinstance(v, float),
    'boolean': lambda v: isinstance(v, bool),
    'array': lambda v: isinstance(v, list),
    'nil': lambda v: v is None,
    'invalid': lambda v: True,
}


class Selector(NamedTuple):
    """One step of a path into a composite value: `arr[0]`, `obj["k"]` or `obj.field`."""
    kind: Literal["index", "key", "field"]
    value: int | str

    def __str__(self):
        match self.kind:
            case "index": return f"[{self.value}]"
            case "key": return f'["{self.value}"]'
            case _: return f".{self.value}"


def determine_variable_type(raw: Any) -> VarType:
    if raw is None: return 'nil'
    if isinstance(raw, bool): return 'boolean'
    if isinstance(raw, str): return 'string'
    if isinstance(raw, int): return 'integer'
    if isinstance(raw, float): return 'float'
    if isinstance(raw, (list, tuple)): return 'array'
    return 'invalid'


@dataclass(eq=False)
class Variable:
    type: VarType
    value: Any = None
    name: str | None = None
    selectors: list[Selector] = field(default_factory=list)

    def __post_init__(self):
        if self.type not in _REPRESENTATIONS:
            raise WrapprTypeError(f"Unknown variable type `{self.type}`.")
        if not _REPRESENTATIONS[self.type](self.value):
            raise WrapprTypeError(f"Value {self.value!r} does not match type `{self.type}`.")

    @classmethod
    def from_value(cls, raw: Any, name: str | None = None) -> "Variable":
        """Wrap a host-supplied Python value, inferring its type tag."""
        if isinstance(raw, Variable):
            return raw
        match (typ := determine_variable_type(raw)):
            case 'array': return cls('array', [cls.from_value(v) for v in raw], name)
            case _: return cls(typ, raw, name)

    def __eq__(self, other):
        return isinstance(other, Variable) and self.type == other.type and self.value == other.value

    def __repr__(self):
        return f"Variable({self.type}, {self.value!r})"

    @property
    def path(self) -> str:
        return (self.name or '') + ''.join(str(s) for s in self.selectors)

    def copy(self) -> "Variable":
        value = [v.copy() for v in self.value] if self.type == 'array' else self.value
        return Variable(self.type, value, self.name, list(self.selectors))

    def assign(self, type: VarType, value: Any) -> None:
        """Rebind in place, the only mutation a Variable allows."""
        if type not in _REPRESENTATIONS or not _REPRESENTATIONS[type](value):
            raise WrapprTypeError(f"Value {value!r} does not match type `{type}`.")
        self.type, self.value = type, value

    def to_python(self) -> Any:
        if self.type == 'array': return [v.to_python() for v in self.value]
        return self.value

    # Coercions ───────────────────────────────────────────────────────────────────────────────
    def to_string(self) -> str:
        match self.type:
            case 'string': return self.value
            case 'integer': return str(self.value)
            case 'float': return repr(self.value)
            case 'boolean': return TRUE_LITERAL if self.value else FALSE_LITERAL
        raise WrapprTypeError(f"Cannot convert {self.type} to string.")

    def to_int(self) -> int:
        match self.type:
            case 'string':
                try:
                    return int(self.value)
                except ValueError:
                    return int(self._finite(self._parse_float(self.value, 'integer'), 'integer'))
            case 'integer': return self.value
            case 'float': return int(self._finite(self.value, 'integer'))
            case 'boolean': return 1 if self.value else 0
        raise WrapprTypeError(f"Cannot convert {self.type} to integer.")

    def to_float(self) -> float:
        match self.type:
            case 'string': return self._parse_float(self.value, 'float')
            case 'integer': return float(self.value)
            case 'float': return self.value
            case 'boolean': return 1.0 if self.value else 0.0
        raise WrapprTypeError(f"Cannot convert {self.type} to float.")

    def to_bool(self) -> bool:
        match self.type:
            case 'string':
                if self.value in (TRUE_LITERAL, FALSE_LITERAL): return self.value == TRUE_LITERAL
                raise WrapprValueError(f"Cannot convert string \"{self.value}\" to boolean.")
            case 'integer' | 'float': return self.value != 0
            case 'boolean': return self.value
        raise WrapprTypeError(f"Cannot convert {self.type} to boolean.")

    def is_truthy(self) -> bool:
        """Boolean view used by logical operators; anything `to_bool` rejects reads as false."""
        try:
            return self.to_bool()
        except (WrapprTypeError, WrapprValueError):
            return False

    def cast(self, target: VarType) -> "Variable":
        match target:
            case 'string': return Variable('string', self.to_string())
            case 'integer': return Variable('integer', self.to_int())
            case 'float': return Variable('float', self.to_float())
            case 'boolean': return Variable('boolean', self.to_bool())
        raise WrapprTypeError(f"Cannot cast to `{target}`.")

    @staticmethod
    def _parse_float(text: str, target: str) -> float:
        try:
            return float(text)
        except ValueError:
            raise WrapprValueError(f"Cannot convert string \"{text}\" to {target}.") from None

    @staticmethod
    def _finite(value: float, target: str) -> float:
        if value != value or value in (float('inf'), float('-inf')):
            raise WrapprValueError(f"Cannot convert {value} to {target}.")
        return value


def nil() -> Variable:
    return Variable('nil', None)


# Literals ────────────────────────────────────────────────────────────────────────────────────

INTEGER_PATTERN = re.compile(r'-?\d+')
FLOAT_PATTERN = re.compile(r'-?(?:\d+\.\d*|\.\d+)(?:[eE][-+]?\d+)?|-?\d+[eE][-+]?\d+')
STRING_PATTERN = re.compile(r'"((?:[^"\\]|\\.)*)"', re.S)
_ESCAPED = re.compile(r'\\(["\\])')


def is_literal(text: str) -> bool:
    if text in (TRUE_LITERAL, FALSE_LITERAL, NIL_LITERAL): return True
    return any(p.fullmatch(text) for p in (INTEGER_PATTERN, FLOAT_PATTERN, STRING_PATTERN))


def parse_literal(text: str) -> Variable:
    text = text.strip()
    if INTEGER_PATTERN.fullmatch(text):
        return Variable('integer', int(text))
    if FLOAT_PATTERN.fullmatch(text):
        return Variable('float', float(text))
    if text in (TRUE_LITERAL, FALSE_LITERAL):
        return Variable('boolean', text == TRUE_LITERAL)
    if text == NIL_LITERAL:
        return nil()
    if (m := STRING_PATTERN.fullmatch(text)):
        return Variable('string', _ESCAPED.sub(r'\1', m.group(1)))
    raise WrapprValueError(f"Unable to parse literal `{text}`.")


def format_literal(variable: Variable) -> str:
    """Inverse of `parse_literal` for every literal shape."""
    match variable.type:
        case 'string': return '"' + variable.value.replace('\\', '\\\\').replace('"', '\\"') + '"'
        case 'nil': return NIL_LITERAL
    return variable.to_string()


# Actions & Blocks ────────────────────────────────────────────────────────────────────────────

ExecuteFn = Callable[["Environment", list[Variable]], list[Variable] | None]
ValidateFn = Callable[["Environment", "Action"], None]


class Action:
    def __init__(self, execute: ExecuteFn, validate: ValidateFn | None = None, name: str = '<action>',
                 arguments: list["Action"] | None = None, block: "Block | None" = None, meta: dict | None = None):
        self.execute_fn = execute
        self.validate_fn = validate
        self.name = name
        self.arguments: list[Action] = arguments if arguments is not None else []
        self.block: Block | None = block
        self.meta: dict = meta if meta is not None else {}
        self.validated = False

    def __repr__(self):
        return f"{self.name}"

    def clone(self) -> "Action":
        return Action(self.execute_fn, self.validate_fn, self.name, list(self.arguments), self.block, dict(self.meta))

    def evaluate_arguments(self, env) -> list[Variable]:
        values = []
        for arg in self.arguments:
            result = arg.execute(env)
            # Multi-value results are passed on as a single array argument.
            values.append(result[0] if len(result) == 1 else Variable('array', result))
        return values

    def execute(self, env) -> list[Variable]:
        result = self.execute_fn(env, self.evaluate_arguments(env))
        if result is None: return []
        if isinstance(result, Variable): return [result]
        if not all(isinstance(r, Variable) for r in result):
            raise WrapprRuntimeError(f"Action `{self.name}` returned values that are not variables.")
        return list(result)

    def validate(self, env) -> None:
        if self.validate_fn is not None:
            self.validate_fn(env, self)
        self.validated = True


BlockState = Literal["pending", "running", "completed", "failed"]


class Block:
    def __init__(self, environment, actions: list[Action] | None = None):
        self.actions: list[Action] = actions if actions is not None else []
        self.environment = environment
        self.executed = False
        self.state: BlockState = "pending"
        self.last_result: Variable | None = None
        environment.block = self

    def __repr__(self):
        return f"Block({', '.join(a.name for a in self.actions)})"
