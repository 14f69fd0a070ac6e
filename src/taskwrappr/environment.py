## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Any, Callable
from dataclasses import dataclass, field

from .types import Action, Block, Variable, VarType, ExecuteFn, ValidateFn
from .errors import WrapprNameError, WrapprTypeError
from .loader import get_arity


@dataclass(eq=False)
class Environment:
    actions: dict[str, Action] = field(default_factory=dict)
    variables: dict[str, Variable] = field(default_factory=dict)
    parent: "Environment | None" = None
    block: Block | None = field(default=None, repr=False)

    def _scopes(self):
        env = self
        while env is not None:
            yield env
            env = env.parent

    # Lookup ──────────────────────────────────────────────────────────────────────────────────
    def lookup_variable(self, name: str) -> Variable | None:
        return next((env.variables[name] for env in self._scopes() if name in env.variables), None)

    def lookup_action(self, name: str) -> Action | None:
        return next((env.actions[name] for env in self._scopes() if name in env.actions), None)

    def get_variable(self, name: str) -> Variable:
        if (var := self.lookup_variable(name)) is None:
            raise WrapprNameError(f"Variable `{name}` is not defined.")
        return var

    def get_action(self, name: str) -> Action:
        if (action := self.lookup_action(name)) is None:
            raise WrapprNameError(f"Action `{name}` not found in environment.")
        return action

    @property
    def last_result(self) -> Variable | None:
        return self.block.last_result if self.block is not None else None

    # Variables ───────────────────────────────────────────────────────────────────────────────
    def set_variable(self, name: str, value: Any, type: VarType | None = None) -> Variable:
        """Rebind the nearest existing `name` in the scope chain, or create it in this scope."""
        new = _as_variable(name, value, type)
        if (existing := self.lookup_variable(name)) is not None:
            existing.assign(new.type, new.value)
            return existing
        self.variables[name] = new
        return new

    def make_variable(self, name: str, value: Any, type: VarType | None = None) -> Variable:
        self.variables[name] = (var := _as_variable(name, value, type))
        return var

    def delete_variable(self, name: str) -> None:
        for env in self._scopes():
            if name in env.variables:
                del env.variables[name]
                return
        raise WrapprNameError(f"Variable `{name}` is not defined.")

    # Actions ─────────────────────────────────────────────────────────────────────────────────
    def add_action(self, name: str, execute: ExecuteFn, validate: ValidateFn | None = None) -> Action:
        self.actions[name] = (action := Action(execute, validate, name=name))
        return action

    def register_function(self, name: str, fn: Callable[..., Any]) -> Action:
        """Wrap a plain Python callable as an action, converting values in and out."""
        return self.add_action(name, _make_wrapper(fn, name))

    def delete_action(self, name: str) -> None:
        for env in self._scopes():
            if name in env.actions:
                del env.actions[name]
                return
        raise WrapprNameError(f"Action `{name}` not found in environment.")

    # Scopes ──────────────────────────────────────────────────────────────────────────────────
    def child(self) -> "Environment":
        return Environment(parent=self)

    def clear(self) -> None:
        self.actions.clear()
        self.variables.clear()


def _as_variable(name: str, value: Any, type: VarType | None) -> Variable:
    if isinstance(value, Variable):
        var = value.copy() if type is None else value.cast(type)
        var.name, var.selectors = name, []
        return var
    if type is None:
        return Variable.from_value(value, name)
    return Variable(type, value, name)


def _make_wrapper(fn: Callable[..., Any], name: str) -> ExecuteFn:
    arity = get_arity(fn, name=name)

    def wrapper(env, args: list[Variable]) -> list[Variable]:
        if arity >= 0 and len(args) != arity:
            raise WrapprTypeError(f"Action `{name}` expects {arity} argument(s), got {len(args)}.")
        match (result := fn(*(a.to_python() for a in args))):
            case None: return []
            case tuple(): return [Variable.from_value(r) for r in result]
            case _: return [Variable.from_value(result)]

    wrapper.__name__ = getattr(fn, '__name__', name)
    return wrapper
