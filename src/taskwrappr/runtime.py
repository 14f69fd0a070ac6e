## taskwrappr — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from pathlib import Path
from typing import Any, Callable

from .types import Action, Block, ExecuteFn, ValidateFn
from .errors import WrapprError
from .parser import parse
from .loader import iter_module_actions
from .builtins import load_builtins_environment
from .environment import Environment
from .interpreter import run_block, validate_block


class Script:
    """Single script run against a host-populated root environment."""

    def __init__(self, path: str | Path, environment: Environment):
        self.path = Path(path)
        self.environment = environment
        self.root: Block | None = None

    @property
    def filename(self) -> str:
        return str(self.path)

    def run(self, *, verbosity: int = 0, stats: dict | None = None) -> bool:
        source = self.path.read_text(encoding='utf-8')
        return self.execute(source, verbosity=verbosity, stats=stats)

    def execute(self, source: str, *, verbosity: int = 0, stats: dict | None = None) -> bool:
        try:
            self.root = parse(source, self.environment, filename=self.filename)
            validate_block(self.root)
            run_block(self.root, verbosity=verbosity, stats=stats)
        except WrapprError as exc:
            exc.filename = exc.filename or self.filename
            raise
        return True


class Runtime:
    """Minimal runtime facade focused on embedding and extension."""

    def __init__(self, environment: Environment | None = None):
        self.environment = environment or load_builtins_environment()
        self.loaded_modules: set[str] = set()

    # Execution ───────────────────────────────────────────────────────────────────────────────
    def run(self, source: str, filename: str = '<string>', verbosity: int = 0, stats: dict | None = None) -> Block:
        script = Script(filename, self.environment)
        script.execute(source, verbosity=verbosity, stats=stats)
        return script.root

    def run_file(self, path: str | Path, verbosity: int = 0, stats: dict | None = None) -> bool:
        return Script(path, self.environment).run(verbosity=verbosity, stats=stats)

    # Registration ────────────────────────────────────────────────────────────────────────────
    def register_action(self, name: str, execute: ExecuteFn, validate: ValidateFn | None = None) -> Action:
        return self.environment.add_action(name, execute, validate)

    def register_function(self, name: str, fn: Callable[..., Any]) -> Action:
        return self.environment.register_function(name, fn)

    def load_module(self, name: str) -> list[str]:
        """Register every action from host module `name` as `name.<action>`."""
        if name in self.loaded_modules:
            return []
        added = []
        for action_name, fn in iter_module_actions(name):
            self.environment.register_function(f"{name}.{action_name}", fn)
            added.append(f"{name}.{action_name}")
        self.loaded_modules.add(name)
        return added

    # Variables ───────────────────────────────────────────────────────────────────────────────
    def get_variable(self, name: str) -> Any:
        return self.environment.get_variable(name).to_python()

    def set_variable(self, name: str, value: Any) -> None:
        self.environment.set_variable(name, value)

    def list_variables(self) -> dict[str, Any]:
        return {k: v.to_python() for k, v in self.environment.variables.items()}

    def list_actions(self) -> list[str]:
        return sorted(self.environment.actions.keys())
