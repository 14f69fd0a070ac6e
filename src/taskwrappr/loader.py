## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import os
import re
import sys
import inspect
from pathlib import Path
from typing import Any, Callable

from .errors import WrapprModuleError, WrapprTypeError


_LIB_MODULES: dict[str, object] = {}


def _resolve_module_paths() -> list[Path]:
    parts = [p for p in os.environ.get("TASKWRAPPR_PATH", "").split(os.pathsep) if p]
    return [Path(os.path.expanduser(os.path.expandvars(p))) for p in parts]


def get_python_name(action_name: str) -> str:
    """Map an action name like `toUpper` to its Python function name `act_to_upper`."""
    return 'act_' + re.sub(r'(?<!^)([A-Z])', r'_\1', action_name).lower()


def get_action_name(py_name: str) -> str:
    """Inverse of `get_python_name` for well-formed function names."""
    if not py_name.startswith("act_") or len(py_name) == 4:
        raise WrapprModuleError(f"Action function `{py_name}` requires prefix `act_` by convention.", name=py_name)
    head, *rest = py_name[4:].split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in rest)


def iter_module_candidates(module_name: str):
    """Resolution order: TASKWRAPPR_PATH first, then 'libs' paths relative to the distribution."""
    for root in _resolve_module_paths():
        yield root / f"{module_name}.py", f"taskwrappr.ext.{module_name}"
    base = Path(__file__).resolve().parent
    for d in (base, *base.parents[:2]):
        yield d / 'libs' / f"_{module_name}.py", f"taskwrappr.libs._{module_name}"


def load_library_module(name: str):
    if name in _LIB_MODULES: return _LIB_MODULES[name]

    import importlib.util as importer
    for mod_path, mod_name in iter_module_candidates(name):
        if not mod_path.is_file(): continue
        spec = importer.spec_from_file_location(mod_name, mod_path)
        if spec is None or spec.loader is None: continue
        module = importer.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            raise WrapprModuleError(f"Loading module `{name}` failed: {e}", name=name, filename=str(mod_path)) from e
        if os.environ.get("TASKWRAPPR_DEBUG"):
            print(f"\033[90m  loaded module `{name}` from {mod_path}\033[0m", file=sys.stderr)
        _LIB_MODULES[name] = module
        return module
    raise WrapprModuleError(f"Module `{name}` not found.", name=name)


def iter_module_actions(name: str):
    """Yield `(action_name, py_function)` pairs for all actions registered in a module."""
    py_module = load_library_module(name)
    if not isinstance(registry := getattr(py_module, '__actions__', None), list):
        raise WrapprModuleError(f"Module `{name}` is missing action registry `__actions__`.", name=name,
                                filename=getattr(py_module, '__file__', None))
    for fn in registry:
        if not (py_name := getattr(fn, '__name__', '')): continue
        yield get_action_name(py_name), fn


def get_arity(fn: Callable[..., Any], *, name: str | None = None) -> int:
    """Number of positional arguments `fn` accepts, or -1 when it takes `*args`.

    Keyword-only parameters must have defaults since actions only pass positionals.
    """
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return -1
    params = list(sig.parameters.values())
    action_name = name or getattr(fn, '__name__', '<unnamed>')

    if any(p.kind == inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty for p in params):
        raise WrapprTypeError(f"Action `{action_name}` cannot require keyword-only parameters.")
    if any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in params):
        return -1
    positional = [p for p in params if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)]
    return len(positional)
