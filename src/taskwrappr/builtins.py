## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import sys
import time

from .types import Action, Variable
from .errors import WrapprTypeError, WrapprValidationError
from .loader import get_action_name
from .formatting import format_value
from .environment import Environment


def _expect(name: str, args: list[Variable], count: int | None = None, *, minimum: int = 0) -> None:
    if count is not None and len(args) != count:
        raise WrapprTypeError(f"Action `{name}` expects {count} argument(s), got {len(args)}.")
    if len(args) < minimum:
        raise WrapprTypeError(f"Action `{name}` expects at least {minimum} argument(s), got {len(args)}.")

def _booleans(name: str, args: list[Variable], minimum: int) -> list[bool]:
    _expect(name, args, minimum=minimum)
    if (bad := next((a for a in args if a.type != 'boolean'), None)) is not None:
        raise WrapprTypeError(f"Action `{name}` only accepts booleans, got {bad.type}.")
    return [a.value for a in args]

def _condition(name: str, args: list[Variable]) -> Variable:
    _expect(name, args, 1)
    match (cond := args[0]).type:
        case 'boolean': return Variable('boolean', cond.value)
        case 'string': return Variable('boolean', cond.value != '')
    raise WrapprTypeError(f"Action `{name}` expects a boolean condition, got {cond.type}.")

def requires_block(env: Environment, action: Action) -> None:
    if action.block is None:
        raise WrapprValidationError(f"Action `{action.name}` requires a trailing block.", action=action)


## CONTROL FLOW
def act_if(env, args): return [_condition('if', args)]
def act_for(env, args): return [_condition('for', args)]

def act_else_if(env, args):
    # Only an open chain, where the previous branch evaluated false, gets to test its condition.
    if (last := env.last_result) is None or last.type != 'boolean' or last.value:
        return []
    return [_condition('elseIf', args)]

def act_else(env, args):
    _expect('else', args, 0)
    last = env.last_result
    return [Variable('boolean', not last.value if last is not None and last.type == 'boolean' else False)]

## INPUT/OUTPUT
def act_print(env, args):
    print(' '.join(format_value(a) for a in args))
    sys.stdout.flush()
    return args

def act_wait(env, args):
    _expect('wait', args, 1)
    time.sleep(max(0.0, args[0].to_float()) / 1000.0)
    return []

def act_pass(env, args):
    _expect('pass', args, minimum=1)
    return args

## BOOLEAN LOGIC
def act_and(env, args): return [Variable('boolean', all(_booleans('and', args, 1)))]
def act_or(env, args): return [Variable('boolean', any(_booleans('or', args, 1)))]
def act_nand(env, args): return [Variable('boolean', not all(_booleans('nand', args, 1)))]
def act_xor(env, args): return [Variable('boolean', sum(_booleans('xor', args, 2)) % 2 == 1)]
def act_not(env, args):
    _expect('not', args, 1)
    [value] = _booleans('not', args, 1)
    return [Variable('boolean', not value)]

## TYPE CASTS
def act_to_string(env, args): _expect('toString', args, 1); return [args[0].cast('string')]
def act_to_integer(env, args): _expect('toInteger', args, 1); return [args[0].cast('integer')]
def act_to_float(env, args): _expect('toFloat', args, 1); return [args[0].cast('float')]
def act_to_boolean(env, args): _expect('toBoolean', args, 1); return [args[0].cast('boolean')]


VALIDATORS = {
    'if': requires_block,
    'elseIf': requires_block,
    'else': requires_block,
    'for': requires_block,
}


def load_builtins_environment() -> Environment:
    env = Environment()
    for k, fn in globals().items():
        if not k.startswith('act_'): continue
        name = get_action_name(k)
        env.add_action(name, fn, VALIDATORS.get(name))
    return env
