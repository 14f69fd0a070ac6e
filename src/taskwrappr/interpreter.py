## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from .types import Block
from .errors import WrapprError, WrapprTypeError
from .formatting import show_action_and_result


def validate_block(block: Block) -> None:
    """Run every validator in the tree once, before anything executes."""
    for action in block.actions:
        if not action.validated:
            try:
                action.validate(block.environment)
            except WrapprError as exc:
                exc.line = exc.line or action.meta.get('line')
                exc.action = exc.action or action
                raise
        if action.block is not None:
            validate_block(action.block)


def run_block(block: Block, *, verbosity=0, stats=None, depth=0) -> Block:
    """Execute a block's actions in order, descending into trailing blocks whose action returned true."""
    block.state, block.last_result = "running", None
    env = block.environment

    for action in block.actions:
        try:
            if not action.validated:
                action.validate(env)
            result = action.execute(env)
            block.last_result = result[0] if result else None

            if verbosity == 2 or (verbosity == 1 and action.block is not None):
                show_action_and_result(action, result, depth=depth)
            if stats is not None:
                stats['steps'] = stats.get('steps', 0) + 1

            if action.block is None or not result: continue
            if len(result) > 1:
                raise WrapprTypeError(f"Action `{action.name}` returned {len(result)} values, a trailing block needs one.")
            if result[0].to_bool():
                run_block(action.block, verbosity=verbosity, stats=stats, depth=depth+1)
        except Exception as exc:
            block.state = "failed"
            if getattr(exc, 'line', None) is None:
                exc.line = action.meta.get('line')
            if getattr(exc, 'action', None) is None:
                exc.action = action
            raise

    block.executed, block.state = True, "completed"
    return block
