## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# taskwrappr — A small line-oriented scripting language for embedding host actions.
#

import sys
import time
import traceback
from dataclasses import dataclass

import click

from .errors import (WrapprError, WrapprParseError, WrapprIncompleteParse, WrapprValidationError,
                     WrapprNameError, WrapprModuleError)
from .formatting import write_without_ansi, format_parse_error_context, format_action, format_value

from . import api


@dataclass(frozen=True)
class RuntimeConfig:
    verbose: int
    ignore: bool
    stats: bool
    plain: bool
    load: tuple[str, ...] = ()


@dataclass
class ExecutionItem:
    source: str
    filename: str


class WrapprRunner:
    def __init__(self, config: RuntimeConfig):
        self.verbose = config.verbose
        self.ignore = config.ignore
        self.stats_enabled = config.stats
        self.plain = config.plain

        if self.plain:
            writer = write_without_ansi(sys.stdout.write)
            sys.stdout.write, sys.stderr.write = writer, writer

        self.runtime = api._RUNTIME
        self.total_stats = {'steps': 0, 'start': time.time()} if self.stats_enabled else None
        self.failure = False
        self.executed_items = 0

        for name in config.load:
            self._load_module(name)

    def _load_module(self, name: str) -> None:
        try:
            self.runtime.load_module(name)
        except WrapprModuleError as exc:
            self._handle_exception(exc, f'<MODULE:{name}>', source='')

    def _maybe_fatal_error(self, message: str, detail: str, exc_type: str = None, context: str = '', is_repl: bool = False) -> None:
        header = detail if not exc_type else f"{detail} (Exception: \033[33m{exc_type}\033[0m)"
        print(f'\033[30;43m {message} \033[0m {header}\n{context}', file=sys.stderr)
        self.failure = self.failure or not is_repl
        if not is_repl and not self.ignore: sys.exit(1)

    def _handle_exception(self, exc: Exception, filename: str, source: str, is_repl: bool = False) -> bool:
        line, column = getattr(exc, 'line', None), getattr(exc, 'column', None)
        context = format_parse_error_context(filename, line, column, source=source) if line is not None else ''
        message = f"\n\033[90m{str(exc).replace(chr(10), ' ')}\033[0m\n"
        action = getattr(exc, 'action', None)
        where = f"Action \033[1;97m`{format_action(action)}`\033[0m" if action is not None else f"Script `\033[97m{filename}\033[0m`"

        if isinstance(exc, WrapprParseError):
            if is_repl and isinstance(exc, WrapprIncompleteParse): return True
            self._maybe_fatal_error("SYNTAX ERROR.", f"Parsing `\033[97m{filename}\033[0m` caused a problem!", type(exc).__name__, context + message, is_repl)
        elif isinstance(exc, WrapprValidationError):
            self._maybe_fatal_error("VALIDATION ERROR.", f"{where} failed validation!", type(exc).__name__, context + message, is_repl)
        elif isinstance(exc, WrapprNameError):
            self._maybe_fatal_error("NAME ERROR.", f"{where} refers to an unknown name!", type(exc).__name__, context + message, is_repl)
        elif isinstance(exc, WrapprModuleError):
            detail = f"Importing host module `{exc.module_name}` failed: \033[97m{exc.filename or '?'}\033[0m"
            traceback_text = ''
            if exc.__cause__ is not None:
                tb_lines = traceback.format_exception(exc.__cause__, chain=False)
                traceback_text = ''.join([l for l in tb_lines if "src/taskwrappr/" not in l and "<frozen" not in l]).rstrip() + '\n'
            self._maybe_fatal_error("IMPORT ERROR.", detail, type(exc).__name__, '\n' + traceback_text + message, is_repl)
        else:
            if not isinstance(exc, WrapprError):
                tb_lines = traceback.format_exception(exc, chain=False)
                message += ''.join([l for l in tb_lines if "src/taskwrappr/" not in l and "<frozen" not in l]).rstrip() + '\n'
            self._maybe_fatal_error("RUNTIME ERROR.", f"{where} caused an error!", type(exc).__name__, context + message, is_repl)
        return False

    def execute_items(self, items: list[ExecutionItem]) -> None:
        for item in items:
            self._execute_script(item.source, item.filename)

    def _execute_script(self, source: str, filename: str, is_repl: bool = False) -> bool:
        try:
            root = self.runtime.run(source, filename=filename, verbosity=self.verbose, stats=self.total_stats)
            if is_repl and root.last_result is not None:
                print("\033[90m>>>\033[0m", format_value(root.last_result, quoted=True))
        except Exception as exc:
            return self._handle_exception(exc, filename, source, is_repl=is_repl)
        else:
            self.executed_items += 1
        return False

    def repl(self) -> None:
        if sys.platform != "win32": import readline

        print('taskwrappr - Line-oriented scripting REPL; type Ctrl+C to exit.')
        source = ""

        while True:
            try:
                prompt = "\033[36m<<< \033[0m" if not source.strip() else "\033[36m... \033[0m"
                line = input(prompt)
                if not source and len(line.strip()) == 0: continue
                if not source and line.strip() in ('quit', 'exit'): break
                source += line + "\n"
                # Incomplete input keeps accumulating until braces and parentheses balance.
                if not self._execute_script(source, '<REPL>', is_repl=True):
                    source = ""
            except (KeyboardInterrupt, EOFError):
                print(""); break

    def finalize(self) -> int:
        if self.total_stats and self.executed_items > 0:
            elapsed_time = time.time() - self.total_stats['start']
            print(f"\n\033[97m\033[48;5;30m STATISTICS. \033[0m")
            print(f"step\t\033[97m{self.total_stats['steps']:,}\033[0m")
            print(f"time\t\033[97m{elapsed_time:.3f}s\033[0m")
        return 1 if self.failure else 0


@click.group(invoke_without_command=True)
@click.option('--verbose', '-v', default=0, count=True, help='Trace executed actions (twice for every action).')
@click.option('--ignore', '-i', is_flag=True, help='Ignore errors and continue executing.')
@click.option('--stats', is_flag=True, help='Display execution statistics (e.g., number of steps).')
@click.option('--plain', '-p', is_flag=True, help='Strip ANSI color codes and redirect stderr to stdout.')
@click.option('--load', '-l', multiple=True, metavar='NAME', help='Load host action module NAME before running.')
@click.pass_context
def cli(ctx: click.Context, verbose: int, ignore: bool, stats: bool, plain: bool, load: tuple[str, ...]) -> None:
    ctx.ensure_object(dict)
    ctx.obj['config'] = RuntimeConfig(verbose=verbose, ignore=ignore, stats=stats, plain=plain, load=load)


@cli.command('run-file')
@click.argument('scripts', nargs=-1, required=True, type=click.File('r', encoding='utf-8'))
@click.pass_context
def run_file(ctx: click.Context, scripts) -> None:
    runner = WrapprRunner(ctx.obj['config'])
    runner.execute_items([ExecutionItem(s.read(), '<STDIN>' if s.name == '<stdin>' else s.name) for s in scripts])
    ctx.exit(runner.finalize())


@cli.command('run-repl')
@click.pass_context
def run_repl(ctx: click.Context) -> None:
    runner = WrapprRunner(ctx.obj['config'])
    runner.repl()
    ctx.exit(runner.finalize())


def main(argv: list[str] | None = None) -> None:
    a = list(sys.argv[1:] if argv is None else argv)
    g, r = [], []
    while a:
        t = a.pop(0)
        if t in ('--load', '-l') and a: g += [t, a.pop(0)]
        elif t in ('--ignore', '--stats', '--plain', '--verbose', '-i', '-p') or t.startswith('--load=') \
                or (t.startswith('-v') and set(t[1:]) == {'v'}):
            g.append(t)
        else:
            r.append(t)

    if len(r) == 0:
        # No args: if stdin has data, treat as file '-', else REPL.
        cmd, tail = ('run-file', ['-']) if not sys.stdin.isatty() else ('run-repl', [])
    elif '--repl' in r:
        cmd, tail = 'run-repl', []
    else:
        cmd, tail = 'run-file', r

    cli.main(args=[*g, cmd, *tail], prog_name='taskwrappr')


if __name__ == "__main__":
    main()
