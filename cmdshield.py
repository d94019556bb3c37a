#!/usr/bin/env python3
"""
cmdshield.py — cmdshield entry point.
──────────────────────────────────────
Transparent interception of configured commands in an interactive shell.
Commands listed by the resolver for the current directory are bound to a
shell function that forwards them to `<resolver> wrap`, and the bound set is
re-synchronized every time the directory changes.

Shell setup
───────────
    bash:  eval "$(cmdshield activate bash)"     in ~/.bashrc
    zsh:   eval "$(cmdshield activate zsh)"      in ~/.zshrc
    fish:  cmdshield activate fish | source      in config.fish

Commands
────────
  activate SHELL              Print the activation script for bash, zsh or fish.
  reconcile --shell SHELL     Print the statements that move the shell from the
                              bound set (--bound) to the freshly resolved set.
                              Called by the activation scripts.
  list                        Print the commands resolved for this directory.
  check NAME [--silent]       Exit 0 if NAME is resolved here, 1 otherwise.
  intercept NAME [ARGS...]    Run NAME through the executor.
  bypass NAME [ARGS...]       Run the real NAME, skipping interception.

Global Options
──────────────
  --resolver PATH        Resolver / executor binary (env CMDSHIELD_RESOLVER).
  --timeout SECONDS      Resolver listing timeout (env CMDSHIELD_RESOLVER_TIMEOUT).
  --debug                Emit `[cmdshield] ...` lifecycle lines on stderr
                         (env CMDSHIELD_DEBUG).
  --env-file PATH        Settings file (default ~/.config/cmdshield/cmdshield.env).
  --log-level LEVEL      Python logging level. Defaults to WARNING.
  --version              Print the version and exit.

Exit Codes
──────────
  0     Success.
  1     Lookup failed (list, check) or reconciliation could not run.
  2     Usage error.
  126   Program found but not executable (intercept, bypass).
  127   Program not found (intercept, bypass).
  Any other value is the exit status of the wrapped program.
"""

import argparse
import logging
import os
import sys

from colorama import Fore, Style, just_fix_windows_console

from activation import ScriptTable, get_dialect, render_activation
from binding_engine.base import UnsupportedShellError
from binding_engine.config import Settings, load_settings
from binding_engine.names import split_binding_variable
from binding_engine.reconciler import BindingReconciler
from binding_engine.resolver import ResolverClient
from interceptor.shim import EXIT_NOT_EXECUTABLE, EXIT_NOT_FOUND, InterceptionShim

__version__ = "0.1.0"

_ERROR = f"{Fore.RED}{Style.BRIGHT}"
_OK = f"{Fore.GREEN}{Style.BRIGHT}"
_WARN = f"{Fore.YELLOW}{Style.BRIGHT}"
_RESET = Style.RESET_ALL
_TAG = f"{Fore.CYAN}{Style.BRIGHT}[cmdshield]{_RESET}"

logger = logging.getLogger("cmdshield")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cmdshield",
        description=(
            "cmdshield — keeps a shell's intercepted commands in sync with the "
            "resolver configuration for the current directory."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--resolver",
        metavar="PATH",
        help="Resolver / executor binary. Default: $CMDSHIELD_RESOLVER or 'shwrap'.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Timeout for the resolver listing call. Default: 2.0.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Emit lifecycle diagnostics on stderr.",
    )
    parser.add_argument(
        "--env-file",
        metavar="PATH",
        help="Settings file loaded before reading CMDSHIELD_* variables.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the Python logging level. Default: WARNING.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cmdshield {__version__}",
    )

    sub = parser.add_subparsers(dest="action", metavar="COMMAND")
    sub.required = True

    activate = sub.add_parser("activate", help="Print shell activation code.")
    activate.add_argument("shell", help="bash, zsh or fish")

    reconcile = sub.add_parser(
        "reconcile", help="Print the statements that re-synchronize bindings."
    )
    reconcile.add_argument("--shell", required=True, help="bash, zsh or fish")
    reconcile.add_argument(
        "--bound",
        default="",
        metavar="NAMES",
        help="Space separated names currently bound in the shell.",
    )
    reconcile.add_argument(
        "--location",
        metavar="DIR",
        help="Directory to resolve for. Default: the current directory.",
    )

    sub.add_parser("list", help="List commands resolved for this directory.")

    check = sub.add_parser("check", help="Check whether a command is resolved here.")
    check.add_argument("command")
    check.add_argument(
        "--silent",
        action="store_true",
        help="No output, exit status only.",
    )

    for name, text in (
        ("intercept", "Run a command through the executor."),
        ("bypass", "Run the real command without interception."),
    ):
        runner = sub.add_parser(name, help=text)
        runner.add_argument("command")
        runner.add_argument("args", nargs=argparse.REMAINDER)

    return parser


def configure_logging(level_str: str) -> None:
    """Set up structured logging to stderr."""
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level_str.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_settings(args: argparse.Namespace) -> Settings:
    """Environment / dotenv settings, overridden by command line flags."""
    settings = load_settings(args.env_file)
    if args.resolver:
        settings.resolver = args.resolver
    if args.timeout is not None and args.timeout > 0:
        settings.resolver_timeout = args.timeout
    if args.debug:
        settings.debug = True
    return settings


def build_resolver(settings: Settings) -> ResolverClient:
    return ResolverClient(
        resolver=settings.resolver,
        timeout=settings.resolver_timeout,
        diagnostics=settings.diagnostics(),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────

def cmd_activate(args: argparse.Namespace, settings: Settings) -> int:
    sys.stdout.write(render_activation(args.shell, settings))
    return 0


def cmd_reconcile(args: argparse.Namespace, settings: Settings) -> int:
    """
    One full reconciliation cycle on behalf of a shell.

    Stdout is evaluated by the shell, so nothing but statements may go there.
    A non-zero exit makes the activation script drop every binding itself.
    """
    dialect = get_dialect(args.shell)
    location = args.location or os.getcwd()
    previous = split_binding_variable(args.bound)

    diagnostics = settings.diagnostics()
    resolver = ResolverClient(
        resolver=settings.resolver,
        timeout=settings.resolver_timeout,
        diagnostics=diagnostics,
    )
    table = ScriptTable(dialect)
    reconciler = BindingReconciler(resolver, table, diagnostics)

    bindings = reconciler.reconcile(previous, location)
    sys.stdout.write(table.render(bindings))
    return 0


def cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    resolver = build_resolver(settings)
    names = resolver.resolve(os.getcwd())
    if resolver.last_error is not None:
        print(f"{_TAG} {_WARN}{resolver.last_error}{_RESET}", file=sys.stderr)
        return 1
    for name in names:
        print(name)
    return 0


def cmd_check(args: argparse.Namespace, settings: Settings) -> int:
    names = build_resolver(settings).resolve(os.getcwd())
    if args.command in names:
        if not args.silent:
            print(f"{_TAG} {_OK}Command `{args.command}` is configured{_RESET}")
        return 0
    if not args.silent:
        print(
            f"{_TAG} {_WARN}Command `{args.command}` not found in configuration{_RESET}",
            file=sys.stderr,
        )
    return 1


def cmd_intercept(args: argparse.Namespace, settings: Settings) -> int:
    return InterceptionShim(settings.resolver).intercept(args.command, args.args)


def cmd_bypass(args: argparse.Namespace, settings: Settings) -> int:
    """Replace this process with the real program. Returns only on failure."""
    sys.stdout.flush()
    sys.stderr.flush()
    try:
        os.execvp(args.command, [args.command, *args.args])
    except FileNotFoundError:
        print(f"{_TAG} {args.command}: command not found", file=sys.stderr)
        return EXIT_NOT_FOUND
    except PermissionError:
        print(f"{_TAG} {args.command}: permission denied", file=sys.stderr)
        return EXIT_NOT_EXECUTABLE
    except OSError as exc:
        logger.error("Could not execute %s: %s", args.command, exc)
        return EXIT_NOT_EXECUTABLE
    return 0  # unreachable: execvp only returns by raising


_COMMANDS = {
    "activate": cmd_activate,
    "reconcile": cmd_reconcile,
    "list": cmd_list,
    "check": cmd_check,
    "intercept": cmd_intercept,
    "bypass": cmd_bypass,
}


def main(argv=None) -> int:
    """
    cmdshield entry point.

    Returns the exit code to pass to the OS.
    """
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    just_fix_windows_console()

    settings = build_settings(args)
    logger.info(
        "cmdshield %s %s | resolver=%s debug=%s",
        __version__, args.action, settings.resolver, settings.debug,
    )

    try:
        return _COMMANDS[args.action](args, settings)
    except UnsupportedShellError as exc:
        print(f"{_TAG} {_ERROR}{exc}{_RESET}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 130  # 128 + SIGINT
    except Exception as exc:
        logger.exception("Unhandled exception in %s: %s", args.action, exc)
        print(f"{_TAG} {_ERROR}Fatal error: {exc}{_RESET}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
