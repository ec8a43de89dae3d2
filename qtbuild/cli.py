"""Command line interface for the Qt desktop build orchestrator."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, Mapping
import sys

from core.command_runner import RecordingCommandRunner, SubprocessCommandRunner
from .actions import Action, ActionDispatcher
from .cleaner import ArtifactCleaner
from .config import ConfigLayer, ConfigResolver, Generator, ResolvedConfig
from .console import Console
from .errors import QtBuildError
from .executor import BuildExecutor
from .layout import ArtifactLayout
from .validation import precheck, validate_flags

USAGE = """\
Usage:
    qtbuild build   Build the project
                    [-t Debug|Release] [-p /path/to/Qt]
    qtbuild play    Play Application (Play only)
                    [-t Debug|Release] [-a <name>]
    qtbuild run     Build and Play Application
                    [-t Debug|Release] [-p /path/to/Qt] [-a <name>]
    qtbuild fresh   Clean, Build and Play Application
                    [-t Debug|Release] [-p /path/to/Qt] [-a <name>]
    qtbuild clean   Clean build files
                    [-t Debug|Release] [--all]

Options:
    -t <type>    Build type (Debug or Release, default: Debug. Can be d/D/r/R)
    -p <path>    Qt installation path (default: from .project.ini or $HOME/Qt/6.9.2/gcc_64)
    -a <name>    Application name (required for 'play', can also be set in .project.ini)
    -G <gen>     Force the CMake generator (Ninja or "Unix Makefiles"; default: probe for ninja)
    -C <dir>     Project directory (default: current directory)
    -n           Print commands and removals without executing them
    -v, -q       More or less output
    -h           Show this help
    --all        (clean only) remove all build types + all logs

Environment:
    APP_NAME     Override application name (if not using -a or .project.ini)
    QT_PATH      Override Qt path (if not using -p or .project.ini)
    BUILD_TYPE   Override build type (if not using -t or .project.ini)
    CC, CXX      Override C and C++ compilers (default: clang/clang++)
"""

_PATH_IGNORING_ACTIONS = frozenset({Action.CLEAN, Action.PLAY})


def _make_runner(dry_run: bool) -> SubprocessCommandRunner | RecordingCommandRunner:
    return RecordingCommandRunner() if dry_run else SubprocessCommandRunner()


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(
        prog="qtbuild",
        usage="%(prog)s {build,play,run,fresh,clean} [options]",
        add_help=False,
    )
    parser.add_argument("action", nargs="?", choices=[action.value for action in Action])
    parser.add_argument("-t", "--type", dest="build_type", metavar="TYPE")
    parser.add_argument("-p", "--qt-path", dest="qt_path", metavar="PATH")
    parser.add_argument("-a", "--app", dest="app_name", metavar="NAME")
    parser.add_argument("-G", "--generator", dest="generator", metavar="GENERATOR")
    parser.add_argument("-C", "--directory", dest="directory", metavar="DIR")
    parser.add_argument("--all", dest="clean_all", action="store_true")
    parser.add_argument("-n", "--dry-run", dest="dry_run", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("-q", "--quiet", action="store_true")
    parser.add_argument("-h", "--help", dest="show_help", action="store_true")
    return parser.parse_args(list(argv))


def _console_level(args: Namespace) -> str:
    if args.quiet:
        return "error"
    if args.verbose:
        return "debug"
    return "info"


def _command_line_layer(args: Namespace, action: Action) -> ConfigLayer:
    return ConfigLayer(
        build_type=args.build_type,
        toolchain_path=None if action in _PATH_IGNORING_ACTIONS else args.qt_path,
        app_name=args.app_name,
        generator=args.generator,
    )


def _show_configuration(console: Console, config: ResolvedConfig, action: Action) -> None:
    console.info("Project Configuration:")
    for label, value in config.describe():
        console.msg(f"{label}: {value}")
    if not action.compiles:
        return
    if config.generator is Generator.NINJA:
        console.msg("Using Ninja generator")
    elif not config.generator_overridden:
        console.warn("Ninja not found, using Unix Makefiles generator.")


def _emit_dry_run_output(runner: RecordingCommandRunner, *, workspace: Path) -> None:
    for line in runner.iter_formatted(workspace=workspace):
        print(line)


def _handle_action(args: Namespace, console: Console, environ: Mapping[str, str] | None) -> int:
    action = Action(args.action)
    validate_flags(action, clean_all=args.clean_all)
    workspace = Path(args.directory).resolve() if args.directory else Path.cwd()

    resolver = ConfigResolver(workspace, environ)
    config = resolver.resolve(_command_line_layer(args, action))
    precheck(config, action, clean_all=args.clean_all)

    layout = ArtifactLayout.for_build_type(config.build_type, workspace)
    _show_configuration(console, config, action)

    runner = _make_runner(args.dry_run)
    executor = BuildExecutor(
        config=config,
        layout=layout,
        command_runner=runner,
        console=console,
        dry_run=args.dry_run,
    )
    cleaner = ArtifactCleaner(layout=layout, console=console, dry_run=args.dry_run)
    dispatcher = ActionDispatcher(
        config=config,
        layout=layout,
        executor=executor,
        cleaner=cleaner,
        command_runner=runner,
        console=console,
        dry_run=args.dry_run,
    )

    try:
        return dispatcher.dispatch(action, clean_all=args.clean_all)
    finally:
        if args.dry_run and isinstance(runner, RecordingCommandRunner):
            _emit_dry_run_output(runner, workspace=workspace)


def main(argv: Iterable[str] | None = None, *, environ: Mapping[str, str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    console = Console(_console_level(args), dry_run=args.dry_run)

    if args.show_help:
        print(USAGE)
        return 1
    if args.action is None:
        console.error("Missing action (build|play|run|fresh|clean)")
        print(USAGE, file=sys.stderr)
        return 1

    try:
        return _handle_action(args, console, environ)
    except QtBuildError as exc:
        console.error(str(exc))
        return exc.exit_code
    except KeyboardInterrupt:
        console.error("Interrupted.")
        return 130


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
