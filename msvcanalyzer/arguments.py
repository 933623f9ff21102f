# SPDX-License-Identifier: MIT
"""This module parses and validates arguments for command-line interfaces.

It uses argparse module to create the command line parser.

It also implements basic validation methods, related to the command.
Validations are mostly resolving paths relative to the workspace."""

import argparse
import logging
import os
import os.path
import sys

from msvcanalyzer import reconfigure_logging

__all__ = ["parse_args", "create_parser", "resolve_input_path"]

# Environment variable of the checked out repository on CI.
WORKSPACE_VARIABLE = "GITHUB_WORKSPACE"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse and validate command-line arguments for msvc-code-analysis."""

    parser = create_parser()
    args = parser.parse_args(argv)

    reconfigure_logging(args.verbose)
    logging.debug("Raw arguments %s", sys.argv if argv is None else argv)

    normalize_args(parser, args)
    validate_args(parser, args)
    logging.debug("Parsed arguments: %s", args)
    return args


def resolve_input_path(path: str | None, workspace: str) -> str | None:
    """Make non-absolute paths relative to the workspace.

    :param path: the path given by the user (might be empty)
    :param workspace: the root directory of the checked out repository
    :return: absolute path, or None when the path was not given"""

    if not path:
        return None
    if not os.path.isabs(path):
        path = os.path.join(workspace, path)
    return os.path.normpath(path)


def normalize_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    """Normalize parsed arguments.

    :param parser: The command line parser object.
    :param args: Parsed argument object. (Will be mutated.)"""

    args.workspace = os.path.abspath(args.workspace or os.environ.get(WORKSPACE_VARIABLE) or os.getcwd())

    build_dir = resolve_input_path(args.build_dir, args.workspace)
    if build_dir is None:
        parser.error(message="build-dir input path can not be empty.")
    args.build_dir = build_dir

    results_dir = resolve_input_path(args.results_dir, args.workspace)
    if results_dir is None:
        parser.error(message="results-dir input path can not be empty.")
    args.results_dir = results_dir


def validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    """Command line parsing is done by the argparse module, but semantic
    validation still needs to be done.

    :param parser: The command line parser object.
    :param args: Parsed argument object.
    :return: No return value, but this call might throw when validation
    fails."""

    if not os.path.isdir(args.build_dir):
        parser.error(message="CMake build directory does not exist. Ensure CMake is already configured.")
    if args.use_precompiled_headers:
        logging.warning("Precompiled headers are not supported yet, the option is ignored.")


def create_parser() -> argparse.ArgumentParser:
    """Creates a parser for command-line arguments to 'msvc-code-analysis'."""

    parser = argparse.ArgumentParser(
        description="Run MSVC code analysis against a CMake project and write SARIF files.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    _ = parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Enable verbose output from msvc-code-analysis. A second, third and fourth flags increases verbosity.",
    )
    _ = parser.add_argument(
        "--build-dir",
        "-b",
        metavar="<path>",
        dest="build_dir",
        required=True,
        help="The CMake build directory. The project has to be configured already.",
    )
    _ = parser.add_argument(
        "--workspace",
        metavar="<path>",
        help=f"Relative paths are resolved against this directory. Defaults to ${WORKSPACE_VARIABLE} or the current directory.",
    )

    output = parser.add_argument_group("output control options")
    _ = output.add_argument(
        "--results-dir",
        "-o",
        metavar="<path>",
        dest="results_dir",
        required=True,
        help="Specifies the output directory for the SARIF files. It is created when missing.",
    )
    _ = output.add_argument(
        "--clean-sarif",
        action="store_true",
        help="Delete the existing SARIF files of the output directory before the analysis.",
    )

    analysis = parser.add_argument_group("analysis options")
    _ = analysis.add_argument(
        "--ruleset",
        metavar="<file>",
        help="Ruleset file. Relative paths are searched in the workspace first, then in the rulesets of Visual Studio. All warnings are enabled when not given.",
    )
    _ = analysis.add_argument(
        "--ignore-system-headers",
        action="store_true",
        help="Use /external command line options to ignore warnings in CMake SYSTEM headers.",
    )
    _ = analysis.add_argument(
        "--use-precompiled-headers",
        action="store_true",
        help="Reserved, precompiled headers are not built before the analysis yet.",
    )

    advanced = parser.add_argument_group("advanced options")
    _ = advanced.add_argument(
        "--cmake",
        metavar="<path>",
        help="The CMake executable used to re-configure the project. Looked up on the PATH when not given.",
    )

    return parser
