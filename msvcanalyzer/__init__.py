# SPDX-License-Identifier: MIT
"""This module is a collection of methods commonly used in this project."""

import functools
import logging
import os
import os.path
import subprocess
import sys
from collections.abc import Callable, Mapping
from typing import Any

from msvcanalyzer.errors import AnalysisError


def run_command(command: str | list[str], cwd: str | None = None, env: Mapping[str, str] | None = None) -> list[str]:
    """Run a given command and report the execution.

    The call blocks until the child process exits.

    :param command: array of tokens, or a complete command line on Windows
    :param cwd: the working directory where the command will be executed
    :param env: the environment of the child process (inherited when None)
    :return: output of the command
    """

    def decode_when_needed(result: Any) -> str:
        """check_output returns bytes, the compiler might not emit utf-8"""
        if not isinstance(result, str):
            return result.decode("utf-8", errors="replace")
        return result

    try:
        directory = os.path.abspath(cwd) if cwd else os.getcwd()
        logging.debug("exec command %s in %s", command, directory)
        output = subprocess.check_output(command, cwd=directory, env=env, stderr=subprocess.STDOUT)
        return decode_when_needed(output).splitlines()
    except subprocess.CalledProcessError as ex:
        ex.output = decode_when_needed(ex.output).splitlines()
        raise ex


def reconfigure_logging(verbose_level: int) -> None:
    """Reconfigure logging level and format based on the verbose flag.

    :param verbose_level: number of `-v` flags received by the command
    :return: no return value
    """
    # exit when nothing to do
    if verbose_level == 0:
        return

    root = logging.getLogger()
    # tune level
    level = max(logging.DEBUG, logging.WARNING - (10 * verbose_level))
    root.setLevel(level)
    # be verbose with messages
    if verbose_level <= 3:
        fmt_string = "%(name)s: %(levelname)s: %(message)s"
    else:
        fmt_string = "%(name)s: %(levelname)s: %(funcName)s: %(message)s"
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=fmt_string))
    root.handlers = [handler]


def command_entry_point(function: Callable[[], int]) -> Callable[[], int]:
    """Decorator for command entry methods.

    The decorator initialize/shutdown logging and guard on programming
    errors (catch exceptions). Analysis errors are reported with their
    message only, since those are expected failures of the input project.

    The decorated method can have arbitrary parameters, the return value will
    be the exit code of the process."""

    @functools.wraps(function)
    def wrapper() -> int:
        """Do housekeeping tasks and execute the wrapped method."""

        try:
            logging.basicConfig(format="%(name)s: %(message)s", level=logging.WARNING, stream=sys.stdout)
            # this hack to get the executable name as %(name)
            logging.getLogger().name = os.path.basename(sys.argv[0])
            return function()
        except KeyboardInterrupt:
            logging.warning("Keyboard interrupt")
            return 130  # signal received exit code for bash
        except AnalysisError as ex:
            logging.error("%s", ex)
            return 1
        except (OSError, subprocess.CalledProcessError):
            logging.exception("Internal error.")
            if logging.getLogger().isEnabledFor(logging.DEBUG):
                logging.error("Please report this bug and attach the output to the bug report")
            else:
                logging.error("Please run this command again and turn on verbose mode (add '-vvvv' as argument).")
            return 64  # some non used exit code for internal errors
        finally:
            logging.shutdown()

    return wrapper
