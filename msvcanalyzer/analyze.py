# SPDX-License-Identifier: MIT
"""This module implements the 'msvc-code-analysis' command API.

To run the static analyzer against a CMake project goes like this:

 -- Load:      get the compile commands from the CMake file API,
 -- Prepare:   find the analyzer plugin and the ruleset of each compiler,
 -- Analyze:   run the compiler in analysis mode against every source,
               each run writes a SARIF file into the results directory."""

import glob
import logging
import os
import os.path
import subprocess
from collections.abc import Iterable

from msvcanalyzer import command_entry_point, run_command
from msvcanalyzer.arguments import parse_args, resolve_input_path
from msvcanalyzer.cmakeapi import CMakeApi
from msvcanalyzer.compilation import CompileCommand
from msvcanalyzer.config import CompilerCommandOptions
from msvcanalyzer.errors import AnalysisError, ConfigurationError, ExternalToolError
from msvcanalyzer.wincmd import decode, encode, escape

__all__ = ["analyze_build"]

# Location of the rulesets shipped with Visual Studio, relative to the
# directory of the compiler (VC/Tools/MSVC/<toolset>/bin/Host<arch>/<arch>).
RELATIVE_RULESET_PATH = os.path.join(*([os.pardir] * 7), "Team Tools", "Static Analysis Tools", "Rule Sets")

# The analyzer engine is shipped in the host/target bin directory.
ESPX_ENGINE = "EspXEngine.dll"
HOST_TARGETS = {"hostx86": "x86", "hostx64": "x64"}

# GitHub code scanning does not support some of the SARIF options.
SARIF_COMPATIBILITY_ENVIRONMENT = {"CAEmitSarifLog": "1"}


@command_entry_point
def analyze_build() -> int:
    """Entry point for msvc-code-analysis command."""

    args = parse_args()
    options = CompilerCommandOptions(
        ignore_system_headers=args.ignore_system_headers,
        use_precompiled_headers=args.use_precompiled_headers,
    )

    api = CMakeApi()
    api.load(args.build_dir, args.cmake)

    results_dir = prepare_results_dir(args.results_dir, args.clean_sarif)

    compile_commands = list(api.compile_commands(options))
    if not compile_commands:
        raise AnalysisError("No C/C++ files were found in the project that could be analyzed.")

    common_args = common_arguments_by_compiler(compile_commands, args.ruleset, args.workspace, options)
    failures = run_analyzer_sequential(compile_commands, common_args, results_dir)
    return 1 if failures else 0


def run_analyzer_sequential(compile_commands: Iterable[CompileCommand], common_args: dict[str, str], results_dir: str) -> int:
    """Runs the analyzer against the given compile commands, one by one.

    :return: the number of failed analyzer runs"""

    failures = 0
    sarif_files = SarifNames(results_dir)
    for compile_command in compile_commands:
        command = analyzer_command(compile_command, common_args[compile_command.compiler.path], sarif_files.next(compile_command.source))
        result = run_analyzer(command, os.path.dirname(compile_command.source))
        logging_analyzer_output(result)
        if result["exit_code"]:
            logging.warning("analysis failed: %s", compile_command.source)
            failures += 1
    return failures


def analyzer_command(compile_command: CompileCommand, common_args: str, sarif_file: str) -> str:
    """Assemble the analyzer command line of a single source file."""

    return encode(
        [
            escape(compile_command.compiler.path),
            compile_command.args,
            common_args,
            escape(f"/analyze:log{sarif_file}"),
            escape(compile_command.source),
        ]
    )


def run_analyzer(command: str, cwd: str) -> dict[str, object]:
    """Execute the analyzer command and capture the output of it."""

    environment = dict(os.environ, **SARIF_COMPATIBILITY_ENVIRONMENT)
    # the compiler takes the command line as is, elsewhere it needs splitting
    executable: str | list[str] = command if os.name == "nt" else decode(command)
    try:
        output = run_command(executable, cwd=cwd, env=environment)
        return {"error_output": output, "exit_code": 0}
    except OSError:
        message = f"failed to execute {command}"
        return {"error_output": [message], "exit_code": 127}
    except subprocess.CalledProcessError as ex:
        return {"error_output": ex.output, "exit_code": ex.returncode}


def logging_analyzer_output(result: dict[str, object]) -> None:
    """Display error message from analyzer."""

    for line in result.get("error_output") or []:
        logging.info(line)


class SarifNames:
    """Unique SARIF file name for each analyzed source.

    Sources of different directories might share the same name, the later
    ones get a numbered suffix. Generated names are compared without case."""

    def __init__(self, results_dir: str) -> None:
        self.results_dir = results_dir
        self.seen: dict[str, int] = {}
        self.used: set[str] = set()

    def next(self, source: str) -> str:
        name = os.path.basename(source)
        key = name.lower()
        count = self.seen.get(key, 0)
        candidate = f"{name}-{count}" if count else name
        while candidate.lower() in self.used:
            count += 1
            candidate = f"{name}-{count}"
        self.seen[key] = count + 1
        self.used.add(candidate.lower())
        return os.path.join(self.results_dir, candidate + ".sarif")


def common_arguments_by_compiler(
    compile_commands: Iterable[CompileCommand], ruleset: str | None, workspace: str, options: CompilerCommandOptions
) -> dict[str, str]:
    """Construct the analysis arguments of every compiler, before any of them runs."""

    result: dict[str, str] = {}
    for compile_command in compile_commands:
        cl_path = compile_command.compiler.path
        if cl_path not in result:
            result[cl_path] = common_analyze_arguments(cl_path, ruleset, workspace, options)
    return result


def common_analyze_arguments(cl_path: str, ruleset: str | None, workspace: str, options: CompilerCommandOptions) -> str:
    """Construct all command-line arguments that will be common among all
    sources files of a given compiler.

    :param cl_path: path to the MSVC compiler
    :param ruleset: ruleset requested by the user
    :param workspace: directory where relative ruleset paths are searched
    :param options: options for different compiler features
    :return: analyze arguments concatenated into a single string"""

    arguments = ["/analyze:quiet", "/analyze:log:format:sarif"]
    arguments.append(escape(f"/analyze:plugin{find_espx_engine(cl_path)}"))

    ruleset_directory = find_ruleset_directory(cl_path)
    ruleset_path = find_ruleset(ruleset, ruleset_directory, workspace)
    if ruleset_path is not None:
        arguments.append(escape(f"/analyze:ruleset{ruleset_path}"))
        # add ruleset directories in case user includes any official rulesets
        if ruleset_directory is not None:
            arguments.append(escape(f"/analyze:rulesetdirectory{ruleset_directory}"))
    else:
        logging.warning("Ruleset is not being used, all warnings will be enabled.")

    if options.ignore_system_headers:
        arguments.append("/analyze:external-")

    return encode(arguments)


def find_espx_engine(cl_path: str) -> str:
    """Find EspXEngine.dll as it only exists in host/target bin for MSVC
    Visual Studio release.

    :param cl_path: path to the MSVC compiler
    :return: path to EspXEngine.dll"""

    cl_dir = os.path.dirname(cl_path)

    # check if we already have the correct host/target pair
    dll_path = os.path.join(cl_dir, ESPX_ENGINE)
    if os.path.exists(dll_path):
        return dll_path

    host_dir = os.path.dirname(cl_dir)
    target_name = HOST_TARGETS.get(os.path.basename(host_dir).lower())
    if target_name is None:
        raise ExternalToolError("Unknown MSVC toolset layout")

    dll_path = os.path.join(host_dir, target_name, ESPX_ENGINE)
    if os.path.exists(dll_path):
        return dll_path

    raise ExternalToolError(f"Unable to find {ESPX_ENGINE}")


def find_ruleset_directory(cl_path: str) -> str | None:
    """Find official ruleset directory using the known path of MSVC compiler
    in Visual Studio.

    :param cl_path: path to the MSVC compiler
    :return: path to directory containing all Visual Studio rulesets"""

    ruleset_directory = os.path.normpath(os.path.join(os.path.dirname(cl_path), RELATIVE_RULESET_PATH))
    return ruleset_directory if os.path.isdir(ruleset_directory) else None


def find_ruleset(ruleset: str | None, ruleset_directory: str | None, workspace: str) -> str | None:
    """Find ruleset first searching relative to the workspace and then
    relative to the official ruleset directory shipped in Visual Studio.

    :param ruleset: ruleset requested by the user
    :param ruleset_directory: path to directory containing all Visual Studio rulesets
    :param workspace: directory where relative ruleset paths are searched
    :return: path to ruleset found locally or inside Visual Studio"""

    repo_ruleset_path = resolve_input_path(ruleset, workspace)
    if repo_ruleset_path is None:
        return None
    if os.path.isfile(repo_ruleset_path):
        return repo_ruleset_path

    # search official ruleset directory that ships inside of Visual Studio
    if ruleset_directory is not None:
        official_ruleset_path = os.path.join(ruleset_directory, ruleset)
        if os.path.isfile(official_ruleset_path):
            return official_ruleset_path
    else:
        logging.warning("Unable to find official rulesets shipped with Visual Studio")

    raise ConfigurationError(f"Unable to find ruleset specified: {ruleset}")


def prepare_results_dir(results_dir: str, clean: bool) -> str:
    """Create the results directory and cleanup any stale SARIF files.

    :param results_dir: the directory for SARIF files
    :param clean: delete the existing SARIF files when true
    :return: the absolute path to the results directory"""

    results_dir = os.path.abspath(results_dir)
    try:
        os.makedirs(results_dir, exist_ok=True)
    except OSError as ex:
        raise ConfigurationError(f"Failed to create 'results' directory: {results_dir}: {ex}") from ex

    if clean:
        for name in glob.glob(os.path.join(glob.escape(results_dir), "*")):
            if os.path.isfile(name) and os.path.splitext(name)[1].lower() == ".sarif":
                logging.debug("remove stale SARIF file: %s", name)
                os.remove(name)

    return results_dir
