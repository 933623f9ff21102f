# SPDX-License-Identifier: MIT
"""This module implements the client of the CMake file API.

The build directory has to be configured already. To get the compile
commands of the project it goes like this:

 -- Read:      the existing reply index, to check the CMake version,
 -- Query:     write the query file of this client,
 -- Configure: re-run CMake, which writes the replies for the query,
 -- Load:      read the cache, the code model and the toolchains replies."""

import json
import logging
import os
import os.path
import shutil
import subprocess
from collections.abc import Iterator
from typing import Any

from msvcanalyzer import run_command
from msvcanalyzer.compilation import CompileCommand, Target, iter_compile_commands
from msvcanalyzer.config import DEFAULT_CONFIG, CompilerCommandOptions, is_supported_version
from msvcanalyzer.errors import (
    ConfigurationError,
    ExternalToolError,
    NotLoadedError,
    ProtocolVersionError,
    ReplyMalformedError,
    ReplyMissingError,
)
from msvcanalyzer.reply import client_responses, cmake_version, find_reply_index, parse_reply_file
from msvcanalyzer.toolchain import CompilerInfo, load_toolchains, load_toolchains_from_cache

__all__ = ["CMakeApi"]


class CMakeApi:
    """Class for interacting with the CMake file API.

    `load` is required to call any other methods on this class."""

    client_name = DEFAULT_CONFIG.client_name

    def __init__(self) -> None:
        self.loaded = False

        self.c_compiler_info: CompilerInfo | None = None
        self.cxx_compiler_info: CompilerInfo | None = None

        self.source_root: str | None = None
        self.cache: dict[str, str] = {}
        self.target_filepaths: list[str] = []

    def load(self, build_root: str, cmake: str | None = None) -> None:
        """Create a query to the CMake API of an existing already configured
        CMake project, re-run the configuration and read the replies.

        :param build_root: directory of CMake build
        :param cmake: the CMake executable, looked up on the PATH when None"""

        if self.loaded:
            raise ConfigurationError("CMake API replies are already loaded.")

        cmake_path = self._preflight(build_root, cmake)
        api_dir = os.path.join(build_root, DEFAULT_CONFIG.api_directory)

        # read existing reply index to get the CMake version
        self._check_version(find_reply_index(api_dir))

        self._create_api_query(api_dir)
        self._run_cmake(cmake_path, build_root)

        self._load_reply_files(api_dir)

        self.loaded = True
        logging.debug("CMake API loaded: %d targets", len(self.target_filepaths))

    def compile_commands(self, options: CompilerCommandOptions | None = None) -> Iterator[CompileCommand]:
        """Iterate through all CMake targets and extract both the compiler and
        command-line information from every compilation unit in the project.
        This will only capture C and CXX compilation units that are compiled
        with MSVC.

        :param options: options for different compiler features
        :return: command-line data for each source file of the project"""

        if not self.loaded:
            raise NotLoadedError("CMakeApi: compile_commands called before API is loaded")
        assert self.source_root is not None

        compilers = {"C": self.c_compiler_info, "CXX": self.cxx_compiler_info}
        yield from iter_compile_commands(self._targets(), self.source_root, compilers, options or CompilerCommandOptions())

    def _targets(self) -> Iterator[Target]:
        # target replies are read lazily
        for target_file in self.target_filepaths:
            yield Target.from_reply(target_file, parse_reply_file(target_file))

    @staticmethod
    def _preflight(build_root: str, cmake: str | None) -> str:
        if not build_root:
            raise ConfigurationError("CMakeApi: 'build_root' can not be empty.")
        if not os.path.isdir(build_root):
            raise ConfigurationError(f"CMake build root not found at: {build_root}")
        if not os.listdir(build_root):
            raise ConfigurationError("CMake build root must be non-empty as project should already be configured")

        executable = shutil.which(cmake or "cmake")
        if executable is None:
            raise ExternalToolError(f"{cmake or 'cmake'} is not accessible on the PATH")
        return executable

    @staticmethod
    def _check_version(index: Any) -> None:
        version = cmake_version(index)
        if not is_supported_version(version, DEFAULT_CONFIG.minimum_version):
            raise ProtocolVersionError(version, DEFAULT_CONFIG.minimum_version)
        logging.debug("CMake version: %s", version)

    def _create_api_query(self, api_dir: str) -> None:
        """Create a query file for the CMake API."""

        query_dir = os.path.join(api_dir, "query", self.client_name)
        query_data = [{"kind": kind, "version": version} for kind, version in DEFAULT_CONFIG.query_kinds]
        try:
            os.makedirs(query_dir, exist_ok=True)
            with open(os.path.join(query_dir, "query.json"), "w", encoding="utf-8") as handle:
                json.dump(query_data, handle)
        except OSError as ex:
            raise ConfigurationError(f"Failed to write query.json file for CMake API: {ex}") from ex

    @staticmethod
    def _run_cmake(cmake_path: str, build_root: str) -> None:
        """Regenerate the CMake build directory to acquire the reply files."""

        try:
            for line in run_command([cmake_path, build_root], cwd=build_root):
                logging.debug(line)
        except OSError as ex:
            raise ExternalToolError(f"Unable to run CMake used previously to build cmake project: {ex}") from ex
        except subprocess.CalledProcessError as ex:
            for line in ex.output:
                logging.debug(line)
            raise ExternalToolError(f"CMake failed to re-configure the project with exit code {ex.returncode}") from ex

    def _load_reply_files(self, api_dir: str) -> None:
        """Load the reply index file and all requested reply responses.

        The state of the instance is only changed when every reply loaded."""

        index = find_reply_index(api_dir)
        self._check_version(index)

        reply_dir = os.path.join(api_dir, "reply")
        # unsupported responses will be { "error" : "unknown request kind 'xxx'" }
        replies = {response["kind"]: os.path.join(reply_dir, response["jsonFile"]) for response in client_responses(index, self.client_name)}

        if "cache" not in replies:
            raise ReplyMissingError("Failed to load cache response from CMake API")
        if "codemodel" not in replies:
            raise ReplyMissingError("Failed to load codemodel response from CMake API")

        cache = self._load_cache(replies["cache"])
        source_root, target_filepaths = self._load_codemodel(reply_dir, replies["codemodel"])
        if "toolchains" in replies:
            c_compiler_info, cxx_compiler_info = load_toolchains(parse_reply_file(replies["toolchains"]))
        else:
            # Toolchains is only available in CMake >= 3.20. Attempt to load from cache.
            logging.debug("toolchains response is missing, use the cache")
            c_compiler_info, cxx_compiler_info = load_toolchains_from_cache(cache)

        self.cache = cache
        self.source_root = source_root
        self.target_filepaths = target_filepaths
        self.c_compiler_info = c_compiler_info
        self.cxx_compiler_info = cxx_compiler_info

    @staticmethod
    def _load_cache(cache_json_file: str) -> dict[str, str]:
        data = parse_reply_file(cache_json_file)

        # ignore entry type and just store name and string-value pair.
        cache: dict[str, str] = {}
        try:
            for entry in data.get("entries", []):
                cache[entry["name"]] = entry["value"]
        except (KeyError, TypeError, AttributeError) as ex:
            raise ReplyMalformedError(f"Unexpected CMake API cache reply: {cache_json_file}: {ex!r}") from ex
        return cache

    @staticmethod
    def _load_codemodel(reply_dir: str, codemodel_json_file: str) -> tuple[str, list[str]]:
        data = parse_reply_file(codemodel_json_file)

        try:
            configurations = data["configurations"]
            source_root = data["paths"]["source"]
            # TODO: let the user decide which configuration in multi-config generators
            configuration = configurations[0]
            targets = [os.path.join(reply_dir, target["jsonFile"]) for target in configuration.get("targets", [])]
        except (KeyError, IndexError, TypeError, AttributeError) as ex:
            raise ReplyMalformedError(f"Unexpected CMake API codemodel reply: {codemodel_json_file}: {ex!r}") from ex

        return source_root, targets
