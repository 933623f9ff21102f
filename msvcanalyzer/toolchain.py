# SPDX-License-Identifier: MIT
"""This module is responsible to find the MSVC compilers of the project.

CMake 3.20 and later reports the toolchains. For older versions the compiler
paths are taken from the CMake cache, and the version and default include
directory are guessed from the known Visual Studio installation layout:

    <VC>/Tools/MSVC/<toolset>/bin/Host<arch>/<arch>/cl.exe"""

import logging
import os.path
from dataclasses import dataclass, field
from typing import Any

from msvcanalyzer.config import DEFAULT_CONFIG
from msvcanalyzer.errors import ReplyMalformedError, ToolchainUnresolvedError

__all__ = ["CompilerInfo", "load_toolchains", "load_toolchains_from_cache"]

LANGUAGES = ("C", "CXX")
CACHE_VARIABLES = {"C": "CMAKE_C_COMPILER", "CXX": "CMAKE_CXX_COMPILER"}


@dataclass(frozen=True)
class CompilerInfo:
    """Resolved compiler of a single language."""

    path: str
    version: str
    includes: list[str] = field(default_factory=list)


def load_toolchains(data: Any) -> tuple[CompilerInfo | None, CompilerInfo | None]:
    """Load the compilers from the toolchains reply.

    :param data: parsed json data of the toolchains reply
    :return: the C and C++ compiler info, None for the one not using MSVC"""

    found: dict[str, CompilerInfo] = {}
    try:
        for toolchain in data.get("toolchains", []):
            language = toolchain.get("language")
            compiler = toolchain.get("compiler", {})
            if language not in LANGUAGES:
                continue
            if compiler.get("id") != DEFAULT_CONFIG.compiler_id:
                logging.debug("skip %s compiler: %s", language, compiler.get("id"))
                continue
            path = compiler["path"]
            if not path or not isinstance(path, str):
                raise ReplyMalformedError(f"MSVC {language} compiler has no path in CMake API toolchains reply")
            found[language] = CompilerInfo(
                path=path,
                version=compiler.get("version", ""),
                includes=list(compiler.get("includeDirectories", [])),
            )
    except (KeyError, TypeError, AttributeError) as ex:
        raise ReplyMalformedError(f"Unexpected CMake API toolchains reply: {ex!r}") from ex

    return _require_msvc(found.get("C"), found.get("CXX"))


def load_toolchains_from_cache(cache: dict[str, str]) -> tuple[CompilerInfo | None, CompilerInfo | None]:
    """Attempt to load the compilers from the CMake cache and known paths,
    because the toolchains reply is not available in CMake version < 3.20

    :param cache: the CMake cache variables
    :return: the C and C++ compiler info, None for the one not using MSVC"""

    found: dict[str, CompilerInfo] = {}
    for language in LANGUAGES:
        path = cache.get(CACHE_VARIABLES[language])
        if path and is_msvc_compiler(path):
            found[language] = CompilerInfo(
                path=path,
                version=extract_version_from_compiler_path(path),
                includes=extract_includes_from_compiler_path(path),
            )
        else:
            logging.debug("skip %s compiler: %s", language, path)

    return _require_msvc(found.get("C"), found.get("CXX"))


def is_msvc_compiler(path: str) -> bool:
    """Check the executable name against the known MSVC compiler names."""

    return os.path.basename(path).lower() in DEFAULT_CONFIG.compiler_names


def _toolset_directory(compiler_path: str) -> str:
    return os.path.normpath(os.path.join(compiler_path, os.pardir, os.pardir, os.pardir))


def extract_version_from_compiler_path(compiler_path: str) -> str:
    """Extract the toolset version from the path of the compiler."""

    return os.path.basename(_toolset_directory(compiler_path))


def extract_includes_from_compiler_path(compiler_path: str) -> list[str]:
    """Extract the default compiler includes from the path of the compiler."""

    # TODO: add the Windows SDK include directories of the toolset.
    return [os.path.join(_toolset_directory(compiler_path), "include")]


def _require_msvc(
    c_info: CompilerInfo | None, cxx_info: CompilerInfo | None
) -> tuple[CompilerInfo | None, CompilerInfo | None]:
    if c_info is None and cxx_info is None:
        raise ToolchainUnresolvedError("MSVC is required for either/both C or C++.")
    return c_info, cxx_info
