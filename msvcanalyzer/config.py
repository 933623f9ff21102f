# SPDX-License-Identifier: MIT
"""Configuration constants and settings for the msvcanalyzer."""

from dataclasses import dataclass

from msvcanalyzer.errors import ReplyMalformedError


@dataclass(frozen=True)
class ApiConfig:
    """Constants of the CMake file API exchange.

    The query and the reply files are namespaced by the client name, so
    other clients (IDEs) of the same build directory are not disturbed.
    """

    # Client identity of the query/reply exchange.
    client_name: str = "client-msvc-code-analysis"

    # Location of the file API inside the build directory.
    api_directory: str = ".cmake/api/v1"

    # The oldest CMake which writes the requested replies.
    minimum_version: str = "3.13.7"

    # Requested object kinds with their major versions. The order is kept
    # in the query file.
    query_kinds: tuple[tuple[str, int], ...] = (("cache", 2), ("codemodel", 2), ("toolchains", 1))

    # Executable names accepted as MSVC when the toolchains reply is missing.
    compiler_names: frozenset[str] = frozenset({"cl.exe", "cl"})

    # Compiler id reported by the toolchains reply for MSVC.
    compiler_id: str = "MSVC"


# Default configuration instance
DEFAULT_CONFIG = ApiConfig()


@dataclass(frozen=True)
class CompilerCommandOptions:
    """Options to enable/disable different compiler features."""

    # Use /external command line options to ignore warnings in CMake SYSTEM headers.
    ignore_system_headers: bool = False
    # Reserved, precompiled headers are not built before the analysis yet.
    use_precompiled_headers: bool = False


def parse_version(version: str) -> tuple[int, ...]:
    """Split a dotted version string into numbers.

    Suffixes like '-rc1' or 'g1234abc' are ignored on each component.

    >>> parse_version("3.20.0-rc2")
    (3, 20, 0)
    """
    numbers = []
    for component in version.split("."):
        digits = ""
        for char in component:
            if not char.isdigit():
                break
            digits += char
        if not digits:
            break
        numbers.append(int(digits))
    if not numbers:
        raise ReplyMalformedError(f"Unrecognized CMake version string: '{version}'")
    return tuple(numbers)


def is_supported_version(version: str, minimum: str = DEFAULT_CONFIG.minimum_version) -> bool:
    """Check the CMake version against the minimum protocol version."""
    return parse_version(version) >= parse_version(minimum)
