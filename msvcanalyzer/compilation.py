# SPDX-License-Identifier: MIT
"""This module is responsible for the compile commands of the CMake targets.

A target reply lists the sources of the target, and groups those sources by
the compiler options they share (compile groups). The compile command of a
source is reconstructed from the group: the command fragments as CMake wrote
them, followed by the include directories and the preprocessor defines."""

import os.path
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from msvcanalyzer.config import CompilerCommandOptions
from msvcanalyzer.errors import ReplyMalformedError
from msvcanalyzer.toolchain import CompilerInfo
from msvcanalyzer.wincmd import encode, escape

__all__ = ["Include", "CompileGroup", "Target", "CompileCommand", "compile_group_arguments"]


@dataclass(frozen=True)
class Include:
    """Include directory of a compile group."""

    path: str
    is_system: bool = False


@dataclass
class CompileGroup:
    """Sources of a target which are compiled with the same options."""

    language: str
    fragments: list[str] = field(default_factory=list)
    includes: list[Include] = field(default_factory=list)
    defines: list[str] = field(default_factory=list)
    source_indexes: list[int] = field(default_factory=list)

    @classmethod
    def from_reply(cls, group: dict[str, Any]) -> "CompileGroup":
        """Create compile group from the 'compileGroups' entry of a target reply."""
        return cls(
            language=group.get("language", ""),
            fragments=[command["fragment"] for command in group.get("compileCommandFragments", [])],
            includes=[Include(entry["path"], bool(entry.get("isSystem", False))) for entry in group.get("includes", [])],
            defines=[entry["define"] for entry in group.get("defines", [])],
            source_indexes=list(group.get("sourceIndexes", [])),
        )


@dataclass
class Target:
    """A CMake target with its sources and compile groups."""

    json_file: str
    sources: list[str] = field(default_factory=list)
    compile_groups: list[CompileGroup] = field(default_factory=list)

    @classmethod
    def from_reply(cls, json_file: str, data: dict[str, Any]) -> "Target":
        """Create target from the parsed target reply file."""
        try:
            target = cls(
                json_file=json_file,
                sources=[source["path"] for source in data.get("sources", [])],
                compile_groups=[CompileGroup.from_reply(group) for group in data.get("compileGroups", [])],
            )
        except (KeyError, TypeError, AttributeError) as ex:
            raise ReplyMalformedError(f"Unexpected CMake API target reply: {json_file}: {ex!r}") from ex
        target.validate()
        return target

    def validate(self) -> None:
        """Check that the compile groups refer to existing sources."""
        for group in self.compile_groups:
            for index in group.source_indexes:
                if not isinstance(index, int) or not 0 <= index < len(self.sources):
                    raise ReplyMalformedError(f"Source index {index} is out of range in target reply: {self.json_file}")

    def source(self, source_root: str, index: int) -> str:
        """Absolute path of the source with the given index."""
        return os.path.normpath(os.path.join(source_root, self.sources[index]))


@dataclass(frozen=True)
class CompileCommand:
    """Represents the compilation of a single source file."""

    source: str
    args: str
    compiler: CompilerInfo


def compile_group_arguments(group: CompileGroup, options: CompilerCommandOptions) -> str:
    """Construct compile-command arguments from compile group information.

    :param group: the compile group of the sources
    :param options: options for different command-line options
    :return: compile-command arguments joined into one string"""

    # fragments are already escaped by CMake
    arguments = list(group.fragments)

    for include in group.includes:
        if options.ignore_system_headers and include.is_system:
            arguments.append(escape(f"/external:I{include.path}"))
        else:
            arguments.append(escape(f"/I{include.path}"))

    for define in group.defines:
        arguments.append(escape(f"/D{define}"))

    return encode(arguments)


def iter_compile_commands(
    targets: Iterator[Target],
    source_root: str,
    compilers: dict[str, CompilerInfo | None],
    options: CompilerCommandOptions,
) -> Iterator[CompileCommand]:
    """Generator method for compile commands.

    From a single compile group it generates one entry per source. Groups of
    languages without an MSVC compiler generate nothing.

    :param targets: stream of targets, in the order of the code model
    :param source_root: the top level source directory of the project
    :param compilers: the compiler of each language
    :param options: options for different command-line options
    :return: stream of CompileCommand objects"""

    for target in targets:
        for group in target.compile_groups:
            compiler = compilers.get(group.language)
            if compiler is None:
                continue
            args = compile_group_arguments(group, options)
            for index in group.source_indexes:
                yield CompileCommand(source=target.source(source_root, index), args=args, compiler=compiler)
