# SPDX-License-Identifier: MIT
"""Exceptions raised while talking to the CMake file API and preparing the
analyzer runs.

Every failure of the build graph extraction is fatal: a partially loaded
graph can not produce trustworthy compile commands. The command entry point
catches `AnalysisError` and reports the message."""

__all__ = [
    "AnalysisError",
    "ConfigurationError",
    "ProtocolVersionError",
    "ReplyMissingError",
    "ReplyMalformedError",
    "ToolchainUnresolvedError",
    "ExternalToolError",
    "NotLoadedError",
]


class AnalysisError(Exception):
    """Base class of the errors this package raises."""


class ConfigurationError(AnalysisError):
    """Bad or missing input path, or the build directory is not configured."""


class ProtocolVersionError(AnalysisError):
    """The CMake file API is older than the minimum supported version."""

    def __init__(self, version: str, minimum: str):
        super().__init__(f"CMake version {version} is not supported, requires CMake version >= {minimum}")
        self.version = version
        self.minimum = minimum


class ReplyMissingError(AnalysisError):
    """An expected reply file or response kind is absent."""


class ReplyMalformedError(AnalysisError):
    """A reply file content can not be parsed or misses mandatory fields."""


class ToolchainUnresolvedError(AnalysisError):
    """Neither the C nor the C++ compiler is MSVC."""


class ExternalToolError(AnalysisError):
    """An executable was not found, or failed to run."""


class NotLoadedError(AnalysisError):
    """The build graph was queried before it was loaded."""
