# SPDX-License-Identifier: MIT
"""This module reads the reply files of the CMake file API.

CMake writes the replies into '<build>/.cmake/api/v1/reply'. The entry
point is the newest 'index-*.json' file, which refers to the other reply
files by their names."""

import json
import logging
import os
import os.path
from typing import Any

from msvcanalyzer.errors import ReplyMalformedError, ReplyMissingError

__all__ = ["parse_reply_file", "find_reply_index", "cmake_version", "client_responses"]

INDEX_PREFIX = "index-"
INDEX_SUFFIX = ".json"


def parse_reply_file(reply_file: str) -> Any:
    """Read and parse json reply file.

    :param reply_file: absolute path to json reply
    :return: parsed json data of the reply file"""

    if not reply_file:
        raise ReplyMissingError("Failed to find CMake API reply file.")
    if not os.path.isfile(reply_file):
        raise ReplyMissingError(f"Failed to find CMake API reply file: {reply_file}")

    logging.debug("read reply file %s", reply_file)
    try:
        with open(reply_file, encoding="utf-8") as handle:
            return json.load(handle)
    except (ValueError, UnicodeDecodeError) as ex:
        raise ReplyMalformedError(f"Failed to parse CMake API reply file: {reply_file}: {ex}") from ex


def find_reply_index(api_dir: str) -> Any:
    """Load the reply index file of the CMake API.

    Multiple index files might be present, the newest one is selected. The
    name of those files embeds a timestamp, so lexicographic order works.

    :param api_dir: CMake API directory '.cmake/api/v1'
    :return: parsed json data of reply/index-xxx.json"""

    reply_dir = os.path.join(api_dir, "reply")
    if not os.path.isdir(reply_dir):
        raise ReplyMissingError(f"Failed to find CMake API reply directory: {reply_dir}")

    candidates = [name for name in os.listdir(reply_dir) if name.startswith(INDEX_PREFIX) and name.endswith(INDEX_SUFFIX)]
    if not candidates:
        raise ReplyMissingError(f"Failed to find CMake API index reply file in: {reply_dir}")

    return parse_reply_file(os.path.join(reply_dir, max(candidates)))


def cmake_version(index: Any) -> str:
    """Returns the version string of the CMake which wrote the index."""

    for owner in (index, index.get("cmake") if isinstance(index, dict) else None):
        version = owner.get("version") if isinstance(owner, dict) else None
        if isinstance(version, dict) and isinstance(version.get("string"), str):
            return version["string"]
    raise ReplyMalformedError("CMake API index reply file has no version.")


def client_responses(index: Any, client_name: str) -> list[dict[str, str]]:
    """Returns the responses to the stateful query of the given client.

    Responses for unknown object kinds are reported by CMake as an error
    object. Those are dropped here."""

    reply = index.get("reply") if isinstance(index, dict) else None
    client = reply.get(client_name) if isinstance(reply, dict) else None
    query = client.get("query.json") if isinstance(client, dict) else None
    responses = query.get("responses") if isinstance(query, dict) else None

    result = []
    for response in responses or []:
        if isinstance(response, dict) and "kind" in response and "jsonFile" in response:
            result.append(response)
        else:
            logging.debug("ignore response %s", response)
    return result
