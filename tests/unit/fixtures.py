# SPDX-License-Identifier: MIT

import json
import os
import os.path
import shutil
import tempfile

CLIENT = "client-msvc-code-analysis"
INDEX = "index-2021-06-01T00-00-00-0000.json"


class Spy:
    def __init__(self):
        self.arg = None
        self.calls = []
        self.success = []

    def call(self, *args, **kwargs):
        self.arg = args[0] if args else None
        self.calls.append((args, kwargs))
        return self.success


class BuildDirectory:
    """Configured CMake build directory with file API replies in a
    temporary directory."""

    def __init__(self):
        self.root = tempfile.mkdtemp(".test", "msvcanalyzer", None)
        self.api_dir = os.path.join(self.root, ".cmake", "api", "v1")
        self.reply_dir = os.path.join(self.api_dir, "reply")
        os.makedirs(self.reply_dir)
        self.write(os.path.join(self.root, "CMakeCache.txt"), "")

    def __enter__(self):
        return self

    def __exit__(self, exc, value, tb):
        self.cleanup()

    def cleanup(self):
        if self.root is not None:
            shutil.rmtree(self.root)
            self.root = None

    @staticmethod
    def write(filename, content):
        with open(filename, "w", encoding="utf-8") as handle:
            handle.write(content)

    def reply(self, name, data):
        self.write(os.path.join(self.reply_dir, name), json.dumps(data))
        return name

    def index(self, version="3.20.0", responses=None, name=INDEX):
        data = {"version": {"string": version}, "reply": {}}
        if responses is not None:
            data["reply"][CLIENT] = {"query.json": {"responses": responses}}
        return self.reply(name, data)

    def cache(self, entries, name="cache-v2.json"):
        self.reply(name, {"entries": [{"name": key, "value": value, "type": "STRING"} for key, value in entries.items()]})
        return {"kind": "cache", "jsonFile": name}

    def codemodel(self, targets, source="C:/project", name="codemodel-v2.json"):
        configuration = {"name": "Debug", "targets": [{"name": target, "jsonFile": target} for target in targets]}
        self.reply(name, {"paths": {"source": source, "build": self.root}, "configurations": [configuration]})
        return {"kind": "codemodel", "jsonFile": name}

    def toolchains(self, toolchains, name="toolchains-v1.json"):
        self.reply(name, {"toolchains": toolchains})
        return {"kind": "toolchains", "jsonFile": name}

    def target(self, name, sources, groups):
        return self.reply(name, {"name": name, "sources": [{"path": source} for source in sources], "compileGroups": groups})


def msvc_toolchain(language, path="C:/VS/VC/Tools/MSVC/14.29.30133/bin/Hostx64/x64/cl.exe"):
    return {
        "language": language,
        "compiler": {
            "id": "MSVC",
            "path": path,
            "version": "19.29.30133.0",
            "includeDirectories": ["C:/VS/VC/Tools/MSVC/14.29.30133/include"],
        },
    }


def compile_group(language="CXX", fragments=(), includes=(), defines=(), sources=(0,)):
    return {
        "language": language,
        "compileCommandFragments": [{"fragment": fragment} for fragment in fragments],
        "includes": [{"path": path, "isSystem": system} for path, system in includes],
        "defines": [{"define": define} for define in defines],
        "sourceIndexes": list(sources),
    }
