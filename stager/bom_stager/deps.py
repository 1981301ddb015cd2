from __future__ import annotations
import os
import re
from dataclasses import dataclass
from typing import Callable

from .errors import DependencyDiscoveryError
from .paths import LDD, LIB_OUTPUT_DIR, MUSL_LIB_ROOT, MUSL_LIBS
from .proc import run_quiet

# "<name> => <path> (0x<16 hex digits>)", as printed by ldd
_DEPENDENCY = re.compile(r"(?P<name>.+) => (?P<path>.+) \(0x(?P<address>[0-9a-z]{16})\)")

Lister = Callable[[str], str]


@dataclass(frozen=True)
class LibraryPolicy:
    """Where discovered libraries come from and where they go."""
    toolchain_root: str = MUSL_LIB_ROOT
    musl_libs: frozenset[str] = MUSL_LIBS
    output_directory: str = LIB_OUTPUT_DIR

    @staticmethod
    def from_env() -> "LibraryPolicy":
        return LibraryPolicy(
            toolchain_root=os.environ.get("BOM_TOOLCHAIN_ROOT") or MUSL_LIB_ROOT,
            output_directory=os.environ.get("BOM_LIB_OUTPUT_DIR") or LIB_OUTPUT_DIR,
        )

    def prefer_musl(self, name: str, path: str) -> str:
        if name in self.musl_libs:
            return os.path.join(self.toolchain_root, name)
        return path


@dataclass(frozen=True)
class SharedLibrary:
    name: str
    path: str
    output_directory: str


def list_dynamic_dependencies(executable: str) -> str:
    """Raw `ldd` output for `executable` (`BOM_LDD` overrides the command)."""
    ldd = os.environ.get("BOM_LDD") or LDD
    try:
        # ldd exits non-zero for static binaries; the text still parses fine
        res = run_quiet([ldd, executable], check=False)
    except OSError as e:
        raise DependencyDiscoveryError(executable, str(e)) from e
    return res.stdout


def parse_dependencies(text: str, policy: LibraryPolicy) -> set[SharedLibrary]:
    found: set[SharedLibrary] = set()
    for line in text.splitlines():
        m = _DEPENDENCY.search(line.strip())
        if not m:
            continue  # header, "statically linked", "not found", ...
        name = m.group("name")
        path = policy.prefer_musl(name, m.group("path"))
        found.add(SharedLibrary(name, path, policy.output_directory))
    return found


def discover(executable: str,
             lister: Lister = list_dynamic_dependencies,
             policy: LibraryPolicy | None = None) -> set[SharedLibrary]:
    """Shared libraries `executable` needs, with the musl copies swapped in."""
    policy = policy or LibraryPolicy()
    return parse_dependencies(lister(executable), policy)
