from __future__ import annotations
import os
from typing import NamedTuple

from .deps import LibraryPolicy, Lister, SharedLibrary, discover, list_dynamic_dependencies
from .manifest import Manifest
from .paths import output_path, resolve


class CopyPlan(NamedTuple):
    dirs_to_create: set[str]
    dirs_to_copy: set[tuple[str, str]]     # (from, to)
    files_to_copy: set[tuple[str, str]]    # (from, to)

    def merge(self, other: "CopyPlan") -> "CopyPlan":
        return CopyPlan(
            self.dirs_to_create | other.dirs_to_create,
            self.dirs_to_copy | other.dirs_to_copy,
            self.files_to_copy | other.files_to_copy,
        )

    def is_empty(self) -> bool:
        return not (self.dirs_to_create or self.dirs_to_copy or self.files_to_copy)


def empty_plan() -> CopyPlan:
    return CopyPlan(set(), set(), set())


def plan(manifest: Manifest, manifest_path: str,
         lister: Lister = list_dynamic_dependencies,
         policy: LibraryPolicy | None = None) -> CopyPlan:
    """What has to happen on disk to stage `manifest` (its includes are not looked at).

    Files land in their output directory under their own base name. Shared
    libraries of every scan target are gathered into one set first, so two
    executables needing the same library copy it once.
    """
    policy = policy or LibraryPolicy()
    dirs_to_create: set[str] = set()
    dirs_to_copy: set[tuple[str, str]] = set()
    files_to_copy: set[tuple[str, str]] = set()
    libraries: set[SharedLibrary] = set()

    for f in manifest.files:
        src = resolve(manifest_path, f.path)
        dst_dir = resolve(manifest_path, f.output_path)
        files_to_copy.add((src, output_path(src, dst_dir)))
        if f.is_scan_target:
            libraries |= discover(src, lister, policy)

    for d in manifest.directories:
        dst = resolve(manifest_path, d.output_path)
        if d.path is None:
            dirs_to_create.add(dst)
        else:
            dirs_to_copy.add((resolve(manifest_path, d.path), dst))

    for lib in libraries:
        files_to_copy.add((lib.path, output_path(lib.path, lib.output_directory)))

    return CopyPlan(dirs_to_create, dirs_to_copy, files_to_copy)


def describe(p: CopyPlan) -> list[str]:
    """Human readable, sorted listing of a plan (used by --dry-run)."""
    lines = [f"create dir: {d}" for d in sorted(p.dirs_to_create)]
    lines += [f"copy dir:  {src} -> {dst}" for src, dst in sorted(p.dirs_to_copy)]
    lines += [f"copy file: {src} -> {dst}" for src, dst in sorted(p.files_to_copy)]
    return lines


def plan_size(p: CopyPlan) -> int:
    """Bytes the plan will copy (sources that vanished count as 0)."""
    total = 0
    for src, _ in p.files_to_copy:
        if os.path.isfile(src):
            total += os.path.getsize(src)
    for src, _ in p.dirs_to_copy:
        for r, _, fs in os.walk(src, followlinks=True):
            for name in fs:
                fp = os.path.join(r, name)
                if os.path.isfile(fp):
                    total += os.path.getsize(fp)
    return total
