from __future__ import annotations
import os
from typing import Callable

from .manifest import Manifest, load_manifest
from .paths import resolve

Loader = Callable[[str], Manifest]


def included_paths(manifest: Manifest, manifest_path: str) -> list[str]:
    """Direct includes of `manifest`, resolved against its own location."""
    return [resolve(manifest_path, inc) for inc in manifest.include]


def resolve_closure(root_path: str,
                    root: Manifest | None = None,
                    load: Loader = load_manifest) -> set[str]:
    """Every manifest reachable from `root_path` through includes, root excluded.

    Depth-first with a visited set, so include cycles (including a manifest
    that includes itself) terminate. Manifests are told apart by the file
    they name, so a relative and an absolute spelling count once; the first
    spelling met is the one returned. A manifest that fails to load raises.
    """
    root_key = os.path.abspath(root_path)
    if root is None:
        root = load(root_path)

    found: set[str] = set()
    seen: set[str] = {root_key}
    stack = list(reversed(included_paths(root, root_path)))
    while stack:
        path = stack.pop()
        key = os.path.abspath(path)
        if key in seen:
            continue
        seen.add(key)
        found.add(path)
        stack.extend(reversed(included_paths(load(path), path)))
    return found
