from __future__ import annotations
import os

from .errors import (
    ConflictingHashError, HashMismatchError,
    MissingDirectoryError, MissingFileError, MissingIncludeError,
)
from .includes import Loader, resolve_closure
from .manifest import Manifest, hash_source, load_manifest, same_hash
from .paths import resolve


def validate(manifest: Manifest, manifest_path: str) -> None:
    """Check one manifest against the filesystem; the first problem raises.

    Order: includes, directories, files, each in listed order. A recorded
    hash matches regardless of letter case and surrounding whitespace.
    """
    for inc in manifest.include:
        path = resolve(manifest_path, inc)
        if not os.path.isfile(path):
            raise MissingIncludeError(path)

    for d in manifest.directories:
        if d.path is None:
            continue
        path = resolve(manifest_path, d.path)
        if not os.path.isdir(path):
            raise MissingDirectoryError(path)

    for f in manifest.files:
        path = resolve(manifest_path, f.path)
        if not os.path.isfile(path):
            raise MissingFileError(path)
        if f.hash is not None:
            actual = hash_source(path)
            if not same_hash(f.hash, actual):
                raise HashMismatchError(path, f.hash, actual)


def validate_recursive(manifest: Manifest, manifest_path: str,
                       load: Loader = load_manifest) -> set[str]:
    """Validate the manifest, then each included manifest on its own. Returns the closure."""
    validate(manifest, manifest_path)
    closure = resolve_closure(manifest_path, manifest, load)
    for path in sorted(closure):
        validate(load(path), path)
    return closure


def check_hash_conflicts(manifests: dict[str, Manifest]) -> None:
    """Refuse a manifest set that records two different hashes for one source file."""
    recorded: dict[str, list[tuple[str, str]]] = {}
    for manifest_path in sorted(manifests):
        for f in manifests[manifest_path].files:
            if f.hash is None:
                continue
            source = resolve(manifest_path, f.path)
            recorded.setdefault(source, []).append((manifest_path, f.hash))

    for source, pairs in sorted(recorded.items()):
        if len({h.strip().upper() for _, h in pairs}) > 1:
            raise ConflictingHashError(source, pairs)
