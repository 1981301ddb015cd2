# bom_stager/paths.py
from __future__ import annotations
import os

# ---- Musl toolchain (libraries preferred over whatever ldd found) ----
MUSL_LIB_ROOT: str = "/opt/occlum/toolchains/gcc/x86_64-linux-musl/lib"
MUSL_LIBS: frozenset[str] = frozenset({
    "libatomic.so",
    "libc.so",
    "libgomp.so",
    "libitm.so",
    "libquadmath.so",
    "libssp.so",
    "libstdc++.so",
    "libz.so",
})

# ---- Outputs (relative to the working directory, not to any manifest) ----
LIB_OUTPUT_DIR: str = os.path.join("image", "lib")

# ---- External tools ----
LDD: str = "ldd"


def resolve(reference_manifest: str, path: str) -> str:
    """Turn `path`, written inside `reference_manifest`, into a path usable from the cwd.

    Absolute paths come back untouched. Relative ones are joined onto the
    directory holding the manifest and normalized; the result need not exist.
    """
    if os.path.isabs(path):
        return path
    base = os.path.dirname(reference_manifest)
    return os.path.normpath(os.path.join(base, path))


def output_path(source: str, output_directory: str) -> str:
    """Where `source` lands inside `output_directory` (keeps the base name)."""
    name = os.path.basename(os.path.normpath(source))
    return os.path.join(output_directory, name)


def relative_to_manifest(path: str, manifest_path: str) -> str:
    """Rewrite a cwd-relative `path` so that `resolve(manifest_path, ...)` gives it back."""
    if os.path.isabs(path):
        return path
    base = os.path.dirname(manifest_path) or os.curdir
    return os.path.relpath(path, base)


__all__ = [
    "MUSL_LIB_ROOT", "MUSL_LIBS", "LIB_OUTPUT_DIR", "LDD",
    "resolve", "output_path", "relative_to_manifest",
]
