from __future__ import annotations
import hashlib
import shutil
import tomllib
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

import tomli_w

from .errors import FileReadError, ManifestLoadError, MissingFileError
from .paths import resolve


def hash_file(path: str | Path) -> str:
    """SHA-256 of the file content, upper-case hex. Raises OSError when unreadable."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest().upper()


def hash_source(path: str) -> str:
    """`hash_file`, with failures reported as stager errors for a listed source."""
    try:
        return hash_file(path)
    except FileNotFoundError as e:
        raise MissingFileError(path) from e
    except OSError as e:
        raise FileReadError(path, e.strerror or str(e)) from e


def same_hash(recorded: str, actual: str) -> bool:
    return recorded.strip().upper() == actual.upper()


@dataclass
class FileEntry:
    path: str
    output_path: str  # destination directory
    hash: str | None = None
    target_executable: bool | None = None

    @property
    def is_scan_target(self) -> bool:
        return bool(self.target_executable)

    def to_dict(self) -> dict:
        d: dict = {"path": self.path}
        if self.hash is not None:
            d["hash"] = self.hash
        d["output_path"] = self.output_path
        if self.target_executable is not None:
            d["target_executable"] = self.target_executable
        return d


@dataclass
class DirectoryEntry:
    output_path: str
    path: str | None = None  # None: create an empty directory

    def to_dict(self) -> dict:
        d: dict = {}
        if self.path is not None:
            d["path"] = self.path
        d["output_path"] = self.output_path
        return d


@dataclass
class Manifest:
    include: list[str] = field(default_factory=list)
    files: list[FileEntry] = field(default_factory=list)
    directories: list[DirectoryEntry] = field(default_factory=list)

    # ---- building ----

    def add_file(self, path: str, output_path: str,
                 hash: str | None = None, target_executable: bool | None = None) -> FileEntry:
        entry = FileEntry(path=path, output_path=output_path, hash=hash,
                          target_executable=target_executable)
        self.files.append(entry)
        return entry

    def add_directory(self, output_path: str, path: str | None = None) -> DirectoryEntry:
        entry = DirectoryEntry(output_path=output_path, path=path)
        self.directories.append(entry)
        return entry

    def add_include(self, path: str) -> None:
        self.include.append(path)

    # ---- updating ----

    def refresh_hashes(self, manifest_path: str, workers: int = 1) -> list[FileEntry]:
        """Recompute the hash of every entry that already records one.

        Entries without a hash are left alone. Paths resolve against
        `manifest_path`. Returns the entries whose hash actually changed.
        """
        hashed = [e for e in self.files if e.hash is not None]
        sources = [resolve(manifest_path, e.path) for e in hashed]
        if workers > 1 and len(sources) > 1:
            with ThreadPoolExecutor(max_workers=workers) as ex:
                digests = list(ex.map(hash_source, sources))
        else:
            digests = [hash_source(s) for s in sources]

        changed: list[FileEntry] = []
        for entry, digest in zip(hashed, digests):
            if not same_hash(entry.hash, digest):
                changed.append(entry)
            entry.hash = digest
        return changed

    # ---- (de)serialization ----

    def to_dict(self) -> dict:
        d: dict = {}
        if self.include:
            d["include"] = list(self.include)
        if self.files:
            d["files"] = [f.to_dict() for f in self.files]
        if self.directories:
            d["directories"] = [x.to_dict() for x in self.directories]
        return d

    def to_toml(self) -> str:
        return tomli_w.dumps(self.to_dict())

    @staticmethod
    def from_dict(data: dict, source: str = "<memory>") -> "Manifest":
        include = data.get("include", [])
        if not isinstance(include, list) or not all(isinstance(i, str) for i in include):
            raise ManifestLoadError(source, "'include' must be a list of strings")

        files_raw = data.get("files", [])
        if not isinstance(files_raw, list):
            raise ManifestLoadError(source, "'files' must be an array of tables")
        files: list[FileEntry] = []
        for i, fe in enumerate(files_raw):
            where = f"files[{i}]"
            if not isinstance(fe, dict):
                raise ManifestLoadError(source, f"{where} must be a table")
            files.append(FileEntry(
                path=_required_str(fe, "path", where, source),
                output_path=_required_str(fe, "output_path", where, source),
                hash=_optional(fe, "hash", str, where, source),
                target_executable=_optional(fe, "target_executable", bool, where, source),
            ))

        dirs_raw = data.get("directories", [])
        if not isinstance(dirs_raw, list):
            raise ManifestLoadError(source, "'directories' must be an array of tables")
        directories: list[DirectoryEntry] = []
        for i, de in enumerate(dirs_raw):
            where = f"directories[{i}]"
            if not isinstance(de, dict):
                raise ManifestLoadError(source, f"{where} must be a table")
            directories.append(DirectoryEntry(
                output_path=_required_str(de, "output_path", where, source),
                path=_optional(de, "path", str, where, source),
            ))

        return Manifest(include=list(include), files=files, directories=directories)

    @staticmethod
    def from_toml(text: str, source: str = "<memory>") -> "Manifest":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ManifestLoadError(source, str(e)) from e
        return Manifest.from_dict(data, source)


def _required_str(d: dict, key: str, where: str, source: str) -> str:
    if key not in d:
        raise ManifestLoadError(source, f"{where} is missing '{key}'")
    return _optional(d, key, str, where, source)


def _optional(d: dict, key: str, kind: type, where: str, source: str):
    val = d.get(key)
    if val is not None and not isinstance(val, kind):
        raise ManifestLoadError(source, f"{where}.{key} must be a {kind.__name__}")
    return val


def load_manifest(path: str | Path) -> Manifest:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestLoadError(str(path), str(e)) from e
    return Manifest.from_toml(text, str(path))


def save_manifest(manifest: Manifest, path: str | Path) -> None:
    """Write `manifest` to `path`, replacing whatever file or directory is there."""
    p = Path(path)
    if p.is_dir():
        shutil.rmtree(p)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(manifest.to_toml(), encoding="utf-8")


__all__ = [
    "FileEntry", "DirectoryEntry", "Manifest",
    "hash_file", "hash_source", "same_hash", "load_manifest", "save_manifest",
]
