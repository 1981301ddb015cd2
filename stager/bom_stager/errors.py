# bom_stager/errors.py
from __future__ import annotations


class BomError(Exception):
    """Base for every failure the stager reports. `exit_code` is what the CLI exits with."""
    exit_code = 1


class ManifestLoadError(BomError):
    exit_code = 10

    def __init__(self, path: str, reason: str):
        super().__init__(f"Can't load bom file {path}: {reason}")
        self.path = path
        self.reason = reason


class MissingIncludeError(BomError):
    exit_code = 11

    def __init__(self, path: str):
        super().__init__(f"Include file {path} does not exist. Please update the bom file.")
        self.path = path


class MissingDirectoryError(BomError):
    exit_code = 12

    def __init__(self, path: str):
        super().__init__(f"Directory {path} does not exist. Please update the bom file.")
        self.path = path


class MissingFileError(BomError):
    exit_code = 13

    def __init__(self, path: str):
        super().__init__(f"File {path} does not exist. Please update the bom file.")
        self.path = path


class HashMismatchError(BomError):
    exit_code = 14

    def __init__(self, path: str, recorded: str, actual: str):
        super().__init__(
            f"The content of File {path} changes. The new hash value is {actual}. "
            "Please update the bom file."
        )
        self.path = path
        self.recorded = recorded
        self.actual = actual


class ConflictingHashError(ManifestLoadError):
    """Same source file recorded with different hashes by different manifests."""
    exit_code = 15

    def __init__(self, source: str, hashes: list[tuple[str, str]]):
        # hashes: (manifest path, recorded hash) pairs
        listing = ", ".join(f"{m}={h}" for m, h in hashes)
        super().__init__(source, f"conflicting hashes recorded ({listing})")
        self.source = source
        self.hashes = hashes


class FileReadError(BomError):
    exit_code = 17

    def __init__(self, path: str, reason: str):
        super().__init__(f"Can't read file {path}: {reason}")
        self.path = path
        self.reason = reason


class DependencyDiscoveryError(BomError):
    exit_code = 16

    def __init__(self, path: str, reason: str):
        super().__init__(f"Can't list shared libraries of {path}: {reason}")
        self.path = path
        self.reason = reason


class DirectoryCreationError(BomError):
    exit_code = 20

    def __init__(self, path: str):
        super().__init__(f"Create directory {path} failed.")
        self.path = path


class CopyFailedError(BomError):
    exit_code = 21

    def __init__(self, source: str, destination: str):
        super().__init__(f"Copy {source} to {destination} failed.")
        self.source = source
        self.destination = destination
