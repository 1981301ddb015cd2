from __future__ import annotations
import argparse
import os
import sys
from concurrent.futures import ThreadPoolExecutor

from .copier import execute_plan
from .deps import LibraryPolicy
from .errors import BomError, MissingIncludeError
from .includes import resolve_closure
from .manifest import Manifest, hash_source, load_manifest, save_manifest
from .paths import output_path, relative_to_manifest
from .plan import describe, empty_plan, plan, plan_size
from .system import check_resources, optimal_threads
from .validate import check_hash_conflicts, validate_recursive


def _unique(values: list[str] | None) -> list[str]:
    # repeated flags collapse, first occurrence wins
    return list(dict.fromkeys(values or []))


def _hash_all(paths: list[str]) -> dict[str, str]:
    if not paths:
        return {}
    with ThreadPoolExecutor(max_workers=optimal_threads()) as ex:
        return dict(zip(paths, ex.map(hash_source, paths)))


def _cached_loader(cache: dict[str, Manifest]):
    def load(path: str) -> Manifest:
        if path not in cache:
            if not os.path.isfile(path):
                raise MissingIncludeError(path)
            cache[path] = load_manifest(path)
        return cache[path]
    return load


def _cmd_generate(args: argparse.Namespace) -> None:
    out = args.output
    files = _unique(args.filename)
    executables = _unique(args.executable)
    hashes = _hash_all(files + executables) if args.hash else {}

    bom = Manifest()
    for f in files:
        bom.add_file(relative_to_manifest(f, out), args.directory, hash=hashes.get(f))
    for d in _unique(args.recursive):
        bom.add_directory(output_path(d, args.directory), relative_to_manifest(d, out))
    for e in executables:
        bom.add_file(relative_to_manifest(e, out), args.directory, hash=hashes.get(e),
                     target_executable=True)
    for i in _unique(args.include):
        bom.add_include(relative_to_manifest(i, out))

    save_manifest(bom, out)
    print(f"Generated {out}: {len(bom.files)} file(s), {len(bom.directories)} "
          f"directory(ies), {len(bom.include)} include(s)")


def _cmd_update(args: argparse.Namespace) -> None:
    path = args.file
    bom = load_manifest(path)
    changed = bom.refresh_hashes(path, workers=optimal_threads())
    for entry in changed:
        print(f"hash updated: {entry.path}")
    for i in _unique(args.include):
        bom.add_include(relative_to_manifest(i, path))
    save_manifest(bom, path)
    print(f"Update {path} successfully")


def _cmd_copy(args: argparse.Namespace) -> None:
    path = os.path.normpath(args.file)
    root = load_manifest(path)

    manifests: dict[str, Manifest] = {path: root}
    load = _cached_loader(manifests)
    resolve_closure(path, root, load)
    check_hash_conflicts(manifests)

    print("Validating bom files...")
    validate_recursive(root, path, load=load)

    policy = LibraryPolicy.from_env()
    staged = empty_plan()
    for bom_path in sorted(manifests):
        staged = staged.merge(plan(manifests[bom_path], bom_path, policy=policy))

    if args.dry_run:
        for line in describe(staged):
            print(line)
        return

    check_resources(os.curdir, plan_size(staged))
    print(f"Staging {len(manifests)} bom file(s)...")
    n = execute_plan(staged)
    print(f"Done. {n} item(s) staged.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bom", description="Stage files described by bom files into an image tree")
    sub = p.add_subparsers(dest="cmd", required=True)

    g = sub.add_parser("generate", help="Generate a bom file from command line arguments")
    g.add_argument("-d", "--directory", required=True, help="The relative directory in the image")
    g.add_argument("-o", "--output", required=True, help="Output bom filename")
    g.add_argument("-f", "--filename", action="append", help="Input filename (repeatable)")
    g.add_argument("-r", "--recursive", action="append", help="Input directory (repeatable)")
    g.add_argument("-e", "--executable", action="append", help="Target executable filename (repeatable)")
    g.add_argument("-i", "--include", action="append", help="Include another bom file (repeatable)")
    g.add_argument("--hash", action="store_true", help="Record a hash for each input file")
    g.set_defaults(func=_cmd_generate)

    u = sub.add_parser("update", help="Refresh recorded hashes and add includes")
    u.add_argument("-f", "--file", required=True, help="The bom file to update")
    u.add_argument("-i", "--include", action="append", help="Include another bom file (repeatable)")
    u.set_defaults(func=_cmd_update)

    c = sub.add_parser("copy", help="Copy files described in a bom file (and its includes)")
    c.add_argument("-f", "--file", required=True, help="The bom file path")
    c.add_argument("--dry-run", action="store_true", help="Print the copy plan, don't copy")
    c.set_defaults(func=_cmd_copy)

    return p


def run_cli(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except BomError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(e.exit_code)
