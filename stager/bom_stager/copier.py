import io
import os
import shutil
import sys

from tqdm import tqdm

from .errors import CopyFailedError, DirectoryCreationError
from .plan import CopyPlan

# Optional progress callback signature:
#   on_progress(phase: str, current: int, total: int, message: str)


def _log(msg: str):
    """
    Safe log function:
    - Prefer tqdm.write so lines don't tear the progress bar.
    - Fallback to plain print, even if sys.stderr is None.
    """
    try:
        tqdm.write(msg, file=_tqdm_file())
        return
    except (AttributeError, OSError, ValueError):
        pass
    if getattr(sys, "stderr", None) is not None:
        print(msg, file=sys.stderr)
    else:
        print(msg)


# ----- copy primitive -----

def copy_file(src: str, dst: str) -> None:
    """Copy one file (symlinks followed, attributes kept); the parent is created first."""
    parent = os.path.dirname(dst)
    if parent:
        os.makedirs(parent, exist_ok=True)
    shutil.copy2(src, dst)


def copy_tree(src: str, dst: str) -> None:
    """Merge the contents of `src` into `dst` (symlinks followed, attributes kept)."""
    os.makedirs(dst, exist_ok=True)
    shutil.copytree(src, dst, symlinks=False, dirs_exist_ok=True)


# ----- executor -----

def _create_dir(path: str) -> None:
    if os.path.isdir(path):
        return
    _log(f"create dir: {path}")
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationError(path) from e
    if not os.path.isdir(path):
        raise DirectoryCreationError(path)


def _copy_dir(src: str, dst: str) -> None:
    _log(f"copy dir: {src} -> {dst}")
    try:
        copy_tree(src, dst)
    except (OSError, shutil.Error) as e:
        raise CopyFailedError(src, dst) from e
    if not os.path.isdir(dst):
        raise CopyFailedError(src, dst)


def _copy_file(src: str, dst: str) -> None:
    _log(f"copy: {src} -> {dst}")
    try:
        copy_file(src, dst)
    except OSError as e:
        raise CopyFailedError(src, dst) from e
    if not os.path.isfile(dst):
        raise CopyFailedError(src, dst)


def execute_plan(plan: CopyPlan, on_progress=None) -> int:
    """Carry out a plan: create dirs, copy dirs, copy files. Returns the action count.

    Every action is checked afterwards (does the destination exist?) and the
    first failure raises; nothing is retried.
    """
    jobs = [("create", d, None) for d in sorted(plan.dirs_to_create)]
    jobs += [("copydir", s, d) for s, d in sorted(plan.dirs_to_copy)]
    jobs += [("copy", s, d) for s, d in sorted(plan.files_to_copy)]
    total = len(jobs)

    with tqdm(total=total, desc="Staging", unit="item", file=_tqdm_file(), disable=_tqdm_disable()) as bar:
        for done, (kind, a, b) in enumerate(jobs, start=1):
            if kind == "create":
                _create_dir(a)
            elif kind == "copydir":
                _copy_dir(a, b)
            else:
                _copy_file(a, b)
            if on_progress:
                on_progress(f"stage:{kind}", done, total, f"staged {done}/{total}")
            bar.update(1)
    return total


def _tqdm_file():
    """
    Return a file-like object for tqdm to write to.
    When sys.stderr is None (detached runs), fall back to a sink.
    """
    f = getattr(sys, "stderr", None)
    return f if (f is not None and hasattr(f, "write")) else io.StringIO()


def _tqdm_disable():
    """
    Disable tqdm when there is no real stderr or when explicitly requested.
    Env override: BOM_TQDM=0 forces enable, =1 forces disable.
    """
    env = os.environ.get("BOM_TQDM")
    if env == "0":
        return False
    if env == "1":
        return True
    f = getattr(sys, "stderr", None)
    return not (f is not None and hasattr(f, "write"))
