from __future__ import annotations
import os
import psutil


def _existing_ancestor(path: str) -> str:
    p = os.path.abspath(path)
    while not os.path.exists(p):
        parent = os.path.dirname(p)
        if parent == p:
            break
        p = parent
    return p


def check_resources(output_root: str, required_bytes: int) -> bool:
    """Warn when the volume holding `output_root` can't take `required_bytes`. Returns False then."""
    free = psutil.disk_usage(_existing_ancestor(output_root)).free
    if free < required_bytes:
        need = required_bytes / (1024**2)
        have = free / (1024**2)
        print(f"WARNING: Low disk space at {output_root} ({have:.1f} MB free, {need:.1f} MB to copy)")
        return False
    return True


def optimal_threads(cap: int = 8) -> int:
    # hashing is IO bound; leave one core for the rest of the build
    cores = max(psutil.cpu_count(logical=True) or 1, 1)
    return max(1, min(cores - 1, cap))
