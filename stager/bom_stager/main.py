# bom_stager/main.py
from __future__ import annotations
import sys

from . import cli


def main(argv: list[str] | None = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    return cli.run_cli(argv)


# single-purpose entry points, one per tool
def generate_main() -> None:
    return main(["generate", *sys.argv[1:]])


def update_main() -> None:
    return main(["update", *sys.argv[1:]])


def copy_main() -> None:
    return main(["copy", *sys.argv[1:]])


if __name__ == "__main__":
    main()
