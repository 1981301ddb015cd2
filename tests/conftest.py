from __future__ import annotations

from pathlib import Path

import pytest

LDD_APP = """\
\tlinux-vdso.so.1 (0x00007ffd5a7f2000)
\tlibfoo.so => /usr/lib/libfoo.so (0x00007f3c1a000000)
\tlibc.so => /lib/ld-musl-x86_64.so.1 (0x00007f3c19e00000)
"""


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from an empty directory; bom paths are cwd-relative."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BOM_TQDM", "1")
    for key in ("BOM_LDD", "BOM_TOOLCHAIN_ROOT", "BOM_LIB_OUTPUT_DIR"):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


@pytest.fixture
def write():
    def _write(path: str | Path, text: str = "") -> Path:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p
    return _write


@pytest.fixture
def fake_ldd():
    """Lister double: maps executable path -> ldd text and records every call."""
    class FakeLdd:
        def __init__(self) -> None:
            self.outputs: dict[str, str] = {}
            self.calls: list[str] = []

        def __call__(self, path: str) -> str:
            self.calls.append(path)
            return self.outputs.get(path, "\tstatically linked\n")

    return FakeLdd()
