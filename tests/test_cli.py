from __future__ import annotations

import os
from pathlib import Path

import pytest

from bom_stager.cli import run_cli
from bom_stager.main import main
from bom_stager.manifest import hash_file, load_manifest


@pytest.fixture
def no_ldd(monkeypatch: pytest.MonkeyPatch) -> None:
    # "true" prints nothing: every executable looks library-free
    monkeypatch.setenv("BOM_LDD", "true")


def _exit_code(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc:
        run_cli(argv)
    return exc.value.code


def test_generate_writes_manifest_relative_to_its_location(workdir: Path, write) -> None:
    write("build/app", "app")
    write("build/app.conf", "conf")
    write("assets/a.txt", "a")
    write("boms/base.toml", "")

    run_cli([
        "generate", "-d", "image/bin", "-o", "boms/app.toml",
        "-f", "build/app.conf", "-f", "build/app.conf",
        "-e", "build/app", "-r", "assets", "-i", "boms/base.toml", "--hash",
    ])

    bom = load_manifest("boms/app.toml")
    conf, app = bom.files
    assert conf.path == os.path.join("..", "build", "app.conf")
    assert conf.output_path == "image/bin"
    assert conf.hash == hash_file("build/app.conf")
    assert conf.target_executable is None
    assert app.target_executable is True
    assert bom.directories[0].path == os.path.join("..", "assets")
    assert bom.directories[0].output_path == os.path.join("image/bin", "assets")
    assert bom.include == ["base.toml"]


def test_generate_without_hash_flag(workdir: Path, write) -> None:
    write("f.txt", "x")
    run_cli(["generate", "-d", "image", "-o", "app.toml", "-f", "f.txt"])
    assert load_manifest("app.toml").files[0].hash is None


def test_update_refreshes_hashes_and_appends_includes(workdir: Path, write, capsys) -> None:
    write("data/a.txt", "one")
    write("data/b.txt", "two")
    write("other.toml", "")
    run_cli(["generate", "-d", "image", "-o", "app.toml", "-f", "data/a.txt", "--hash"])
    run_cli(["generate", "-d", "image", "-o", "plain.toml", "-f", "data/b.txt"])

    write("data/a.txt", "changed")
    run_cli(["update", "-f", "app.toml", "-i", "other.toml"])
    run_cli(["update", "-f", "plain.toml"])

    assert load_manifest("app.toml").files[0].hash == hash_file("data/a.txt")
    assert load_manifest("app.toml").include == ["other.toml"]
    assert load_manifest("plain.toml").files[0].hash is None
    out = capsys.readouterr().out
    assert "hash updated: data" in out
    assert "Update app.toml successfully" in out


def test_copy_stages_root_and_included_manifests(workdir: Path, write, no_ldd) -> None:
    write("app/bin/tool", "tool")
    write("app/app.toml", 'include = ["../lib/lib.toml"]\n'
                          '[[files]]\npath = "bin/tool"\noutput_path = "../image/bin"\ntarget_executable = true\n'
                          '[[directories]]\noutput_path = "../image/tmp"\n')
    write("lib/libx.so", "lib")
    write("lib/lib.toml", '[[files]]\npath = "libx.so"\noutput_path = "../image/lib"\n')

    run_cli(["copy", "-f", "app/app.toml"])

    assert Path("image/bin/tool").read_text() == "tool"
    assert Path("image/lib/libx.so").read_text() == "lib"
    assert Path("image/tmp").is_dir()


def test_copy_dry_run_prints_plan_only(workdir: Path, write, no_ldd, capsys) -> None:
    write("f.txt", "x")
    write("app.toml", '[[files]]\npath = "f.txt"\noutput_path = "image"\n')
    run_cli(["copy", "-f", "app.toml", "--dry-run"])
    assert f"copy file: f.txt -> {os.path.join('image', 'f.txt')}" in capsys.readouterr().out
    assert not Path("image").exists()


def test_copy_hash_mismatch_exits_before_copying(workdir: Path, write, capsys) -> None:
    write("f.txt", "x")
    write("app.toml", '[[files]]\npath = "f.txt"\nhash = "00"\noutput_path = "image"\n')
    assert _exit_code(["copy", "-f", "app.toml"]) == 14
    assert hash_file("f.txt") in capsys.readouterr().err
    assert not Path("image").exists()


def test_copy_missing_include_exit_code(workdir: Path, write) -> None:
    write("app.toml", 'include = ["gone.toml"]\n')
    assert _exit_code(["copy", "-f", "app.toml"]) == 11


def test_copy_conflicting_hashes_exit_code(workdir: Path, write) -> None:
    write("f.txt", "x")
    write("a.toml", f'include = ["b.toml"]\n[[files]]\npath = "f.txt"\nhash = "{hash_file("f.txt")}"\noutput_path = "image"\n')
    write("b.toml", '[[files]]\npath = "f.txt"\nhash = "00"\noutput_path = "image"\n')
    assert _exit_code(["copy", "-f", "a.toml"]) == 15


def test_missing_manifest_exit_code(workdir: Path) -> None:
    assert _exit_code(["update", "-f", "nope.toml"]) == 10


def test_main_dispatches(workdir: Path, write) -> None:
    write("f.txt", "x")
    main(["generate", "-d", "image", "-o", "app.toml", "-f", "f.txt"])
    assert Path("app.toml").is_file()


def test_update_with_deleted_hashed_file_exits_with_missing_file(workdir: Path, write, capsys) -> None:
    write("f.txt", "x")
    run_cli(["generate", "--hash", "-d", "image", "-o", "app.toml", "-f", "f.txt"])
    os.remove("f.txt")

    assert _exit_code(["update", "-f", "app.toml"]) == 13
    assert "f.txt does not exist" in capsys.readouterr().err


def test_generate_hash_of_missing_input_exits_with_missing_file(workdir: Path) -> None:
    assert _exit_code(["generate", "--hash", "-d", "image", "-o", "app.toml", "-f", "nope.txt"]) == 13
    assert not os.path.exists("app.toml")
