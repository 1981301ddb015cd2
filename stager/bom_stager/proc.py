# bom_stager/proc.py
from __future__ import annotations
import subprocess
import threading


def _reader(pipe, sink_list):
    """Line-buffered stream reader collecting lines into sink_list."""
    try:
        for line in iter(pipe.readline, ''):
            sink_list.append(line)
    finally:
        pipe.close()


def run_quiet(cmd: list[str], check: bool = True) -> subprocess.CompletedProcess:
    """
    Spawn a process with stdin closed and capture stdout/stderr as text.
    Blocks until exit.
    """
    p = subprocess.Popen(
        cmd, shell=False,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE, stderr=subprocess.PIPE,
        text=True, bufsize=1, errors="replace",
    )

    out_chunks: list[str] = []
    err_chunks: list[str] = []
    t_out = threading.Thread(target=_reader, args=(p.stdout, out_chunks), daemon=True)
    t_err = threading.Thread(target=_reader, args=(p.stderr, err_chunks), daemon=True)
    t_out.start()
    t_err.start()

    p.wait()
    # drain
    t_out.join()
    t_err.join()

    out = "".join(out_chunks)
    err = "".join(err_chunks)
    if check and p.returncode != 0:
        raise subprocess.CalledProcessError(p.returncode, cmd, out, err)
    return subprocess.CompletedProcess(cmd, p.returncode, out, err)
