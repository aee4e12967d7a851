"""Advisory file locks and single-write appends."""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

try:
    import fcntl
except ImportError:  # pragma: no cover - Windows fallback
    fcntl = None


@contextmanager
def file_lock(lock_path: Union[str, Path]) -> Iterator[None]:
    """Hold an exclusive advisory lock on ``lock_path`` for the block."""
    lock_path = Path(lock_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with lock_path.open("a+") as handle:
        if fcntl:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            if fcntl:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def append_line(path: Union[str, Path], line: str) -> None:
    """Append one line to ``path`` with a single write, under a lock."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = line.rstrip("\n").encode("utf-8")
    with file_lock(path.with_name(path.name + ".lock")):
        with path.open("ab+") as handle:
            handle.seek(0, os.SEEK_END)
            if handle.tell() > 0:
                handle.seek(-1, os.SEEK_END)
                if handle.read(1) != b"\n":
                    payload = b"\n" + payload
            handle.write(payload + b"\n")
            handle.flush()
            os.fsync(handle.fileno())
