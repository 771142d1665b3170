"""
Fast JSON IO helpers based on orjson.
- dumps(data) -> bytes / loads(raw) -> Any
- read_bytes(Path) -> bytes | None (None when the file is missing)
- write_bytes(Path, raw) -> atomic write (parent folders created on demand)

Caution:
- orjson returns/expects bytes; files are opened in binary mode.
- write_bytes writes to a temporary sibling then renames, so a concurrent
  reader never sees a half-written document.
"""
import orjson as json
import os
from pathlib import Path
from typing import Any, Optional


def dumps(data: Any) -> bytes:
    return json.dumps(data)


def loads(raw: bytes | str) -> Any:
    return json.loads(raw)


def read_bytes(path: Path) -> Optional[bytes]:
    """Raw file content (or None if it does not exist)."""
    if not path.exists():
        return None
    with path.open("rb") as f:
        return f.read()


def write_bytes(path: Path, raw: bytes) -> None:
    """Atomic write (parent folder created if absent)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    with tmp.open("wb") as f:
        f.write(raw)
    os.replace(tmp, path)
