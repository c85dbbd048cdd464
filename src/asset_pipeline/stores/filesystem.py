from __future__ import annotations

import shutil
from pathlib import Path
from typing import Iterable, Optional

from asset_pipeline.stores.base import Store


class FilesystemStore(Store):
    """Local disk store.

    Paths are POSIX-like and resolved under ``root``; absolute paths are used as-is.
    Writes do not create missing parent directories, callers use ``make_directory``.
    """

    def __init__(self, root: str | Path = ".") -> None:
        self.root = Path(root)

    def _p(self, path: str) -> Path:
        return self.root / Path(path)

    def exists(self, path: str) -> bool:
        return self._p(path).exists()

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return self._p(path).read_text(encoding=encoding)

    def read_bytes(self, path: str) -> bytes:
        return self._p(path).read_bytes()

    def write_bytes(self, path: str, content: bytes) -> None:
        self._p(path).write_bytes(content)

    def last_modified(self, path: str) -> Optional[int]:
        p = self._p(path)
        if not p.exists():
            return None
        return int(p.stat().st_mtime)

    def make_directory(self, path: str, recursive: bool = True) -> None:
        self._p(path).mkdir(parents=recursive, exist_ok=True)

    def is_directory(self, path: str) -> bool:
        return self._p(path).is_dir()

    def delete(self, path: str) -> bool:
        p = self._p(path)
        if not p.is_file():
            return False
        p.unlink()
        return True

    def delete_directory(self, path: str) -> bool:
        p = self._p(path)
        if not p.is_dir():
            return False
        shutil.rmtree(p)
        return True

    def list(self, prefix: str = "") -> Iterable[str]:
        # returned paths share the caller's prefix so they can be fed back to the store
        base = self._p(prefix)
        if not base.exists():
            return []
        if base.is_file():
            return [prefix]
        head = prefix.rstrip("/")
        out: list[str] = []
        for p in sorted(base.rglob("*")):
            if p.is_file():
                rel = str(p.relative_to(base)).replace("\\", "/")
                out.append(f"{head}/{rel}" if head else rel)
        return out
