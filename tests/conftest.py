from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set

import pytest

from asset_pipeline.stores.base import Store


class MemoryStore(Store):
    """In-memory Store that records every write."""

    def __init__(self) -> None:
        self._fs: Dict[str, bytes] = {}
        self._mtime: Dict[str, int] = {}
        self._dirs: Set[str] = set()
        self.writes: List[str] = []

    # ---- helpers for tests ----
    def seed(self, path: str, content: str, mtime: int = 1_700_000_000) -> None:
        self._fs[path] = content.encode("utf-8")
        self._mtime[path] = mtime
        self._mark_parents(path)

    def _mark_parents(self, path: str) -> None:
        parts = path.split("/")[:-1]
        for i in range(1, len(parts) + 1):
            self._dirs.add("/".join(parts[:i]))

    # ---- Store ----
    def exists(self, path: str) -> bool:
        return path in self._fs or path in self._dirs

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return self.read_bytes(path).decode(encoding)

    def read_bytes(self, path: str) -> bytes:
        if path not in self._fs:
            raise FileNotFoundError(path)
        return self._fs[path]

    def write_bytes(self, path: str, content: bytes) -> None:
        parent = path.rsplit("/", 1)[0] if "/" in path else ""
        if parent and parent not in self._dirs:
            raise FileNotFoundError(f"parent directory missing: {parent}")
        self._fs[path] = content
        self.writes.append(path)

    def last_modified(self, path: str) -> Optional[int]:
        return self._mtime.get(path)

    def make_directory(self, path: str, recursive: bool = True) -> None:
        self._dirs.add(path)
        self._mark_parents(path + "/x")

    def is_directory(self, path: str) -> bool:
        return path in self._dirs

    def delete(self, path: str) -> bool:
        if path not in self._fs:
            return False
        del self._fs[path]
        return True

    def delete_directory(self, path: str) -> bool:
        prefix = path.rstrip("/") + "/"
        if path not in self._dirs:
            return False
        for k in [k for k in self._fs if k.startswith(prefix)]:
            del self._fs[k]
        self._dirs = {d for d in self._dirs if d != path and not d.startswith(prefix)}
        return True

    def list(self, prefix: str) -> Iterable[str]:
        p = prefix.rstrip("/") + "/"
        return [k for k in sorted(self._fs) if k == prefix or k.startswith(p)]


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()
