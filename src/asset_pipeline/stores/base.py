from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional


class Store(ABC):
    @abstractmethod
    def exists(self, path: str) -> bool: ...

    @abstractmethod
    def read_text(self, path: str, encoding: str = "utf-8") -> str: ...

    @abstractmethod
    def read_bytes(self, path: str) -> bytes: ...

    @abstractmethod
    def write_bytes(self, path: str, content: bytes) -> None: ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        self.write_bytes(path, content.encode(encoding))

    @abstractmethod
    def last_modified(self, path: str) -> Optional[int]: ...

    @abstractmethod
    def make_directory(self, path: str, recursive: bool = True) -> None: ...

    @abstractmethod
    def is_directory(self, path: str) -> bool: ...

    @abstractmethod
    def delete(self, path: str) -> bool: ...

    @abstractmethod
    def delete_directory(self, path: str) -> bool: ...

    @abstractmethod
    def list(self, prefix: str) -> Iterable[str]: ...
