from __future__ import annotations

from typing import Iterable, List, Set

from asset_pipeline.manifest import Entry, Manifest
from asset_pipeline.stores.base import Store


class FilesystemCleaner:
    """Remove build artifacts that no manifest entry points at."""

    def __init__(self, store: Store, manifest: Manifest, build_path: str) -> None:
        self.store = store
        self.manifest = manifest
        self.build_path = build_path.rstrip("/") or "."

    def clean(self, collection_ids: Iterable[str]) -> List[str]:
        declared = set(collection_ids)
        deleted: List[str] = []

        # collections that are no longer declared lose their entry and directory
        for key in list(self.manifest.all()):
            if key not in declared:
                self.manifest.forget(key)
                if self.store.delete_directory(f"{self.build_path}/{key}"):
                    deleted.append(f"{key}/")

        for key in sorted(declared):
            entry = self.manifest.get(key)
            if entry is None:
                if self.store.delete_directory(f"{self.build_path}/{key}"):
                    deleted.append(f"{key}/")
                continue
            deleted.extend(self._clean_collection(key, entry))
        return deleted

    def _clean_collection(self, key: str, entry: Entry) -> List[str]:
        base = f"{self.build_path}/{key}"
        keep = self._referenced(entry)
        out: List[str] = []
        for path in self.store.list(base):
            rel = path[len(base) + 1:]
            if rel not in keep and self.store.delete(path):
                out.append(f"{key}/{rel}")
        return out

    @staticmethod
    def _referenced(entry: Entry) -> Set[str]:
        keep = {fp for fp in entry.fingerprints.values() if fp}
        for mapping in entry.development.values():
            keep.update(mapping.values())
        return keep
