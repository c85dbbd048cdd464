# src/asset_pipeline/manifest.py
# Persisted record of current build outputs, one Entry per collection:
#   {manifest_dir}/collections.json
#   { "<collection>": { "fingerprints": {group: path|null}, "development": {group: {src: built}} } }

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

import orjson
from pydantic import BaseModel, Field, ValidationError

from asset_pipeline.errors import FilesystemFailure
from asset_pipeline.stores.base import Store

if TYPE_CHECKING:
    from asset_pipeline.asset import Asset
    from asset_pipeline.collection import Collection

MANIFEST_FILENAME = "collections.json"


class _EntryDoc(BaseModel):
    fingerprints: Dict[str, Optional[str]] = Field(default_factory=dict)
    development: Dict[str, Dict[str, str]] = Field(default_factory=dict)


@dataclass
class Entry:
    fingerprints: Dict[str, Optional[str]] = field(default_factory=dict)
    development: Dict[str, Dict[str, str]] = field(default_factory=dict)

    # ---- production ----

    def has_production_fingerprint(self, group: str) -> bool:
        return self.fingerprints.get(group) is not None

    def production_fingerprint(self, group: str) -> Optional[str]:
        return self.fingerprints.get(group)

    def set_production_fingerprint(self, group: str, fingerprint: str) -> None:
        self.fingerprints[group] = fingerprint

    def reset_production_fingerprint(self, group: str) -> None:
        self.fingerprints[group] = None

    # ---- development ----

    def has_development_assets(self, group: str) -> bool:
        return bool(self.development.get(group))

    def development_assets(self, group: str) -> Dict[str, str]:
        return dict(self.development.get(group, {}))

    def reset_development_assets(self, group: str) -> None:
        self.development[group] = {}

    def add_development_asset(self, asset: "Asset") -> None:
        self.development.setdefault(asset.group(), {})[asset.relative_path] = asset.build_path()

    def has_development_asset(self, asset: "Asset") -> bool:
        return asset.relative_path in self.development.get(asset.group(), {})

    def development_asset(self, asset: "Asset") -> Optional[str]:
        return self.development.get(asset.group(), {}).get(asset.relative_path)

    # ---- serialization ----

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fingerprints": dict(self.fingerprints),
            "development": {g: dict(m) for g, m in self.development.items()},
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "Entry":
        doc = _EntryDoc.model_validate(obj)
        return cls(fingerprints=dict(doc.fingerprints), development={g: dict(m) for g, m in doc.development.items()})


CollectionRef = Union[str, "Collection"]


class Manifest:
    def __init__(self, store: Store, manifest_dir: str) -> None:
        self.store = store
        self.manifest_dir = manifest_dir
        self.entries: Dict[str, Entry] = {}
        self.dirty = False
        self._loaded = False

    @property
    def path(self) -> str:
        return f"{self.manifest_dir.rstrip('/')}/{MANIFEST_FILENAME}"

    @staticmethod
    def _key(collection: CollectionRef) -> str:
        return collection if isinstance(collection, str) else collection.identifier

    # ---- entries ----

    def make(self, collection: CollectionRef) -> Entry:
        key = self._key(collection)
        self.dirty = True
        if key not in self.entries:
            self.entries[key] = Entry()
        return self.entries[key]

    def get(self, collection: CollectionRef) -> Optional[Entry]:
        return self.entries.get(self._key(collection))

    def has(self, collection: CollectionRef) -> bool:
        return self._key(collection) in self.entries

    def forget(self, collection: CollectionRef) -> None:
        key = self._key(collection)
        if key in self.entries:
            self.dirty = True
            del self.entries[key]

    def all(self) -> Dict[str, Entry]:
        return self.entries

    # ---- persistence ----

    def to_dict(self) -> Dict[str, Any]:
        return {k: e.to_dict() for k, e in self.entries.items()}

    def load(self, *, reload: bool = False) -> None:
        """Register entries from collections.json.

        Missing or malformed documents leave the manifest empty. Entries are read
        once per instance unless ``reload`` is set.
        """
        if self._loaded and not reload:
            return
        self._loaded = True
        self.entries = {}

        if not self.store.exists(self.path):
            return
        try:
            obj = orjson.loads(self.store.read_bytes(self.path))
        except orjson.JSONDecodeError:
            return
        if not isinstance(obj, dict):
            return

        entries: Dict[str, Entry] = {}
        try:
            for key, raw in obj.items():
                entries[str(key)] = Entry.from_dict(raw)
        except ValidationError:
            return
        self.entries = entries

    def save(self) -> bool:
        if not self.dirty:
            return False
        blob = orjson.dumps(self.to_dict(), option=orjson.OPT_INDENT_2)
        try:
            if not self.store.is_directory(self.manifest_dir):
                self.store.make_directory(self.manifest_dir, recursive=True)
            self.store.write_bytes(self.path, blob)
        except OSError as e:
            raise FilesystemFailure(self.path, str(e)) from e
        self.dirty = False
        return True

    def finalize(self) -> bool:
        return self.save()

    def delete(self) -> bool:
        self.entries = {}
        if not self.store.exists(self.path):
            return False
        return self.store.delete(self.path)
