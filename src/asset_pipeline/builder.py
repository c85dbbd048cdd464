# src/asset_pipeline/builder.py
# Builds a collection/group either as one fingerprinted production bundle or as
# per-asset development files, consulting the manifest entry to skip unchanged work.
#
# Output layout under build_path:
#   production : {collection}/{stamp}/{stamp}-{collection}-{md5}.{ext}
#   development: {collection}/{asset dir}/{basename}-{fingerprint}.{ext}

from __future__ import annotations

import datetime as dt
import posixpath
from typing import List, Optional

from asset_pipeline.asset import Asset
from asset_pipeline.collection import Collection
from asset_pipeline.common.hashing import gzip_encode, md5_hex
from asset_pipeline.errors import BuildNotRequired, FilesystemFailure
from asset_pipeline.manifest import Entry, Manifest
from asset_pipeline.stores.base import Store

BATCH_STAMP_FORMAT = "%Y%m%d_%H%M%S"


def make_batch_stamp(now: Optional[dt.datetime] = None) -> str:
    return (now or dt.datetime.now()).strftime(BATCH_STAMP_FORMAT)


class Builder:
    def __init__(
        self,
        store: Store,
        manifest: Manifest,
        build_path: str,
        *,
        force: bool = False,
        gzip: bool = False,
        batch_stamp: Optional[str] = None,
    ) -> None:
        self.store = store
        self.manifest = manifest
        self.build_path = build_path.rstrip("/") or "."
        self.force = force
        self.gzip = gzip
        self._batch_stamp = batch_stamp

        self._ensure_directory(self.build_path)

    @property
    def batch_stamp(self) -> str:
        # one stamp per run, shared by every production bundle it writes
        if self._batch_stamp is None:
            self._batch_stamp = make_batch_stamp()
        return self._batch_stamp

    # =========================
    # Production
    # =========================

    def build_as_production(self, collection: Collection, group: str) -> str:
        """Concatenate the group's assets into one bundle.

        Returns the bundle path relative to the collection's build directory, as
        stored on the manifest entry. Raises BuildNotRequired when there is
        nothing to build or the stored bundle already has this content.
        """
        assets = collection.assets_without_raw(group)
        identifier = collection.identifier
        entry = self.manifest.make(identifier)

        if not assets:
            entry.reset_production_fingerprint(group)
            raise BuildNotRequired(f"{identifier}/{group}: no assets to build")

        content = self._gather_production_buffer(assets, group)
        if not content.strip():
            entry.reset_production_fingerprint(group)
            raise BuildNotRequired(f"{identifier}/{group}: build produced no content")

        name = f"{identifier}-{md5_hex(content)}.{collection.extension(group)}"

        data = self._encode(content)
        if not self.force and self._production_is_current(entry, identifier, group, name, data):
            raise BuildNotRequired(f"{identifier}/{group}: bundle is up to date")

        fingerprint = f"{self.batch_stamp}/{self.batch_stamp}-{name}"
        path = f"{self.build_path}/{identifier}/{fingerprint}"

        self._write_bytes(path, data)
        entry.set_production_fingerprint(group, fingerprint)
        self.manifest.dirty = True
        return fingerprint

    def _gather_production_buffer(self, assets: List[Asset], group: str) -> str:
        parts = [asset.build(production=True) for asset in assets]
        return "\n".join(p for p in parts if p)

    def _production_is_current(self, entry: Entry, identifier: str, group: str, name: str, data: bytes) -> bool:
        current = entry.production_fingerprint(group)
        if not current:
            return False
        # stamp prefix differs per run, content name does not
        if not posixpath.basename(current).endswith(f"-{name}"):
            return False
        path = f"{self.build_path}/{identifier}/{current}"
        if not self.store.exists(path):
            return False
        # same content written with the other gzip setting is stale
        try:
            return self.store.read_bytes(path) == data
        except OSError as e:
            raise FilesystemFailure(path, str(e)) from e

    # =========================
    # Development
    # =========================

    def build_as_development(self, collection: Collection, group: str) -> List[str]:
        """Build each asset of the group to its own fingerprinted file.

        Returns the asset build paths written. Raises BuildNotRequired when the
        group has no assets or every asset is already built.
        """
        assets = collection.assets_without_raw(group)
        identifier = collection.identifier
        entry = self.manifest.make(identifier)

        if self.force or self._definition_has_changed(assets, entry, group):
            entry.reset_development_assets(group)
            pending = assets
        else:
            pending = [
                a for a in assets
                if not entry.has_development_asset(a) or a.build_path() != entry.development_asset(a)
            ]

        if not pending:
            raise BuildNotRequired(f"{identifier}/{group}: development assets are up to date")

        written: List[str] = []
        for asset in pending:
            build_path = asset.build_path()
            path = f"{self.build_path}/{identifier}/{build_path}"
            self._write(path, asset.build(production=False))
            entry.add_development_asset(asset)
            written.append(build_path)

        self.manifest.dirty = True
        return written

    def _definition_has_changed(self, assets: List[Asset], entry: Entry, group: str) -> bool:
        if not entry.has_development_assets(group):
            return True
        recorded = entry.development_assets(group)
        current = [a.relative_path for a in assets]
        return len(current) != len(recorded) or set(current) != set(recorded)

    # =========================
    # IO
    # =========================

    def _ensure_directory(self, directory: str) -> None:
        try:
            if not self.store.is_directory(directory):
                self.store.make_directory(directory, recursive=True)
        except OSError as e:
            raise FilesystemFailure(directory, str(e)) from e

    def _encode(self, content: str) -> bytes:
        return gzip_encode(content, 9) if self.gzip else content.encode("utf-8")

    def _write(self, path: str, content: str) -> None:
        self._write_bytes(path, self._encode(content))

    def _write_bytes(self, path: str, data: bytes) -> None:
        self._ensure_directory(posixpath.dirname(path))
        try:
            self.store.write_bytes(path, data)
        except OSError as e:
            raise FilesystemFailure(path, str(e)) from e
