# src/asset_pipeline/asset.py
from __future__ import annotations

import posixpath
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

import orjson

from asset_pipeline.common.hashing import md5_hex
from asset_pipeline.errors import FilesystemFailure
from asset_pipeline.filters import Filter, FilterChain, apply_filters
from asset_pipeline.remote import ContentTypeResolver
from asset_pipeline.stores.base import Store

STYLESHEETS = "stylesheets"
JAVASCRIPTS = "javascripts"
GROUPS: Tuple[str, str] = (STYLESHEETS, JAVASCRIPTS)

ALLOWED_EXTENSIONS: Dict[str, Tuple[str, ...]] = {
    STYLESHEETS: ("css", "sass", "scss", "less", "styl", "roo", "gss"),
    JAVASCRIPTS: ("js", "coffee", "dart", "ts", "hbs"),
}

_UNSET = object()


def group_extension(group: str) -> str:
    return "js" if group == JAVASCRIPTS else "css"


class Asset:
    """One source stylesheet/script, local or remote.

    ``absolute_path`` is what gets read (or probed), ``relative_path`` names the
    development build output. Group, mtime and content type are looked up once.
    """

    def __init__(
        self,
        store: Store,
        absolute_path: str,
        relative_path: str,
        *,
        environment: str = "production",
        resolver: Optional[ContentTypeResolver] = None,
    ) -> None:
        self.store = store
        self.absolute_path = absolute_path
        self.relative_path = relative_path
        self.environment = environment
        self.resolver = resolver

        self.filters = FilterChain()
        # collection-level chain, shared with the owning Collection
        self.collection_filters: Optional[FilterChain] = None

        self._raw = False
        self._order: Optional[int] = None
        self._group: object = _UNSET
        self._last_modified: object = _UNSET

    def __repr__(self) -> str:
        return f"Asset({self.relative_path!r})"

    # ---- filters ----

    def apply(self, f: Filter) -> "Asset":
        self.filters.add(f)
        return self

    def all_filters(self) -> FilterChain:
        if self.collection_filters is None:
            return self.filters
        return self.collection_filters + self.filters

    # ---- location ----

    def is_remote(self) -> bool:
        if self.absolute_path.startswith("//"):
            return True
        parsed = urlparse(self.absolute_path)
        return bool(parsed.scheme and parsed.netloc)

    def last_modified(self) -> Optional[int]:
        if self._last_modified is _UNSET:
            self._last_modified = None if self.is_remote() else self.store.last_modified(self.absolute_path)
        return self._last_modified  # type: ignore[return-value]

    # ---- group ----

    def group(self) -> Optional[str]:
        if self._group is _UNSET:
            self._group = self._group_from_extension() or self._group_from_content_type()
        return self._group  # type: ignore[return-value]

    def set_group(self, group: str) -> "Asset":
        if group not in GROUPS:
            raise ValueError(f"unknown asset group: {group!r}")
        self._group = group
        return self

    def _group_from_extension(self) -> Optional[str]:
        path = urlparse(self.absolute_path).path if self.is_remote() else self.absolute_path
        ext = posixpath.splitext(path)[1].lstrip(".").lower()
        for group in GROUPS:
            if ext in ALLOWED_EXTENSIONS[group]:
                return group
        return None

    def _group_from_content_type(self) -> Optional[str]:
        if not self.is_remote() or self.resolver is None:
            return None
        ctype = self.resolver.resolve(self.absolute_path)
        if ctype is None:
            return None
        return STYLESHEETS if ctype.startswith("text/css") else JAVASCRIPTS

    def is_stylesheet(self) -> bool:
        return self.group() == STYLESHEETS

    def is_javascript(self) -> bool:
        return self.group() == JAVASCRIPTS

    def build_extension(self) -> str:
        return group_extension(self.group() or STYLESHEETS)

    # ---- build path ----

    def fingerprint(self) -> str:
        # filter config + mtime only; content is never hashed here
        ids = orjson.dumps(self.all_filters().identifiers()).decode("utf-8")
        mtime = self.last_modified()
        return md5_hex(ids + ("" if mtime is None else str(mtime)))

    def build_path(self) -> str:
        directory, filename = posixpath.split(self.relative_path)
        basename = posixpath.splitext(filename)[0]
        name = f"{basename}-{self.fingerprint()}.{self.build_extension()}"
        return posixpath.join(directory, name) if directory else name

    # ---- ordering ----

    def order(self, n: int) -> "Asset":
        self._order = int(n)
        return self

    def first(self) -> "Asset":
        return self.order(1)

    def second(self) -> "Asset":
        return self.order(2)

    def third(self) -> "Asset":
        return self.order(3)

    def get_order(self) -> Optional[int]:
        return self._order

    # ---- raw ----

    def raw(self) -> "Asset":
        self._raw = True
        return self

    def raw_on_environment(self, *environments: str | List[str]) -> "Asset":
        names: List[str] = []
        for e in environments:
            names.extend(e if isinstance(e, (list, tuple)) else [e])
        if self.environment in names:
            return self.raw()
        return self

    def is_raw(self) -> bool:
        return self._raw

    # ---- content ----

    def content(self) -> Optional[str]:
        if self.is_remote() or not self.store.exists(self.absolute_path):
            return None
        try:
            return self.store.read_text(self.absolute_path)
        except (OSError, UnicodeDecodeError) as e:
            raise FilesystemFailure(self.absolute_path, str(e)) from e

    def build(self, production: bool = False) -> str:
        filters = self.all_filters().resolve(production)
        source_dir, source_filename = posixpath.split(self.absolute_path)
        return apply_filters(filters, self.content() or "", source_dir, source_filename)
