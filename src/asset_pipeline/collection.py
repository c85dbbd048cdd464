from __future__ import annotations

from typing import List, Optional

from asset_pipeline.asset import Asset, group_extension
from asset_pipeline.filters import Filter, FilterChain


class Collection:
    def __init__(self, identifier: str, assets: Optional[List[Asset]] = None) -> None:
        self.identifier = identifier
        self.filters = FilterChain()
        self._assets: List[Asset] = []
        for a in assets or []:
            self.add(a)

    def __repr__(self) -> str:
        return f"Collection({self.identifier!r}, assets={len(self._assets)})"

    def add(self, asset: Asset) -> Asset:
        asset.collection_filters = self.filters
        self._assets.append(asset)
        return asset

    def apply(self, f: Filter) -> "Collection":
        self.filters.add(f)
        return self

    def assets(self, group: Optional[str] = None) -> List[Asset]:
        """Assets of a group in build order.

        Unordered assets keep declaration order. An asset with ``order(n)`` is
        inserted at position ``n - 1`` (clamped to the end), never ahead of an
        asset with a lower or equal order declared before it.
        """
        picked = [a for a in self._assets if group is None or a.group() == group]

        out = [a for a in picked if a.get_order() is None]
        ordered = sorted((a for a in picked if a.get_order() is not None), key=lambda a: a.get_order())
        last = -1
        for a in ordered:
            pos = min(max(a.get_order() - 1, last + 1, 0), len(out))
            out.insert(pos, a)
            last = pos
        return out

    def assets_without_raw(self, group: str) -> List[Asset]:
        return [a for a in self.assets(group) if not a.is_raw()]

    def raw_assets(self, group: str) -> List[Asset]:
        return [a for a in self.assets(group) if a.is_raw()]

    def extension(self, group: str) -> str:
        return group_extension(group)
