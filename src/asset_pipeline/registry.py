from __future__ import annotations

import posixpath
from typing import Any, Dict, Optional

from asset_pipeline.asset import Asset
from asset_pipeline.collection import Collection
from asset_pipeline.filters import build_filter_registry
from asset_pipeline.remote import ContentTypeResolver
from asset_pipeline.stores.base import Store


def build_resolver(cfg: Dict[str, Any]) -> Optional[ContentTypeResolver]:
    remote = cfg.get("remote") or {}
    if not remote.get("probe"):
        return None
    return ContentTypeResolver(
        user_agent=str(remote.get("user_agent", "asset-pipeline")),
        timeout_sec=float(remote.get("timeout_sec", 5)),
        max_retries=int(remote.get("max_retries", 3)),
    )


def build_collections(
    cfg: Dict[str, Any],
    store: Store,
    resolver: Optional[ContentTypeResolver] = None,
) -> Dict[str, Collection]:
    """Build Collection instances from cfg['collections'].

    Example:
      collections:
        application:
          filters: [cssmin]
          assets:
            - css/reset.css
            - path: css/app.less
              filters: [less]
              order: 1
            - path: //cdn.example.com/jquery.js
    """
    filters = build_filter_registry(cfg)
    public_root = str(cfg["paths"]["public_root"]).rstrip("/")
    environment = str(cfg["app"]["environment"])

    out: Dict[str, Collection] = {}
    for cid, cc in (cfg.get("collections") or {}).items():
        collection = Collection(str(cid))
        for name in cc.get("filters", []):
            collection.apply(filters[name])

        for ac in cc.get("assets", []):
            path = str(ac["path"])
            asset = Asset(store, path, path, environment=environment, resolver=resolver)
            if not asset.is_remote():
                rel = path.lstrip("/")
                asset = Asset(store, posixpath.join(public_root, rel), rel, environment=environment, resolver=resolver)
            else:
                # remote assets are linked as-is, never built
                asset.raw()

            for name in ac.get("filters", []):
                asset.apply(filters[name])
            if ac.get("raw"):
                asset.raw()
            if ac.get("raw_on"):
                asset.raw_on_environment(*ac["raw_on"])
            if ac.get("order") is not None:
                asset.order(int(ac["order"]))
            collection.add(asset)

        out[collection.identifier] = collection
    return out
