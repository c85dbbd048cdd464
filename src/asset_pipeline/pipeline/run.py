# src/asset_pipeline/pipeline/run.py
from __future__ import annotations

from typing import Any, Dict, Optional

from asset_pipeline.asset import GROUPS
from asset_pipeline.builder import Builder
from asset_pipeline.cleaner import FilesystemCleaner
from asset_pipeline.errors import BuildNotRequired, FilesystemFailure, FilterExecutionFailure
from asset_pipeline.manifest import Manifest
from asset_pipeline.registry import build_collections, build_resolver
from asset_pipeline.stores.base import Store
from asset_pipeline.stores.filesystem import FilesystemStore


def run_build(
    cfg: Dict[str, Any],
    *,
    production: bool,
    force: Optional[bool] = None,
    gzip: Optional[bool] = None,
    clean: Optional[bool] = None,
    store: Optional[Store] = None,
) -> Dict[str, Any]:
    """
    Build every declared collection for both groups:
      1) load manifest (once)
      2) build each collection/group; a failure only aborts that collection/group
      3) cleanup pass over the build directory
      4) save manifest (once)

    Returns a summary dict for logging / CLI.
    """
    store = store or FilesystemStore(".")
    build_cfg = cfg["build"]
    force = bool(build_cfg["force"]) if force is None else force
    gzip = bool(build_cfg["gzip"]) if gzip is None else gzip
    clean = bool(build_cfg["clean"]) if clean is None else clean

    build_dir = cfg["paths"]["build_dir"]
    manifest = Manifest(store, cfg["paths"]["manifest_dir"])
    manifest.load()

    collections = build_collections(cfg, store, build_resolver(cfg))
    builder = Builder(store, manifest, build_dir, force=force, gzip=gzip)

    mode = "production" if production else "development"
    built: list[Dict[str, Any]] = []
    skipped: list[Dict[str, Any]] = []
    failed: list[Dict[str, Any]] = []

    # -------------------------
    # 1) Build
    # -------------------------
    for cid, collection in collections.items():
        for group in GROUPS:
            try:
                if production:
                    out = builder.build_as_production(collection, group)
                    paths = [out]
                else:
                    paths = builder.build_as_development(collection, group)
            except BuildNotRequired as e:
                skipped.append({"collection": cid, "group": group, "reason": str(e)})
                print(f"[SKIP] {cid}/{group} -> {e}")
                continue
            except (FilterExecutionFailure, FilesystemFailure) as e:
                failed.append({"collection": cid, "group": group, "error": f"{type(e).__name__}: {e}"})
                print(f"[BUILD FAIL] {cid}/{group} -> {e}")
                continue

            built.append({"collection": cid, "group": group, "paths": paths})
            print(f"[BUILD] {cid}/{group} mode={mode} files={len(paths)}")

    # -------------------------
    # 2) Cleanup
    # -------------------------
    cleaned: list[str] = []
    if clean:
        cleaned = FilesystemCleaner(store, manifest, build_dir).clean(collections.keys())
        for path in cleaned:
            print(f"[CLEAN] {path}")

    # -------------------------
    # 3) Finalize
    # -------------------------
    saved = manifest.finalize()

    print(
        f"[BUILD DONE] mode={mode} force={force} "
        f"built={len(built)} skipped={len(skipped)} failed={len(failed)} "
        f"cleaned={len(cleaned)} manifest={manifest.path}"
    )

    return {
        "mode": mode,
        "batch_stamp": builder.batch_stamp if production else None,
        "built": built,
        "skipped": skipped,
        "failed": failed,
        "cleaned": cleaned,
        "manifest_saved": saved,
    }
