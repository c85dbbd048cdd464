from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from asset_pipeline.manifest import Manifest
from asset_pipeline.pipeline.run import run_build
from asset_pipeline.settings import load_settings
from asset_pipeline.stores.filesystem import FilesystemStore


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="asset-build", description="Build fingerprinted stylesheet/script collections")
    p.add_argument("--config", default="assets.yaml", help="Path to assets YAML")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_build = sub.add_parser("build", help="Build every declared collection")
    p_build.add_argument("--production", action="store_true", help="Concatenate each group into one bundle")
    p_build.add_argument("--force", action="store_true", help="Rebuild even when nothing changed")
    p_build.add_argument("--gzip", action="store_true", default=None, help="Gzip written files (level 9)")
    p_build.add_argument("--no-clean", action="store_true", help="Skip removal of unreferenced build files")

    p_forget = sub.add_parser("forget", help="Drop a collection from the manifest")
    p_forget.add_argument("collection")

    sub.add_parser("reset", help="Delete the manifest file")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_settings(Path(args.config))
        store = FilesystemStore(".")

        if args.cmd == "build":
            res = run_build(
                cfg,
                production=args.production,
                force=True if args.force else None,
                gzip=args.gzip,
                clean=False if args.no_clean else None,
                store=store,
            )
            print(json.dumps(res, ensure_ascii=False, indent=2))
            sys.exit(1 if res["failed"] else 0)

        manifest = Manifest(store, cfg["paths"]["manifest_dir"])
        if args.cmd == "forget":
            manifest.load()
            manifest.forget(args.collection)
            saved = manifest.finalize()
            print(f"[FORGET] collection={args.collection} manifest_saved={saved}")
        elif args.cmd == "reset":
            deleted = manifest.delete()
            print(f"[RESET] manifest={manifest.path} deleted={deleted}")
        sys.exit(0)

    except Exception as e:
        print(f"[ERROR] {type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
