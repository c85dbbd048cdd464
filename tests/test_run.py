from __future__ import annotations

import gzip
import re
from pathlib import Path

import orjson
import rcssmin

from asset_pipeline.pipeline.run import run_build
from asset_pipeline.settings import load_settings


def _project(tmp_path: Path, extra: str = "") -> dict:
    (tmp_path / "public" / "css").mkdir(parents=True)
    (tmp_path / "public" / "js").mkdir(parents=True)
    (tmp_path / "public" / "css" / "a.css").write_text("body {\n  color: red;\n}\n", encoding="utf-8")
    (tmp_path / "public" / "css" / "b.css").write_text("/* b */ p { margin: 0 }\n", encoding="utf-8")
    (tmp_path / "public" / "js" / "app.js").write_text("// app\nvar a = 1;\n", encoding="utf-8")

    p = tmp_path / "assets.yaml"
    p.write_text(
        """
filters:
  cssmin:
    mode: production
  jsmin:
    mode: production
  explode:
    kind: command
    command: ["false"]
collections:
  app:
    assets:
      - path: css/a.css
        filters: [cssmin]
      - path: css/b.css
        filters: [cssmin]
      - path: js/app.js
        filters: [jsmin]
"""
        + extra,
        encoding="utf-8",
    )
    return load_settings(p)


def _manifest(cfg: dict) -> dict:
    return orjson.loads(Path(cfg["paths"]["manifest_dir"], "collections.json").read_bytes())


def test_production_run_builds_bundles_and_saves_manifest(tmp_path: Path) -> None:
    cfg = _project(tmp_path)
    res = run_build(cfg, production=True)

    assert res["failed"] == []
    assert {(b["collection"], b["group"]) for b in res["built"]} == {("app", "stylesheets"), ("app", "javascripts")}
    assert res["manifest_saved"] is True

    fp = _manifest(cfg)["app"]["fingerprints"]
    assert re.match(r"^[0-9]{8}_[0-9]{6}/[0-9]{8}_[0-9]{6}-app-[a-f0-9]{32}\.css$", fp["stylesheets"])
    css = Path(cfg["paths"]["build_dir"], "app", fp["stylesheets"]).read_text(encoding="utf-8")
    assert css == rcssmin.cssmin("body {\n  color: red;\n}\n") + "\n" + rcssmin.cssmin("/* b */ p { margin: 0 }\n")


def test_second_production_run_skips_everything(tmp_path: Path) -> None:
    cfg = _project(tmp_path)
    first = run_build(cfg, production=True)
    second = run_build(cfg, production=True)

    assert len(first["built"]) == 2
    assert second["built"] == []
    assert len(second["skipped"]) == 2
    assert _manifest(cfg)["app"]["fingerprints"]["stylesheets"] == first["built"][0]["paths"][0]


def test_forced_production_run_replaces_old_bundle(tmp_path: Path) -> None:
    cfg = _project(tmp_path)
    run_build(cfg, production=True, force=True)
    res = run_build(cfg, production=True, force=True)

    assert len(res["built"]) == 2
    files = [p for p in Path(cfg["paths"]["build_dir"], "app").rglob("*") if p.is_file()]
    # a same-second rerun reuses the stamped path, otherwise the old one is cleaned
    assert len(files) == 2


def test_development_run_then_noop(tmp_path: Path) -> None:
    cfg = _project(tmp_path)
    res = run_build(cfg, production=False)

    dev = _manifest(cfg)["app"]["development"]
    assert set(dev["stylesheets"]) == {"css/a.css", "css/b.css"}
    built_a = Path(cfg["paths"]["build_dir"], "app", dev["stylesheets"]["css/a.css"])
    # production-only filters are skipped
    assert built_a.read_text(encoding="utf-8") == "body {\n  color: red;\n}\n"
    assert sorted(len(b["paths"]) for b in res["built"]) == [1, 2]

    again = run_build(cfg, production=False)
    assert again["built"] == []
    assert len(again["skipped"]) == 2
    assert _manifest(cfg)["app"]["development"] == dev


def test_gzip_run(tmp_path: Path) -> None:
    cfg = _project(tmp_path)
    run_build(cfg, production=False, gzip=True)

    dev = _manifest(cfg)["app"]["development"]
    data = Path(cfg["paths"]["build_dir"], "app", dev["javascripts"]["js/app.js"]).read_bytes()
    assert gzip.decompress(data) == b"// app\nvar a = 1;\n"


def test_failing_filter_only_fails_its_group(tmp_path: Path) -> None:
    extra = """
  broken:
    filters: [explode]
    assets:
      - css/a.css
"""
    cfg = _project(tmp_path, extra)
    res = run_build(cfg, production=True)

    assert [(f["collection"], f["group"]) for f in res["failed"]] == [("broken", "stylesheets")]
    assert len(res["built"]) == 2
    assert _manifest(cfg)["broken"]["fingerprints"].get("stylesheets") is None


def test_removed_collection_is_cleaned(tmp_path: Path) -> None:
    cfg = _project(tmp_path)
    run_build(cfg, production=True)

    cfg["collections"] = {}
    res = run_build(cfg, production=True)

    assert res["cleaned"] == ["app/"]
    assert _manifest(cfg) == {}
    assert not Path(cfg["paths"]["build_dir"], "app").exists()


def test_unreadable_source_only_fails_its_group(tmp_path: Path) -> None:
    extra = """
  zbad:
    assets:
      - css/bad.css
"""
    cfg = _project(tmp_path, extra)
    (tmp_path / "public" / "css" / "bad.css").write_bytes(b"\xff\xfe")

    res = run_build(cfg, production=True)

    assert [(f["collection"], f["group"]) for f in res["failed"]] == [("zbad", "stylesheets")]
    assert res["failed"][0]["error"].startswith("FilesystemFailure")
    assert res["manifest_saved"] is True
    saved = _manifest(cfg)
    assert saved["app"]["fingerprints"]["stylesheets"] is not None
    assert saved["zbad"]["fingerprints"].get("stylesheets") is None
