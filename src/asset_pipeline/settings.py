# src/asset_pipeline/settings.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Set

import hashlib
import json

import yaml


SettingsDict = Dict[str, Any]

_FILTER_MODES = ("both", "production", "development")


# =========================
# Public API
# =========================

def load_settings(path: str | Path) -> SettingsDict:
    """
    Load assets.yaml -> nested dict settings.

    Guarantees:
    - defaults are applied
    - validation is executed (ValueError with dotted-key messages)
    - relative paths under `paths` are resolved against the config file's directory
    - runtime metadata is attached into settings["_meta"]
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError("asset config root must be a mapping (YAML dict)")

    settings = apply_defaults(raw)
    validate_settings(settings)
    resolve_paths(settings, path.resolve().parent)

    settings.setdefault("_meta", {})
    settings["_meta"]["config_path"] = str(path)
    settings["_meta"]["config_hash"] = hash_settings(settings, exclude_keys={"_meta"})
    return settings


def apply_defaults(raw: SettingsDict) -> SettingsDict:
    s: SettingsDict = _deep_copy_dict(raw)

    # ---- app ----
    s.setdefault("app", {})
    _must_be_mapping(s["app"], "app")
    s["app"].setdefault("environment", "production")

    # ---- paths ----
    s.setdefault("paths", {})
    _must_be_mapping(s["paths"], "paths")
    s["paths"].setdefault("public_root", "public")
    s["paths"].setdefault("build_dir", "public/builds")
    s["paths"].setdefault("manifest_dir", "meta")

    # ---- build ----
    s.setdefault("build", {})
    _must_be_mapping(s["build"], "build")
    s["build"].setdefault("gzip", False)
    s["build"].setdefault("force", False)
    s["build"].setdefault("clean", True)

    # ---- remote ----
    s.setdefault("remote", {})
    _must_be_mapping(s["remote"], "remote")
    s["remote"].setdefault("probe", False)
    s["remote"].setdefault("timeout_sec", 5)
    s["remote"].setdefault("max_retries", 3)
    s["remote"].setdefault("user_agent", "asset-pipeline")

    # ---- filters ----
    if s.get("filters") is None:
        s["filters"] = {}
    _must_be_mapping(s["filters"], "filters")
    for name, fc in s["filters"].items():
        _must_be_mapping(fc, f"filters.{name}")
        fc.setdefault("kind", name)
        fc.setdefault("mode", "both")

    # ---- collections ----
    if s.get("collections") is None:
        s["collections"] = {}
    _must_be_mapping(s["collections"], "collections")
    for cid, cc in s["collections"].items():
        _must_be_mapping(cc, f"collections.{cid}")
        if cc.get("filters") is None:
            cc["filters"] = []
        if cc.get("assets") is None:
            cc["assets"] = []
        if not isinstance(cc["assets"], list):
            raise ValueError(f"collections.{cid}.assets must be a list")
        for i, a in enumerate(cc["assets"]):
            if isinstance(a, str):
                cc["assets"][i] = a = {"path": a}
            _must_be_mapping(a, f"collections.{cid}.assets[{i}]")
            a.setdefault("filters", [])
            a.setdefault("raw", False)
            a.setdefault("raw_on", [])
            if isinstance(a["raw_on"], str):
                a["raw_on"] = [a["raw_on"]]
            a.setdefault("order", None)

    return s


def validate_settings(s: SettingsDict) -> None:
    if not str(s["app"]["environment"] or ""):
        raise ValueError("app.environment is required")

    for k in ("public_root", "build_dir", "manifest_dir"):
        if not str(s["paths"][k] or ""):
            raise ValueError(f"paths.{k} is required")

    timeout = _as_float(s["remote"]["timeout_sec"], "remote.timeout_sec")
    if timeout <= 0:
        raise ValueError("remote.timeout_sec must be > 0")
    if _as_int(s["remote"]["max_retries"], "remote.max_retries") <= 0:
        raise ValueError("remote.max_retries must be > 0")

    for name, fc in s["filters"].items():
        if fc["mode"] not in _FILTER_MODES:
            raise ValueError(f"filters.{name}.mode must be one of {list(_FILTER_MODES)}")
        if fc["kind"] == "command" and not fc.get("command"):
            raise ValueError(f"filters.{name}.command is required for kind=command")

    known = set(s["filters"])
    for cid, cc in s["collections"].items():
        _check_filter_refs(cc["filters"], known, f"collections.{cid}.filters")
        for i, a in enumerate(cc["assets"]):
            where = f"collections.{cid}.assets[{i}]"
            if not a.get("path"):
                raise ValueError(f"{where}.path is required")
            _check_filter_refs(a["filters"], known, f"{where}.filters")
            if a["order"] is not None and _as_int(a["order"], f"{where}.order") <= 0:
                raise ValueError(f"{where}.order must be > 0")


def resolve_paths(s: SettingsDict, base_dir: Path) -> None:
    for k in ("public_root", "build_dir", "manifest_dir"):
        p = Path(s["paths"][k])
        s["paths"][k] = (p if p.is_absolute() else (base_dir / p)).as_posix()


def hash_settings(s: SettingsDict, *, exclude_keys: Optional[Set[str]] = None) -> str:
    """
    Stable hash for settings dict (used as config fingerprint).
    """
    exclude_keys = exclude_keys or set()
    filtered = {k: v for k, v in s.items() if k not in exclude_keys}
    blob = json.dumps(filtered, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(blob).hexdigest()


# =========================
# Internal helpers
# =========================

def _check_filter_refs(names: Any, known: Set[str], path: str) -> None:
    if not isinstance(names, list):
        raise ValueError(f"{path} must be a list")
    missing = [n for n in names if n not in known]
    if missing:
        raise ValueError(f"{path} references unknown filters: {missing}")


def _deep_copy_dict(d: SettingsDict) -> SettingsDict:
    # json roundtrip is good enough here (yaml-safe types)
    return json.loads(json.dumps(d, ensure_ascii=False))


def _must_be_mapping(v: Any, path: str) -> None:
    if not isinstance(v, dict):
        raise ValueError(f"{path} must be a mapping (YAML dict)")


def _as_int(v: Any, path: str) -> int:
    try:
        return int(v)
    except Exception as e:
        raise ValueError(f"{path} must be int-like, got {v!r}") from e


def _as_float(v: Any, path: str) -> float:
    try:
        return float(v)
    except Exception as e:
        raise ValueError(f"{path} must be float-like, got {v!r}") from e
