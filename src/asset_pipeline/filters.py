# src/asset_pipeline/filters.py
# Filter chain glue: named content transforms applied to an asset in declared order.
# A filter may be limited to production or development builds; the chain resolves
# the applicable filters per build mode.

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional

import orjson
import rcssmin
import rjsmin

from asset_pipeline.errors import FilterExecutionFailure

# (content, source_dir, source_filename) -> content
Transform = Callable[[str, str, str], str]


class FilterMode(str, Enum):
    BOTH = "both"
    PRODUCTION = "production"
    DEVELOPMENT = "development"


@dataclass
class Filter:
    name: str
    transform: Transform
    mode: FilterMode = FilterMode.BOTH
    options: Dict[str, Any] = field(default_factory=dict)

    def applies(self, production: bool) -> bool:
        if self.mode is FilterMode.BOTH:
            return True
        return (self.mode is FilterMode.PRODUCTION) == production

    def identifier(self) -> str:
        if not self.options:
            return self.name
        return self.name + orjson.dumps(self.options, option=orjson.OPT_SORT_KEYS).decode("utf-8")

    def __call__(self, content: str, source_dir: str, source_filename: str) -> str:
        return self.transform(content, source_dir, source_filename)


class FilterChain:
    def __init__(self, filters: Optional[List[Filter]] = None) -> None:
        self._filters: List[Filter] = list(filters or [])

    def add(self, f: Filter) -> "FilterChain":
        # re-adding a name replaces it in place, order preserved
        for i, existing in enumerate(self._filters):
            if existing.name == f.name:
                self._filters[i] = f
                return self
        self._filters.append(f)
        return self

    def identifiers(self) -> List[str]:
        return [f.identifier() for f in self._filters]

    def resolve(self, production: bool) -> List[Filter]:
        return [f for f in self._filters if f.applies(production)]

    def __iter__(self) -> Iterator[Filter]:
        return iter(self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def __add__(self, other: "FilterChain") -> "FilterChain":
        merged = FilterChain(list(self._filters))
        for f in other:
            merged.add(f)
        return merged


def apply_filters(filters: List[Filter], content: str, source_dir: str, source_filename: str) -> str:
    for f in filters:
        try:
            content = f(content, source_dir, source_filename)
        except FilterExecutionFailure:
            raise
        except Exception as e:
            raise FilterExecutionFailure(f.name, f"{source_dir}/{source_filename}", str(e)) from e
    return content


# =========================
# Built-in transforms
# =========================

def cssmin(content: str, source_dir: str = "", source_filename: str = "") -> str:
    return rcssmin.cssmin(content)


def jsmin(content: str, source_dir: str = "", source_filename: str = "") -> str:
    return rjsmin.jsmin(content)


def command_transform(argv: List[str], timeout: Optional[float] = None) -> Transform:
    """Pipe content through an external process (sass, uglifyjs, ...)."""

    def _run(content: str, source_dir: str, source_filename: str) -> str:
        proc = subprocess.run(
            argv,
            input=content,
            cwd=source_dir or None,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        if proc.returncode != 0:
            raise FilterExecutionFailure(
                argv[0],
                f"{source_dir}/{source_filename}",
                (proc.stderr or "")[-2000:].strip() or f"exit code {proc.returncode}",
            )
        return proc.stdout

    return _run


_BUILTIN: Dict[str, Transform] = {
    "cssmin": cssmin,
    "jsmin": jsmin,
}


def build_filter_registry(cfg: Dict[str, Any]) -> Dict[str, Filter]:
    """Build named filters from cfg['filters'].

    Example:
      filters:
        cssmin:
          kind: cssmin
          mode: production
        sass:
          kind: command
          command: ["sass", "--stdin"]
    """
    filters_cfg = cfg.get("filters") or {}
    if not isinstance(filters_cfg, dict):
        raise ValueError("cfg['filters'] must be a dict")
    out: Dict[str, Filter] = {}
    for name, fc in filters_cfg.items():
        if not isinstance(fc, dict):
            raise ValueError(f"filters.{name} must be a dict")
        kind = fc.get("kind", name)
        mode = FilterMode(fc.get("mode", "both"))
        options = {k: v for k, v in fc.items() if k not in ("kind", "mode")}
        if kind in _BUILTIN:
            transform = _BUILTIN[kind]
        elif kind == "command":
            argv = fc.get("command")
            if not isinstance(argv, list) or not argv:
                raise ValueError(f"filters.{name}.command must be a non-empty list")
            transform = command_transform([str(a) for a in argv], fc.get("timeout_sec"))
        else:
            raise ValueError(f"Unsupported filter kind: {kind!r} (filter={name})")
        out[name] = Filter(name=name, transform=transform, mode=mode, options=options)
    return out
