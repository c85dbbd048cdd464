from __future__ import annotations


class AssetPipelineError(Exception):
    pass


class BuildNotRequired(AssetPipelineError):
    """Nothing to do for a collection/group: no assets, or nothing changed."""


class FilterExecutionFailure(AssetPipelineError):
    def __init__(self, filter_name: str, source: str, reason: str = "") -> None:
        self.filter_name = filter_name
        self.source = source
        msg = f"filter {filter_name!r} failed on {source}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class FilesystemFailure(AssetPipelineError):
    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        super().__init__(f"filesystem operation failed for {path}" + (f": {reason}" if reason else ""))
