from .asset import Asset
from .builder import Builder
from .collection import Collection
from .errors import BuildNotRequired, FilesystemFailure, FilterExecutionFailure
from .manifest import Entry, Manifest

__all__ = [
    "Asset",
    "Builder",
    "Collection",
    "Entry",
    "Manifest",
    "BuildNotRequired",
    "FilesystemFailure",
    "FilterExecutionFailure",
]
