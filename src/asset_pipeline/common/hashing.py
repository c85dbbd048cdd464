from __future__ import annotations

import gzip
import hashlib


def md5_hex(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    h = hashlib.md5()
    h.update(data)
    return h.hexdigest()


def gzip_encode(data: bytes | str, level: int = 9) -> bytes:
    # mtime=0 keeps the output byte-stable for identical input
    if isinstance(data, str):
        data = data.encode("utf-8")
    return gzip.compress(data, compresslevel=level, mtime=0)
